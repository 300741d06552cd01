"""
Prompts module for the Genie kids English tutor.

Contains the persona prompt builder plus the scenario and
language choices offered to the learner.
"""

from .tutor_prompts import (
    DEFAULT_LANGUAGE,
    FALLBACK_REPLY,
    ReplyLanguage,
    Scenario,
    get_tutor_system_prompt,
)

__all__ = [
    "get_tutor_system_prompt",
    "Scenario",
    "ReplyLanguage",
    "DEFAULT_LANGUAGE",
    "FALLBACK_REPLY",
]

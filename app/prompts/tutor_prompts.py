"""
Tutor prompts for the Genie kids English tutor.

This module contains:
1. The fixed persona lines sent as the system instruction
2. Roleplay scenarios and reply languages the learner can pick
3. The fallback reply used when the model returns nothing
"""

from enum import Enum
from typing import List, Optional


class Scenario(str, Enum):
    """Roleplay scenarios. OFF means free conversation."""

    OFF = ""
    AT_SCHOOL = "At School"
    AT_STORE = "At Store"
    AT_HOME = "At Home"


class ReplyLanguage(str, Enum):
    """Languages Genie can answer in."""

    ENGLISH = "English"
    SPANISH = "Spanish"
    FRENCH = "French"
    GERMAN = "German"
    HINDI = "Hindi"
    CHINESE = "Chinese"
    JAPANESE = "Japanese"
    ARABIC = "Arabic"


DEFAULT_LANGUAGE = ReplyLanguage.ENGLISH

FALLBACK_REPLY = "I'm here! What would you like to learn today?"

PERSONA_LINES = (
    "You are Genie, a friendly English tutor for kids.",
    "Explain concepts simply with examples and ask engaging questions.",
    "Keep replies short (1-3 sentences) and encouraging.",
    "Use simple vocabulary and a warm tone.",
)


def get_tutor_system_prompt(
    scenario: Optional[Scenario] = None,
    language: Optional[ReplyLanguage] = None,
) -> str:
    """
    Build the system instruction for one chat turn.

    Args:
        scenario: Roleplay scenario, or None/OFF for free conversation
        language: Language Genie should reply in (English when omitted)

    Returns:
        The persona lines plus any scenario/language lines, newline-joined
    """
    lines: List[str] = list(PERSONA_LINES)

    if scenario:
        lines.append(f"Roleplay mode: {Scenario(scenario).value}")

    if language and ReplyLanguage(language) != DEFAULT_LANGUAGE:
        lines.append(f"Always reply in {ReplyLanguage(language).value}.")

    return "\n".join(lines)

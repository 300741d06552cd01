"""
Services module for the Genie voice tutor.

This module provides thin adapters over hosted APIs:
- ASRService: Speech-to-Text via OpenAI transcription (with legacy fallback)
- LLMService: Tutor replies via OpenAI chat completion
- TTSService: Text-to-Speech via ElevenLabs
"""

from .asr_service import ASRService, TranscriptionProvider, TranscriptionResult
from .errors import (
    MissingCredentialError,
    ServiceError,
    TranscriptionError,
    TTSNotConfiguredError,
    UpstreamServiceError,
)
from .llm_service import LLMService
from .tts_service import SynthesizedAudio, TTSService, VoiceConfig

__all__ = [
    "ASRService",
    "TranscriptionProvider",
    "TranscriptionResult",
    "LLMService",
    "TTSService",
    "VoiceConfig",
    "SynthesizedAudio",
    "ServiceError",
    "MissingCredentialError",
    "TTSNotConfiguredError",
    "UpstreamServiceError",
    "TranscriptionError",
]

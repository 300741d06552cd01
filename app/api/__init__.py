"""
API module for the Genie voice tutor.

This module contains the HTTP endpoints:
- /api/stt, /api/chat, /api/tts for one voice-chat turn
"""

from .routes import router as voice_router

__all__ = [
    "voice_router",
]

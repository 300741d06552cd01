"""
Genie Voice Tutor Application

A voice chat English tutor for kids featuring:
- Speech-to-text via the OpenAI transcription API
- Tutor replies via OpenAI chat completion
- Text-to-speech via ElevenLabs
- A browser page and a terminal client that drive one turn at a time
"""

__version__ = "0.1.0"
__app_name__ = "genie"

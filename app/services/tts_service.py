"""
TTS (Text-to-Speech) Service backed by the ElevenLabs API.

Replies are synthesized with a fixed voice (ELEVENLABS_VOICE_ID, or a
built-in default) and returned as a single MP3 payload. Without an
ElevenLabs credential the service reports "not configured" instead of
failing.
"""

from dataclasses import dataclass
from typing import Optional

import httpx
from loguru import logger

from app.config import settings
from app.services.errors import TTSNotConfiguredError, UpstreamServiceError

MP3_MEDIA_TYPE = "audio/mpeg"


@dataclass
class VoiceConfig:
    """Configuration for voice synthesis."""

    voice_id: str = "21m00Tcm4TlvDq8ikWAM"
    model_id: str = "eleven_multilingual_v2"
    stability: float = 0.4
    similarity_boost: float = 0.8
    output_format: str = "mp3_44100_128"


@dataclass
class SynthesizedAudio:
    """Audio returned by the synthesis API."""

    data: bytes
    media_type: str = MP3_MEDIA_TYPE


class TTSService:
    """
    Text-to-Speech service using the ElevenLabs REST API.

    This service provides:
    - One-shot MP3 synthesis for a reply
    - A distinct "not configured" state when no credential is set
    - Upstream error bodies surfaced to the caller
    """

    def __init__(
        self,
        api_key: Optional[str],
        voice: Optional[VoiceConfig] = None,
        base_url: str = "https://api.elevenlabs.io",
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            api_key: ElevenLabs key, or None to disable synthesis
            voice: Voice identity and quality parameters
            base_url: API base URL
            http_client: Client to send requests with (created lazily if None)
        """
        self._api_key = api_key
        self.voice = voice or VoiceConfig()
        self.base_url = base_url.rstrip("/")
        self._client = http_client

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    def synthesis_url(self) -> str:
        return (
            f"{self.base_url}/v1/text-to-speech/{self.voice.voice_id}"
            f"?optimize_streaming_latency=0&output_format={self.voice.output_format}"
        )

    async def synthesize(self, text: str) -> SynthesizedAudio:
        """
        Synthesize speech for a reply.

        Args:
            text: Text to speak

        Returns:
            SynthesizedAudio holding the MP3 bytes

        Raises:
            TTSNotConfiguredError: No ElevenLabs credential configured
            UpstreamServiceError: Transport failure or non-2xx response
        """
        if not self._api_key:
            raise TTSNotConfiguredError()

        payload = {
            "text": text,
            "model_id": self.voice.model_id,
            "voice_settings": {
                "stability": self.voice.stability,
                "similarity_boost": self.voice.similarity_boost,
            },
        }
        headers = {
            "accept": MP3_MEDIA_TYPE,
            "content-type": "application/json",
            "xi-api-key": self._api_key,
        }

        try:
            response = await self._get_client().post(
                self.synthesis_url(), json=payload, headers=headers
            )
        except httpx.HTTPError as e:
            logger.error(f"TTS request to ElevenLabs failed: {e}")
            raise UpstreamServiceError(f"TTS request failed: {e}") from e

        if not response.is_success:
            body = response.text
            logger.error(
                f"ElevenLabs returned {response.status_code} for voice "
                f"{self.voice.voice_id}: {body}"
            )
            raise UpstreamServiceError(
                "TTS request failed", status_code=response.status_code, body=body
            )

        logger.debug(f"Synthesized {len(text)} chars into {len(response.content)} bytes")
        return SynthesizedAudio(data=response.content)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get_model_info(self) -> dict:
        """Get information about the configured voice."""
        return {
            "configured": self.is_configured,
            "voice_id": self.voice.voice_id,
            "model_id": self.voice.model_id,
            "output_format": self.voice.output_format,
        }


# Global service instance (singleton pattern)
_tts_service: Optional[TTSService] = None


def get_tts_service() -> TTSService:
    """Get or create the global TTS service instance."""
    global _tts_service
    if _tts_service is None:
        _tts_service = TTSService(
            api_key=settings.elevenlabs_api_key,
            voice=VoiceConfig(
                voice_id=settings.elevenlabs_voice_id,
                model_id=settings.tts_model_id,
                stability=settings.tts_stability,
                similarity_boost=settings.tts_similarity_boost,
                output_format=settings.tts_output_format,
            ),
            base_url=settings.elevenlabs_base_url,
        )
    return _tts_service

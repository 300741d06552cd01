"""
ASR (Automatic Speech Recognition) Service backed by the OpenAI
transcription API.

Models are tried in order, first success wins:
- gpt-4o-mini-transcribe (primary)
- whisper-1 (legacy fallback)

There is no retry loop and no backoff. Each provider gets exactly one
attempt for a given upload.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from loguru import logger
from openai import AsyncOpenAI

from app.config import settings
from app.services.errors import MissingCredentialError, TranscriptionError

DEFAULT_AUDIO_FILENAME = "audio.webm"
DEFAULT_AUDIO_CONTENT_TYPE = "audio/webm"


@dataclass
class TranscriptionResult:
    """Result from ASR transcription."""

    text: str
    model: str


class TranscriptionProvider:
    """One hosted transcription model."""

    def __init__(self, client: AsyncOpenAI, model: str):
        self.client = client
        self.model = model

    async def transcribe(
        self, audio_data: bytes, filename: str, content_type: str
    ) -> str:
        response = await self.client.audio.transcriptions.create(
            model=self.model,
            file=(filename, audio_data, content_type),
        )
        text = getattr(response, "text", None)
        return str(text) if text is not None else ""


class ASRService:
    """
    Speech-to-text over an ordered list of providers.

    This service provides:
    - Upload of a complete recording to a hosted model
    - Fallback to the next provider on any failure
    - Empty string for recordings with no recognizable speech
    """

    def __init__(
        self,
        providers: Sequence[TranscriptionProvider],
        api_key_variable: Optional[str] = None,
    ):
        """
        Args:
            providers: Providers in the order they are tried. Empty when the
                credential is missing.
            api_key_variable: Name of the credential reported when no
                provider is configured.
        """
        self.providers: List[TranscriptionProvider] = list(providers)
        self._api_key_variable = api_key_variable or "OPENAI_API_KEY"

    @property
    def is_configured(self) -> bool:
        return bool(self.providers)

    async def transcribe(
        self,
        audio_data: bytes,
        filename: str = DEFAULT_AUDIO_FILENAME,
        content_type: str = DEFAULT_AUDIO_CONTENT_TYPE,
    ) -> TranscriptionResult:
        """
        Transcribe a complete recording.

        Args:
            audio_data: Encoded audio (webm, ogg, mp4, wav...)
            filename: Upload filename; the API infers the container from it
            content_type: MIME type of the upload

        Returns:
            TranscriptionResult from the first provider that succeeded

        Raises:
            MissingCredentialError: No provider is configured
            TranscriptionError: Every provider failed
        """
        if not self.providers:
            raise MissingCredentialError(self._api_key_variable)

        last_error: Optional[Exception] = None
        for provider in self.providers:
            try:
                text = await provider.transcribe(
                    audio_data, filename, content_type or DEFAULT_AUDIO_CONTENT_TYPE
                )
            except Exception as e:
                logger.warning(f"Transcription with {provider.model} failed: {e}")
                last_error = e
                continue

            logger.debug(
                f"Transcribed {len(audio_data)} bytes with {provider.model}: "
                f"{len(text)} chars"
            )
            return TranscriptionResult(text=text.strip(), model=provider.model)

        raise TranscriptionError(
            f"All transcription providers failed: {last_error}",
            body=str(last_error) if last_error else None,
        ) from last_error

    async def close(self) -> None:
        """Close the underlying API clients."""
        closed = set()
        for provider in self.providers:
            if id(provider.client) in closed:
                continue
            closed.add(id(provider.client))
            await provider.client.close()

    async def get_model_info(self) -> dict:
        """Get information about the configured providers."""
        return {
            "configured": self.is_configured,
            "models": [provider.model for provider in self.providers],
        }


def build_asr_service(
    api_key: Optional[str],
    models: Sequence[str],
    base_url: Optional[str] = None,
) -> ASRService:
    """Create an ASRService with one provider per model sharing one client."""
    if not api_key:
        return ASRService(providers=[])
    client = AsyncOpenAI(api_key=api_key, base_url=base_url)
    return ASRService(
        providers=[TranscriptionProvider(client, model) for model in models if model]
    )


# Global service instance (singleton pattern)
_asr_service: Optional[ASRService] = None


def get_asr_service() -> ASRService:
    """Get or create the global ASR service instance."""
    global _asr_service
    if _asr_service is None:
        _asr_service = build_asr_service(
            api_key=settings.openai_api_key,
            models=[settings.stt_primary_model, settings.stt_fallback_model],
            base_url=settings.openai_base_url,
        )
    return _asr_service

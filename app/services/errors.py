"""Exceptions raised by the transcription, dialogue and synthesis adapters."""

from typing import Optional


class ServiceError(Exception):
    """Base class for adapter failures."""


class MissingCredentialError(ServiceError):
    """A required API credential is not configured."""

    def __init__(self, variable: str):
        self.variable = variable
        super().__init__(f"Missing {variable}")


class TTSNotConfiguredError(ServiceError):
    """Speech synthesis has no credential, so the feature is off."""

    def __init__(self):
        super().__init__("TTS not configured")


class UpstreamServiceError(ServiceError):
    """The hosted API failed or returned a non-success status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class TranscriptionError(UpstreamServiceError):
    """Every transcription provider failed."""

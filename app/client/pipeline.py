"""
Turn pipeline: capture -> transcribe -> converse -> synthesize.

Each stage takes the previous stage's typed output. A failing stage
raises PipelineError naming itself; anything already appended to the
conversation log stays there.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

import httpx
from loguru import logger

from app.client.capture import NO_SPEECH_MESSAGE, AudioBlob, has_speech
from app.client.playback import PlaybackStore
from app.prompts import DEFAULT_LANGUAGE, ReplyLanguage, Scenario

NO_SPEECH_PLACEHOLDER = "[no speech detected]"
TTS_NOT_CONFIGURED_NOTICE = "Voice replies are not configured on the server."


class PipelineStage(str, Enum):
    CAPTURE = "capture"
    TRANSCRIBE = "transcribe"
    CONVERSE = "converse"
    SYNTHESIZE = "synthesize"


class PipelineError(Exception):
    """A pipeline stage failed."""

    def __init__(self, stage: PipelineStage, message: str):
        self.stage = stage
        self.message = message
        super().__init__(f"{stage.value}: {message}")


@dataclass
class ChatOptions:
    """Learner choices sent with every turn."""

    scenario: Scenario = Scenario.OFF
    language: ReplyLanguage = DEFAULT_LANGUAGE


@dataclass
class Transcript:
    text: str


@dataclass
class Reply:
    text: str


@dataclass
class SpeechResult:
    audio_path: Optional[Path] = None
    notice: Optional[str] = None


@dataclass
class Turn:
    """One completed exchange."""

    transcript: str
    reply: str
    audio_path: Optional[Path] = None
    notice: Optional[str] = None


@dataclass
class ConversationLog:
    """Append-only transcript and reply logs for the current run."""

    transcripts: List[str] = field(default_factory=list)
    replies: List[str] = field(default_factory=list)

    def add_transcript(self, text: str) -> None:
        self.transcripts.append(text or NO_SPEECH_PLACEHOLDER)

    def add_reply(self, text: str) -> None:
        self.replies.append(text)

    def render_transcripts(self) -> str:
        return "\n".join(self.transcripts)

    def render_replies(self) -> str:
        return "\n".join(self.replies)


def _error_message(response: httpx.Response, default: str) -> str:
    """Pull the `error` field out of an error envelope."""
    try:
        payload = response.json()
    except ValueError:
        return f"{default} (HTTP {response.status_code})"
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return f"{default} (HTTP {response.status_code})"


def _json_field(response: httpx.Response, stage: PipelineStage, key: str, default: str) -> str:
    """Read one field from a successful JSON response."""
    try:
        payload = response.json()
    except ValueError as e:
        raise PipelineError(stage, f"{default} (HTTP {response.status_code})") from e
    if not isinstance(payload, dict):
        raise PipelineError(stage, f"{default} (HTTP {response.status_code})")
    return str(payload.get(key) or "")


class VoiceChatClient:
    """HTTP client for the three turn endpoints."""

    def __init__(self, http_client: httpx.AsyncClient):
        self._http = http_client

    async def transcribe(self, blob: AudioBlob) -> str:
        files = {"audio": (blob.filename, blob.data, blob.mime_type)}
        try:
            response = await self._http.post("/api/stt", files=files)
        except httpx.HTTPError as e:
            raise PipelineError(PipelineStage.TRANSCRIBE, f"Network error: {e}") from e
        if not response.is_success:
            raise PipelineError(
                PipelineStage.TRANSCRIBE,
                _error_message(response, "Failed to transcribe audio"),
            )
        return _json_field(response, PipelineStage.TRANSCRIBE, "text", "Failed to transcribe audio")

    async def chat(self, message: str, options: ChatOptions) -> str:
        body = {
            "message": message,
            "scenario": options.scenario.value,
            "language": options.language.value,
        }
        try:
            response = await self._http.post("/api/chat", json=body)
        except httpx.HTTPError as e:
            raise PipelineError(PipelineStage.CONVERSE, f"Network error: {e}") from e
        if not response.is_success:
            raise PipelineError(
                PipelineStage.CONVERSE,
                _error_message(response, "Failed to generate response"),
            )
        return _json_field(response, PipelineStage.CONVERSE, "reply", "Failed to generate response")

    async def synthesize(self, text: str) -> httpx.Response:
        try:
            return await self._http.post("/api/tts", json={"text": text})
        except httpx.HTTPError as e:
            raise PipelineError(PipelineStage.SYNTHESIZE, f"Network error: {e}") from e


class TurnPipeline:
    """Runs one recorded take through every stage."""

    def __init__(self, client: VoiceChatClient, playback: PlaybackStore):
        self.client = client
        self.playback = playback

    def check_capture(self, blob: AudioBlob) -> AudioBlob:
        if not has_speech(blob):
            logger.info(f"Recording too small to submit ({blob.size} bytes)")
            raise PipelineError(PipelineStage.CAPTURE, NO_SPEECH_MESSAGE)
        return blob

    async def transcribe(self, blob: AudioBlob) -> Transcript:
        return Transcript(text=await self.client.transcribe(blob))

    async def converse(self, transcript: Transcript, options: ChatOptions) -> Reply:
        return Reply(text=await self.client.chat(transcript.text, options))

    async def synthesize(self, reply: Reply) -> SpeechResult:
        """Voice the reply. Failures here leave the turn without audio."""
        if not reply.text:
            return SpeechResult()

        try:
            response = await self.client.synthesize(reply.text)
        except PipelineError as e:
            logger.warning(f"Speech synthesis failed: {e.message}")
            return SpeechResult(notice=e.message)

        if response.status_code == 501:
            return SpeechResult(notice=TTS_NOT_CONFIGURED_NOTICE)
        if not response.is_success:
            message = _error_message(response, "Failed to synthesize speech")
            logger.warning(f"Speech synthesis failed: {message}")
            return SpeechResult(notice=message)

        return SpeechResult(audio_path=self.playback.create(response.content))

    async def run(
        self,
        blob: AudioBlob,
        options: ChatOptions,
        log: ConversationLog,
    ) -> Turn:
        """
        Run a full turn, appending to `log` as results arrive.

        Raises:
            PipelineError: capture, transcription or conversation failed
        """
        blob = self.check_capture(blob)

        transcript = await self.transcribe(blob)
        log.add_transcript(transcript.text)

        reply = await self.converse(transcript, options)
        log.add_reply(reply.text)

        speech = await self.synthesize(reply)

        return Turn(
            transcript=transcript.text,
            reply=reply.text,
            audio_path=speech.audio_path,
            notice=speech.notice,
        )

"""
Voice chat session state machine.

    Idle -> Recording -> Submitting -> Idle
    Idle -> Error -> Idle      (microphone failed before recording)

The loading flag is advisory: it refuses a new recording while a turn is
in flight but does not lock anything.
"""

from enum import Enum
from typing import Callable, Optional, Protocol

from loguru import logger

from app.client.capture import AudioBlob, CaptureError
from app.client.pipeline import (
    ChatOptions,
    ConversationLog,
    PipelineError,
    Turn,
    TurnPipeline,
)


class SessionState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    SUBMITTING = "submitting"
    ERROR = "error"


class Recorder(Protocol):
    def start(self) -> None: ...

    def stop(self) -> AudioBlob: ...


class VoiceChatSession:
    """Drives recordings through the turn pipeline and keeps the logs."""

    def __init__(
        self,
        pipeline: TurnPipeline,
        recorder_factory: Callable[[], Recorder],
        options: Optional[ChatOptions] = None,
    ):
        self.pipeline = pipeline
        self.recorder_factory = recorder_factory
        self.options = options or ChatOptions()
        self.log = ConversationLog()
        self.state = SessionState.IDLE
        self.loading = False
        self.error: Optional[str] = None
        self.last_turn: Optional[Turn] = None
        self._recorder: Optional[Recorder] = None

    def start_recording(self) -> bool:
        """Begin a take. Returns False if refused or the microphone failed."""
        if self.loading or self.state in (SessionState.RECORDING, SessionState.SUBMITTING):
            logger.debug(f"Start refused in state {self.state.value}")
            return False

        # Error only leaves through Idle
        self.dismiss_error()
        recorder = self.recorder_factory()
        try:
            recorder.start()
        except CaptureError as e:
            self.state = SessionState.ERROR
            self.error = e.message
            return False

        self._recorder = recorder
        self.state = SessionState.RECORDING
        return True

    async def stop_recording(self) -> Optional[Turn]:
        """Finish the take and submit it."""
        if self.state != SessionState.RECORDING or self._recorder is None:
            return None

        recorder, self._recorder = self._recorder, None
        try:
            blob = recorder.stop()
        except CaptureError as e:
            self.state = SessionState.IDLE
            self.error = e.message
            return None
        return await self.submit(blob)

    async def submit(self, blob: AudioBlob) -> Optional[Turn]:
        """Run one blob through the pipeline, reporting failures on the session."""
        if self.loading:
            logger.debug("Submission refused while another turn is in flight")
            return None

        self.state = SessionState.SUBMITTING
        self.loading = True
        self.error = None
        try:
            turn = await self.pipeline.run(blob, self.options, self.log)
        except PipelineError as e:
            logger.info(f"Turn failed at {e.stage.value}: {e.message}")
            self.error = e.message
            return None
        finally:
            self.loading = False
            self.state = SessionState.IDLE

        self.last_turn = turn
        return turn

    def dismiss_error(self) -> None:
        if self.state == SessionState.ERROR:
            self.state = SessionState.IDLE
        self.error = None

    def close(self) -> None:
        """Release the playable audio resource."""
        self.pipeline.playback.close()

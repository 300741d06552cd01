"""Tests for the voice chat session state machine."""

import httpx
import pytest

from app.client.capture import AudioBlob, CaptureError, CaptureErrorKind
from app.client.pipeline import TurnPipeline, VoiceChatClient
from app.client.playback import PlaybackStore
from app.client.session import SessionState, VoiceChatSession

from .fakes import SPEECH, FakeServer


class FakeRecorder:
    def __init__(self, blob=SPEECH, start_error=None):
        self.blob = blob
        self.start_error = start_error
        self.started = False

    def start(self):
        if self.start_error is not None:
            raise self.start_error
        self.started = True

    def stop(self) -> AudioBlob:
        return self.blob


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def make_session(server, tmp_path):
    sessions = []

    def factory(recorder=None):
        http_client = httpx.AsyncClient(
            transport=httpx.MockTransport(server), base_url="http://genie.test"
        )
        pipeline = TurnPipeline(VoiceChatClient(http_client), PlaybackStore(directory=tmp_path))
        session = VoiceChatSession(pipeline, recorder_factory=lambda: recorder or FakeRecorder())
        sessions.append(session)
        return session

    yield factory
    for session in sessions:
        session.close()


@pytest.mark.asyncio
async def test_idle_recording_submitting_idle(make_session):
    session = make_session()
    assert session.state == SessionState.IDLE

    assert session.start_recording()
    assert session.state == SessionState.RECORDING

    turn = await session.stop_recording()
    assert session.state == SessionState.IDLE
    assert not session.loading
    assert turn.reply == "Hi! Want to count to ten?"
    assert session.log.transcripts == ["Hello"]


def test_capture_failure_enters_error(make_session):
    recorder = FakeRecorder(start_error=CaptureError(CaptureErrorKind.PERMISSION_DENIED))
    session = make_session(recorder)

    assert not session.start_recording()
    assert session.state == SessionState.ERROR
    assert session.error == CaptureError(CaptureErrorKind.PERMISSION_DENIED).message

    session.dismiss_error()
    assert session.state == SessionState.IDLE
    assert session.error is None


def test_start_refused_while_loading(make_session):
    session = make_session()
    session.loading = True
    assert not session.start_recording()
    assert session.state == SessionState.IDLE


def test_second_start_refused_while_recording(make_session):
    session = make_session()
    assert session.start_recording()
    assert not session.start_recording()


@pytest.mark.asyncio
async def test_no_speech_reported(make_session, server):
    session = make_session(FakeRecorder(blob=AudioBlob(b"\x00" * 100, "audio/webm")))
    session.start_recording()

    assert await session.stop_recording() is None
    assert session.state == SessionState.IDLE
    assert session.error.startswith("No speech captured")
    assert server.requests == []


@pytest.mark.asyncio
async def test_failed_turn_keeps_previous_logs(make_session, server):
    session = make_session()
    await session.submit(SPEECH)

    server.fail["/api/chat"] = httpx.Response(500, json={"error": "Failed to generate response"})
    assert await session.submit(SPEECH) is None

    assert session.error == "Failed to generate response"
    assert session.log.transcripts == ["Hello", "Hello"]
    assert session.log.replies == ["Hi! Want to count to ten?"]
    assert session.state == SessionState.IDLE


@pytest.mark.asyncio
async def test_stop_without_recording_is_noop(make_session, server):
    session = make_session()
    assert await session.stop_recording() is None
    assert server.requests == []


@pytest.mark.asyncio
async def test_close_releases_audio(make_session, tmp_path):
    session = make_session()
    turn = await session.submit(SPEECH)
    assert turn.audio_path.exists()

    session.close()
    assert not turn.audio_path.exists()


@pytest.mark.asyncio
async def test_non_json_response_sets_error(make_session, server):
    server.fail["/api/stt"] = httpx.Response(200, text="<html>captive portal</html>")
    session = make_session()

    assert await session.submit(SPEECH) is None
    assert session.error == "Failed to transcribe audio (HTTP 200)"
    assert session.state == SessionState.IDLE


def test_start_from_error_passes_through_idle(make_session):
    seen = []

    class WatchingRecorder(FakeRecorder):
        def start(self):
            seen.append((session.state, session.error))
            super().start()

    session = make_session(WatchingRecorder())
    session.state = SessionState.ERROR
    session.error = "Microphone busy"

    assert session.start_recording()
    assert seen == [(SessionState.IDLE, None)]
    assert session.state == SessionState.RECORDING

"""Fake OpenAI clients, a mock ElevenLabs transport and a fake Genie server."""

from types import SimpleNamespace

import httpx

from app.client.capture import AudioBlob
from app.services import ASRService, LLMService, TranscriptionProvider, TTSService

FAKE_MP3 = b"ID3\x03\x00\x00\x00" + b"\xff\xfb" * 64


class FakeTranscriptions:
    """Stands in for client.audio.transcriptions; outcomes keyed by model."""

    def __init__(self, outcomes):
        self.outcomes = outcomes
        self.calls = []

    async def create(self, model, file):
        self.calls.append({"model": model, "file": file})
        outcome = self.outcomes[model]
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(text=outcome)


class FakeCompletions:
    """Stands in for client.chat.completions."""

    def __init__(self, content="Hi there! Let's learn colors.", error=None, choices=None):
        self.content = content
        self.error = error
        self.choices = choices
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if self.choices is not None:
            return SimpleNamespace(choices=self.choices)
        message = SimpleNamespace(role="assistant", content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(index=0, message=message)])


async def _noop_close():
    return None


def make_openai_client(transcriptions=None, completions=None):
    return SimpleNamespace(
        audio=SimpleNamespace(transcriptions=transcriptions),
        chat=SimpleNamespace(completions=completions),
        close=_noop_close,
    )


def make_asr_service(outcomes, models=("gpt-4o-mini-transcribe", "whisper-1")):
    transcriptions = FakeTranscriptions(outcomes)
    client = make_openai_client(transcriptions=transcriptions)
    service = ASRService(providers=[TranscriptionProvider(client, m) for m in models])
    return service, transcriptions


def make_llm_service(**kwargs):
    completions = FakeCompletions(**kwargs)
    service = LLMService(client=make_openai_client(completions=completions))
    return service, completions


def make_tts_service(handler, api_key="test-eleven-key", **kwargs):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TTSService(api_key=api_key, http_client=http_client, **kwargs)


def mp3_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, content=FAKE_MP3, headers={"content-type": "audio/mpeg"})


SPEECH = AudioBlob(data=b"\x1a\x45\xdf\xa3" + b"\x01" * 8000, mime_type="audio/webm;codecs=opus")


class FakeServer:
    """MockTransport handler for the three turn endpoints."""

    def __init__(self, transcript="Hello", reply="Hi! Want to count to ten?", tts_status=200):
        self.transcript = transcript
        self.reply = reply
        self.tts_status = tts_status
        self.requests = []
        self.fail = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.fail:
            return self.fail[path]
        if path == "/api/stt":
            return httpx.Response(200, json={"text": self.transcript})
        if path == "/api/chat":
            return httpx.Response(200, json={"reply": self.reply})
        if path == "/api/tts":
            if self.tts_status == 200:
                return httpx.Response(200, content=FAKE_MP3, headers={"content-type": "audio/mpeg"})
            return httpx.Response(self.tts_status, json={"error": "TTS not configured"})
        return httpx.Response(404)

    def paths(self):
        return [r.url.path for r in self.requests]

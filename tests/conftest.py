"""Shared fixtures: fake services installed on the app and an API client."""

import builtins

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.services.asr_service import get_asr_service
from app.services.llm_service import get_llm_service
from app.services.tts_service import get_tts_service

from .fakes import make_asr_service, make_llm_service, make_tts_service, mp3_handler


@pytest.fixture
def asr_service():
    service, _ = make_asr_service({"gpt-4o-mini-transcribe": "Hello Genie"})
    return service


@pytest.fixture
def llm_service():
    service, _ = make_llm_service()
    return service


@pytest.fixture
def tts_service():
    return make_tts_service(mp3_handler)


@pytest.fixture
def override_services(asr_service, llm_service, tts_service):
    """Install fake services on the app and remove them afterwards."""
    app.dependency_overrides[get_asr_service] = lambda: asr_service
    app.dependency_overrides[get_llm_service] = lambda: llm_service
    app.dependency_overrides[get_tts_service] = lambda: tts_service
    yield app.dependency_overrides
    app.dependency_overrides.clear()


@pytest.fixture
def client(override_services):
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def no_portaudio(monkeypatch):
    """Make `import sounddevice` fail the way it does without PortAudio."""
    real_import = builtins.__import__

    def fake_import(name, *args, **kwargs):
        if name == "sounddevice":
            raise OSError("PortAudio library not found")
        return real_import(name, *args, **kwargs)

    monkeypatch.setattr(builtins, "__import__", fake_import)

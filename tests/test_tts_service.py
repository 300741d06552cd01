"""Tests for the ElevenLabs synthesis adapter."""

import json

import httpx
import pytest

from app.services import TTSNotConfiguredError, TTSService, UpstreamServiceError, VoiceConfig

from .fakes import FAKE_MP3, make_tts_service, mp3_handler


@pytest.mark.asyncio
async def test_request_shape():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return mp3_handler(request)

    service = make_tts_service(handler, voice=VoiceConfig(voice_id="voice-123"))
    audio = await service.synthesize("Great job!")

    assert audio.data == FAKE_MP3
    assert audio.media_type == "audio/mpeg"

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v1/text-to-speech/voice-123"
    assert request.url.params["output_format"] == "mp3_44100_128"
    assert request.url.params["optimize_streaming_latency"] == "0"
    assert request.headers["xi-api-key"] == "test-eleven-key"
    assert request.headers["accept"] == "audio/mpeg"

    body = json.loads(request.content)
    assert body == {
        "text": "Great job!",
        "model_id": "eleven_multilingual_v2",
        "voice_settings": {"stability": 0.4, "similarity_boost": 0.8},
    }


@pytest.mark.asyncio
async def test_default_voice():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return mp3_handler(request)

    await make_tts_service(handler).synthesize("Hi")
    assert seen[0].url.path == "/v1/text-to-speech/21m00Tcm4TlvDq8ikWAM"


@pytest.mark.asyncio
async def test_not_configured():
    service = TTSService(api_key=None)
    assert not service.is_configured
    with pytest.raises(TTSNotConfiguredError):
        await service.synthesize("Hi")


@pytest.mark.asyncio
async def test_upstream_error_body_surfaced():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, text='{"detail": "invalid api key"}')

    service = make_tts_service(handler)
    with pytest.raises(UpstreamServiceError) as exc_info:
        await service.synthesize("Hi")

    assert exc_info.value.status_code == 401
    assert "invalid api key" in exc_info.value.body


@pytest.mark.asyncio
async def test_transport_error_wrapped():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    service = make_tts_service(handler)
    with pytest.raises(UpstreamServiceError):
        await service.synthesize("Hi")


@pytest.mark.asyncio
async def test_close_releases_client():
    service = make_tts_service(mp3_handler)
    await service.close()
    assert service._client is None

"""
HTTP API for one voice-chat turn.

The browser (or terminal client) drives a turn through three stateless
endpoints:
1. POST /api/stt  - upload recorded audio, receive the transcript
2. POST /api/chat - send the transcript, receive Genie's reply
3. POST /api/tts  - send the reply, receive MP3 audio

Every failure is returned as a JSON envelope: {"error": ..., "details"?: ...}
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse, Response
from loguru import logger
from pydantic import BaseModel

from app.prompts import ReplyLanguage, Scenario
from app.services import (
    ASRService,
    LLMService,
    MissingCredentialError,
    TTSNotConfiguredError,
    TTSService,
    UpstreamServiceError,
)
from app.services.asr_service import (
    DEFAULT_AUDIO_CONTENT_TYPE,
    DEFAULT_AUDIO_FILENAME,
    get_asr_service,
)
from app.services.llm_service import get_llm_service
from app.services.tts_service import get_tts_service

router = APIRouter()


class ChatRequest(BaseModel):
    """Body of POST /api/chat."""

    message: Any = None
    scenario: Optional[Scenario] = None
    language: Optional[ReplyLanguage] = None


class TTSRequest(BaseModel):
    """Body of POST /api/tts. `text` is checked by the handler."""

    text: Any = None


def error_response(status_code: int, error: str, details: Any = None) -> JSONResponse:
    """Build the JSON error envelope."""
    content = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


@router.post("/api/stt")
async def speech_to_text(
    audio: Optional[UploadFile] = File(None),
    asr_service: ASRService = Depends(get_asr_service),
):
    """Transcribe an uploaded recording (multipart field `audio`)."""
    if not asr_service.is_configured:
        return error_response(500, "Missing OPENAI_API_KEY")

    if audio is None:
        return error_response(400, "No audio uploaded")

    try:
        audio_data = await audio.read()
        if not audio_data:
            return error_response(400, "No audio uploaded")

        result = await asr_service.transcribe(
            audio_data,
            filename=audio.filename or DEFAULT_AUDIO_FILENAME,
            content_type=audio.content_type or DEFAULT_AUDIO_CONTENT_TYPE,
        )
        return {"text": result.text}

    except MissingCredentialError as e:
        return error_response(500, str(e))
    except Exception as e:
        logger.error(f"/api/stt error: {e}")
        return error_response(500, "Failed to transcribe audio")


@router.post("/api/chat")
async def chat(
    request: ChatRequest,
    llm_service: LLMService = Depends(get_llm_service),
):
    """Generate Genie's reply to one transcribed message."""
    if not llm_service.is_configured:
        return error_response(500, "Missing OPENAI_API_KEY")

    message = "" if request.message is None else str(request.message)

    try:
        reply = await llm_service.generate_reply(
            message,
            scenario=request.scenario,
            language=request.language,
        )
        return {"reply": reply}

    except MissingCredentialError as e:
        return error_response(500, str(e))
    except Exception as e:
        logger.error(f"/api/chat error: {e}")
        return error_response(500, "Failed to generate response")


@router.post("/api/tts")
async def text_to_speech(
    request: TTSRequest,
    tts_service: TTSService = Depends(get_tts_service),
):
    """Synthesize a reply as MP3 audio."""
    text = request.text
    if not text or not isinstance(text, str):
        return error_response(400, "Missing text")

    try:
        audio = await tts_service.synthesize(text)
        return Response(content=audio.data, media_type=audio.media_type)

    except TTSNotConfiguredError as e:
        return error_response(501, str(e))
    except UpstreamServiceError as e:
        logger.error(f"/api/tts upstream error: {e}")
        return error_response(500, "TTS request failed", details=e.body)
    except Exception as e:
        logger.error(f"/api/tts error: {e}")
        return error_response(500, "Failed to synthesize speech")

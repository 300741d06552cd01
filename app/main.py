"""
Genie Voice Tutor - Main Application Entry Point

This is the main FastAPI application that serves the Genie kids English
tutor. It provides:
- The single-page voice chat UI at /
- POST /api/stt, /api/chat, /api/tts for one recorded turn
- Health and status endpoints

Hosted services:
- STT: OpenAI gpt-4o-mini-transcribe (whisper-1 fallback)
- LLM: OpenAI gpt-4o-mini
- TTS: ElevenLabs eleven_multilingual_v2 (optional)
"""

import sys
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger

from app import __version__
from app.api import voice_router
from app.config import settings
from app.services.asr_service import get_asr_service
from app.services.llm_service import get_llm_service
from app.services.tts_service import get_tts_service

STATIC_DIR = Path(__file__).parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    - Startup: report which hosted services are configured
    - Shutdown: close the API clients
    """
    logger.info("=" * 60)
    logger.info("Genie Voice Tutor Starting...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug Mode: {settings.debug}")
    logger.info("=" * 60)

    if settings.openai_api_key:
        logger.info(
            f"✓ OpenAI configured (STT: {settings.stt_primary_model} -> "
            f"{settings.stt_fallback_model}, LLM: {settings.llm_model_name})"
        )
    else:
        logger.warning("⚠ OPENAI_API_KEY not set - /api/stt and /api/chat will fail")

    if settings.tts_configured:
        logger.info(f"✓ ElevenLabs configured (voice: {settings.elevenlabs_voice_id})")
    else:
        logger.warning("⚠ ELEVENLABS_API_KEY not set - replies will not be spoken")

    logger.info(f"UI: http://{settings.host}:{settings.port}/")

    yield  # Application runs here

    logger.info("Genie Voice Tutor Shutting Down...")
    try:
        await get_tts_service().close()
        await get_asr_service().close()
        await get_llm_service().close()
    except Exception as e:
        logger.error(f"Error during shutdown: {e}")

    logger.info("Genie Voice Tutor Stopped")


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return malformed request bodies as a 400 error envelope."""
    logger.debug(f"Invalid request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request body",
            "details": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
                for err in exc.errors()
            ],
        },
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Genie Voice Tutor",
        description="Voice chat English tutor for kids with hosted STT + LLM + TTS",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Include routers
    app.include_router(voice_router, tags=["conversation"])

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    return app


# Create the app instance
app = create_app()


@app.get("/", include_in_schema=False)
async def index():
    """Serve the voice chat page."""
    return FileResponse(STATIC_DIR / "index.html")


@app.get("/health", tags=["monitoring"])
async def health():
    """
    Basic health check endpoint.
    Returns 200 if the server is running.
    """
    return {"status": "healthy"}


@app.get("/status", tags=["monitoring"])
async def status():
    """
    Status endpoint showing which hosted services are configured.
    Never exposes credentials.
    """
    return {
        "status": "running",
        "environment": settings.environment,
        "version": __version__,
        "services": {
            "asr": await get_asr_service().get_model_info(),
            "llm": await get_llm_service().get_model_info(),
            "tts": await get_tts_service().get_model_info(),
        },
    }


def configure_logging():
    """Configure loguru logging based on settings."""
    # Remove default handler
    logger.remove()

    log_format = settings.log_format

    logger.add(
        sys.stderr,
        format=log_format,
        level=settings.log_level,
        colorize=True,
    )

    # Add file handler for production
    if settings.is_production:
        logger.add(
            "logs/genie-{time:YYYY-MM-DD}.log",
            rotation="1 day",
            retention="7 days",
            level="INFO",
            format=log_format,
        )


if __name__ == "__main__":
    configure_logging()

    logger.info("")
    logger.info("=" * 60)
    logger.info("  Genie Voice Tutor")
    logger.info("  Speak, listen and learn English")
    logger.info("=" * 60)
    logger.info(f"  Server: http://{settings.host}:{settings.port}")
    logger.info(f"  Environment: {settings.environment}")
    logger.info("=" * 60)

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )

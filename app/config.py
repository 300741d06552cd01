"""
Configuration module for the Genie voice tutor.
Uses pydantic-settings for environment variable management.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # ===========================================
    # Server Configuration
    # ===========================================
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")
    environment: str = Field(default="development", description="Environment name")

    # ===========================================
    # OpenAI (transcription + chat)
    # ===========================================
    openai_api_key: Optional[str] = Field(
        default=None, description="API key for transcription and chat completion"
    )
    openai_base_url: Optional[str] = Field(
        default=None, description="Override for the OpenAI API base URL"
    )
    stt_primary_model: str = Field(
        default="gpt-4o-mini-transcribe",
        description="Transcription model tried first",
    )
    stt_fallback_model: str = Field(
        default="whisper-1",
        description="Legacy transcription model used when the primary fails",
    )
    llm_model_name: str = Field(
        default="gpt-4o-mini", description="Chat completion model"
    )
    llm_temperature: float = Field(
        default=0.6, description="Sampling temperature for replies"
    )
    llm_max_tokens: int = Field(
        default=180, description="Maximum tokens per reply"
    )

    # ===========================================
    # ElevenLabs (text-to-speech)
    # ===========================================
    elevenlabs_api_key: Optional[str] = Field(
        default=None, description="API key for speech synthesis (TTS disabled if unset)"
    )
    elevenlabs_voice_id: str = Field(
        default="21m00Tcm4TlvDq8ikWAM", description="Voice used for replies"
    )
    elevenlabs_base_url: str = Field(
        default="https://api.elevenlabs.io", description="ElevenLabs API base URL"
    )
    tts_model_id: str = Field(
        default="eleven_multilingual_v2", description="ElevenLabs synthesis model"
    )
    tts_stability: float = Field(default=0.4, description="Voice stability")
    tts_similarity_boost: float = Field(
        default=0.8, description="Voice similarity boost"
    )
    tts_output_format: str = Field(
        default="mp3_44100_128", description="ElevenLabs output format"
    )

    # ===========================================
    # CORS Configuration
    # ===========================================
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        description="Comma-separated list of allowed CORS origins",
    )

    # ===========================================
    # Terminal client
    # ===========================================
    client_server_url: str = Field(
        default="http://localhost:8000",
        description="Server the terminal client talks to",
    )

    # ===========================================
    # Logging
    # ===========================================
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        description="Loguru log format",
    )

    # ===========================================
    # Computed Properties
    # ===========================================
    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string to list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def tts_configured(self) -> bool:
        return bool(self.elevenlabs_api_key)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Global settings instance for convenience
settings = get_settings()

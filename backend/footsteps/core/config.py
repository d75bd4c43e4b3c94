"""
Configuration management using Pydantic Settings
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# config.py is at: backend/footsteps/core/config.py
_current_file = Path(__file__).resolve()
BACKEND_DIR = _current_file.parent.parent.parent
PROJECT_ROOT = BACKEND_DIR.parent
ENV_FILE = PROJECT_ROOT / ".env"
# Fallback: .env inside backend/
if not ENV_FILE.exists():
    ENV_FILE = BACKEND_DIR / ".env"
if ENV_FILE.exists():
    load_dotenv(ENV_FILE, override=True)


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Footsteps"
    app_env: str = Field(default="development", description="Application environment")
    log_level: str = Field(default="INFO", description="Logging level")
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, ge=1, le=65535, description="API port")
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        description="Allowed CORS origins (comma-separated)"
    )

    # Logging
    log_uvicorn_access: bool = Field(default=False, description="Enable Uvicorn access logging")
    log_module_levels: Optional[str] = Field(
        default=None,
        description='Module-specific log levels (JSON string, e.g., {"footsteps.core": "DEBUG"})'
    )
    log_format: str = Field(
        default="json",
        description="Log format: 'json' for structured logging, 'text' for plain text"
    )
    log_file_enabled: bool = Field(default=True, description="Enable file logging")
    log_file_path: str = Field(
        default="logs/footsteps.log",
        description="Path to log file (relative to project root)"
    )
    log_file_retention: int = Field(default=14, ge=1, description="Number of days to keep log files")
    log_sensitive_data: bool = Field(
        default=False,
        description="Disable masking of API keys in logs - NOT RECOMMENDED"
    )

    # Gemini
    gemini_api_key: Optional[str] = Field(default=None, description="Google AI Studio API key")
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com",
        description="Generative Language API base URL"
    )
    gemini_text_model: str = Field(default="gemini-3-flash-preview")
    gemini_counselor_model: str = Field(default="gemini-3-pro-preview")
    gemini_image_model: str = Field(default="gemini-2.5-flash-image")
    gemini_tts_model: str = Field(default="gemini-2.5-flash-preview-tts")
    gemini_maps_model: str = Field(default="gemini-2.5-flash")
    gemini_video_model: str = Field(default="veo-3.1-fast-generate-preview")
    gemini_tts_voice: str = Field(default="Puck", description="Prebuilt voice for speech generation")
    llm_timeout_seconds: int = Field(default=60, ge=5, le=600, description="Transport timeout per request (seconds)")
    llm_temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Temperature for counselor chat")

    # Resilience
    genai_max_retries: int = Field(default=2, ge=0, le=10, description="Attempts per remote call")
    genai_backoff_base_seconds: float = Field(
        default=1.5,
        ge=0.0,
        description="Backoff base: delay before retry n is 2**n * base"
    )
    offline_mode: bool = Field(default=False, description="Start with the connectivity probe reporting offline")
    video_poll_interval_seconds: float = Field(default=10.0, ge=0.0)
    video_max_polls: int = Field(default=60, ge=1)

    # Audio
    speech_sample_rate: int = Field(default=24000, ge=8000, description="Sample rate of generated speech (PCM16 mono)")

    @field_validator("gemini_api_key", mode="before")
    @classmethod
    def blank_key_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def models(self) -> dict:
        """Configured model per modality"""
        return {
            "text": self.gemini_text_model,
            "counselor": self.gemini_counselor_model,
            "image": self.gemini_image_model,
            "tts": self.gemini_tts_model,
            "maps": self.gemini_maps_model,
            "video": self.gemini_video_model,
        }

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()

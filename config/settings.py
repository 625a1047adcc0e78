"""Application settings and configuration management."""
from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ROOT = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    APP_CONFIG_PATH: str = Field(default=str(ROOT / "app_config.json"))

    # Speech recognition stream
    SPEECH_WS_URL: str = "wss://api.deepgram.com/v1/listen"
    SPEECH_MODEL: str = "nova-2-general"
    SPEECH_LANGUAGE: str = "en"
    SPEECH_ENDPOINTING_MS: int = 300
    SPEECH_UTTERANCE_END_MS: int = 1000
    AUDIO_SAMPLE_RATE: int = 16000
    AUDIO_CHANNELS: int = 1
    AUDIO_CHUNK_MS: int = 100

    # Session presentation
    END_DELAY_SECONDS: float = 2.0
    SPEECH_MS_PER_CHAR: int = 50

    # HTTP
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    BACKEND_URL: str = "http://127.0.0.1:8000"
    BACKEND_TIMEOUT_S: float = 90.0
    CORS_ORIGINS: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"]
    )

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()

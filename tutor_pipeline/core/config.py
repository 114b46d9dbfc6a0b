"""Configuration management for the Tutor Pipeline Service."""

from typing import List, Optional
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
import json


class Settings(BaseSettings):
    """Application settings with validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    # Application
    APP_NAME: str = "Tutor Pipeline Service"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production|test)$")
    SERVICE_NAME: str = "tutor-pipeline"
    SERVICE_PORT: int = 8003

    # OpenAI
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o"
    COMPLETION_MAX_RETRIES: int = Field(default=3, ge=1)

    # Persistence ("memory://" keeps everything in process)
    DATABASE_URL: str = "sqlite+aiosqlite:///./tutor.db"
    DATABASE_ECHO: bool = False

    # Uploads
    UPLOAD_DIR: str = "./uploads"
    MAX_UPLOAD_SIZE_MB: int = 20
    ALLOWED_FILE_TYPES: List[str] = Field(default_factory=lambda: ["pdf", "docx"])

    # Processing
    CHUNK_TARGET_TOKENS: int = Field(default=500, gt=0)
    CHUNK_OVERLAP_FRACTION: float = Field(default=0.2, ge=0.0, lt=1.0)
    MAX_CONCURRENT_JOBS: int = Field(default=5, ge=1)
    MOCK_EXAM_QUESTION_COUNT: int = 30

    # Logging
    LOG_LEVEL: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    LOG_FORMAT: str = Field(default="json", pattern="^(json|plain)$")

    # CORS
    CORS_ORIGINS: List[str] = Field(default_factory=list)

    @field_validator("CORS_ORIGINS", "ALLOWED_FILE_TYPES", mode="before")
    def parse_list(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [item.strip() for item in v.split(",") if item.strip()]
        return v

    # Monitoring
    ENABLE_METRICS: bool = True

    def get_max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == "production"

    def uses_memory_storage(self) -> bool:
        return self.DATABASE_URL.startswith("memory://")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()

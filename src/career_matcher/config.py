"""Configuration management for Career Matcher."""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # API Keys
    openai_api_key: Optional[str] = Field(None, description="OpenAI API key for résumé extraction")
    groq_api_key: Optional[str] = Field(None, description="Groq API key used when OpenAI is not configured")

    # Model Configuration
    extraction_model: str = Field("gpt-4o-mini", description="OpenAI model for structured extraction")
    groq_extraction_model: str = Field("llama-3.1-8b-instant", description="Groq model for structured extraction")

    # Ingestion Configuration
    max_upload_bytes: int = Field(10 * 1024 * 1024, description="Largest accepted résumé in bytes")
    storage_dir: str = Field("./data/uploads", description="Directory used by the local object storage")
    storage_key_prefix: str = Field("resumes", description="Key prefix for stored résumés")
    storage_chunk_size: int = Field(256 * 1024, description="Write chunk size for local storage")
    collaborator_timeout: float = Field(60.0, description="Seconds before a collaborator call counts as failed")

    # Matching Configuration
    high_match_threshold: int = Field(85, description="Score floor for the high-match filter")
    activity_log_size: int = Field(50, description="Recent activity entries kept per session")

    # Application Configuration
    debug: bool = Field(False, description="Enable debug mode")
    log_level: str = Field("INFO", description="Logging level")

    # Server Configuration
    host: str = Field("0.0.0.0", description="Server host")
    port: int = Field(8000, description="Server port")
    reload: bool = Field(False, description="Enable auto-reload")
    allowed_origins: list[str] = Field(["*"], description="CORS allowed origins")


# Global settings instance
settings = Settings()

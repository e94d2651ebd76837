"""Shared configuration for the worker and the API."""
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # MongoDB Configuration
    mongo_url: str = "mongodb://localhost:27017"
    mongo_db_name: str = "bizhealth_pipeline"

    # Redis Configuration
    redis_url: str = "redis://localhost:6379"
    redis_progress_channel: str = "pipeline_updates"

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False

    # Worker Configuration
    worker_id: Optional[str] = None
    poll_interval: float = 30.0
    inter_stage_delay: float = 2.0
    claim_timeout: int = 3600  # seconds
    pipeline_variant: str = "full"
    output_dir: str = "output"

    # Content Generation
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = "claude-sonnet-4-20250514"
    anthropic_max_tokens: int = 16000
    generation_timeout: float = 600.0
    chars_per_page: int = 3000

    # WebSocket Configuration
    ws_heartbeat_interval: int = 30

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()

"""Environment-based configuration for the remediation engine."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Remediation engine configuration.

    All settings can be overridden via environment variables with
    REMEDY_ prefix. For example:
        REMEDY_MODEL=claude-opus-4-1
        REMEDY_MAX_STEPS=15
    """

    # Reasoning model
    model: str = "claude-sonnet-4-5"
    max_tokens: int = 4096
    request_timeout_s: float = 120.0
    max_retries: int = 2  # Anthropic SDK backoff, not engine retries

    # Agentic loop bounds
    max_steps: int = 10
    max_context_chars: int = 8000
    loop_timeout_s: float = 600.0  # 10 minutes
    step_interval_s: float = 5.0

    # Audit log
    db_path: Path = Path.home() / ".remedy" / "remedy.db"

    # RPC service
    host: str = "127.0.0.1"
    port: int = 8085

    model_config = {"env_prefix": "REMEDY_"}


settings = Settings()


@lru_cache
def get_settings() -> Settings:
    """FastAPI dependency returning the process-wide settings."""
    return settings

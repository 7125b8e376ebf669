"""Application configuration."""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine settings loaded from environment (``BRE_`` prefix)."""

    # API
    app_name: str = "Business Rule Engine"
    debug: bool = False
    log_level: str = "INFO"

    # Evaluation
    filter_prefix: str = "xls"
    escape_marker: str = "_"
    trace_fact: str = "trace"
    max_expression_depth: int = 200

    # Paths
    package_path: str | None = None

    model_config = {"env_prefix": "BRE_", "env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

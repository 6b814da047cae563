"""Application settings loaded from the environment."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime configuration.

    Every field can be overridden with a ``TEAMTASK_``-prefixed environment
    variable (e.g. ``TEAMTASK_DATABASE_URL``) or a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="TEAMTASK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./teamtask.db"
    database_echo: bool = False

    # HTTP
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"

    # Attachments
    attachment_max_file_size: int = 10 * 1024 * 1024
    attachment_max_files_per_task: int = 10

    # Pagination
    default_page_size: int = 50
    max_page_size: int = 100


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide settings instance (loaded once)."""
    return Settings()

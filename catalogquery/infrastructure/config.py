"""Application configuration.

Loads settings from environment variables with sensible defaults.
``log_level`` and ``debug`` are applied by ``logging_config.configure_logging``.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    debug: bool = False

    # Database
    database_url: str = "postgresql+asyncpg://catalog:catalog_dev_password@db:5432/catalog"

    # Tag service
    tag_service_url: str = "http://tags:8010"
    tag_service_timeout: float = 5.0

    # Segment service
    segment_service_url: str = "http://segments:8020"
    segment_timeout: float = 10.0

    # Pagination
    default_per_page: int = 20
    max_per_page: int = 200
    id_list_per_page: int = 100

    # Logging
    log_level: str = "INFO"

    class Config:
        """Pydantic configuration."""

        env_prefix = "CATALOG_"
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()

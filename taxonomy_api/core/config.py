"""
Application configuration using Pydantic settings
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables"""

    # Application
    PROJECT_NAME: str = "Taxonomy API"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = True
    BACKEND_CORS_ORIGINS: List[str] = ["*"]

    # Database
    database_url: str = "sqlite+aiosqlite:///./taxonomy.db"
    db_echo: bool = False

    # Connection pool settings (ignored by SQLite)
    db_pool_size: int = 20
    db_max_overflow: int = 0
    db_pool_pre_ping: bool = True

    # Category policy
    min_items_for_featured: int = 5

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()

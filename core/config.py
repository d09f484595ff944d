"""
Application configuration using Pydantic Settings
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings with environment variable support"""
    
    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///bangumi.db"
    
    # Logging
    LOG_LEVEL: str = "INFO"
    
    # Source dataset
    DATASET_PACKAGE: str = "bangumi-data"
    DATASET_VERSION: str = "latest"
    DATASET_CDN_URL: str = "https://cdn.jsdelivr.net/npm"
    DATASET_PACKAGE_DIR: Optional[str] = None  # Local npm package, skips download
    DATASET_CACHE_DIR: Optional[str] = None
    
    # HTTP
    HTTP_TIMEOUT: float = 60.0
    MAX_RETRIES: int = 3
    RETRY_DELAY: float = 1.0
    
    # ETL Configuration
    RESET_ON_RUN: bool = True
    GENERATOR_NAME: str = "bangumi-db"
    
    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()

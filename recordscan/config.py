"""
Application settings for the recordscan HTTP service.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Upper bound on recognized text accepted per document
    MAX_TEXT_LENGTH: int = 50_000

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()

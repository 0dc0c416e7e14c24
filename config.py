"""
Configuration management for the Note Editor enhancement service.

Loads environment variables from .env file and provides typed access to configuration.
Subsystem settings (storage, inference, acquisition) live in infra.InfraConfig.
"""

import logging
import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)


class Config:
    """Configuration class for the enhancement service."""

    # API Configuration
    APP_PORT = int(os.getenv("APP_PORT", "8000"))

    # Environment
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # CORS, comma-separated
    CORS_ALLOW_ORIGINS = os.getenv("CORS_ALLOW_ORIGINS", "*")

    @classmethod
    def log_level(cls) -> int:
        """Numeric logging level; unknown names fall back to INFO."""
        level = logging.getLevelName(cls.LOG_LEVEL)
        return level if isinstance(level, int) else logging.INFO

    @classmethod
    def cors_origins(cls) -> List[str]:
        return [origin.strip() for origin in cls.CORS_ALLOW_ORIGINS.split(",") if origin.strip()]

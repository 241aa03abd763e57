"""
Configuration Management using Pydantic Settings

Loads from environment variables (prefix WMS_) with .env file support.
Type-safe configuration with validation.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import Optional
from pathlib import Path
from dotenv import load_dotenv
import logging
import sys

logger = logging.getLogger(__name__)

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def load_env_file() -> bool:
    """Load .env file from the first location that has one"""
    possible_paths = [
        Path('.env'),
        Path(__file__).parent.parent / '.env',
        Path(__file__).parent.parent.parent / '.env',
    ]

    for path in possible_paths:
        if path.exists():
            load_dotenv(path)
            logger.debug(f"Loaded .env from: {path.absolute()}")
            return True

    logger.debug("No .env file found, using environment variables")
    return False


class Settings(BaseSettings):

    """Application settings"""

    model_config = SettingsConfigDict(
        env_prefix='WMS_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

    # ========================================================================
    # Task Server
    # ========================================================================

    default_endpoint: Optional[str] = Field(
        default=None,
        description="Fact submission endpoint used when a task carries none"
    )

    # ========================================================================
    # Wizard
    # ========================================================================

    wizard_config_path: Optional[Path] = Field(
        default=None,
        description="Explicit wizard_rules.yaml path (None = search default locations)"
    )

    # ========================================================================
    # Logging Configuration
    # ========================================================================

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        if v.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}")
        return v.upper()


# ============================================================================
# Global Settings Instance
# ============================================================================

_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get global settings instance

    Usage:
        from warehouse_operator.config.settings import get_settings
        settings = get_settings()
        print(settings.default_endpoint)
    """
    global _settings
    if _settings is None:
        load_env_file()
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings (useful for testing)"""
    global _settings
    _settings = Settings()
    return _settings


# ============================================================================
# Logging Configuration
# ============================================================================

def setup_logging(settings: Optional[Settings] = None):
    """
    Configure logging based on settings

    Usage:
        from warehouse_operator.config.settings import setup_logging, get_settings
        setup_logging(get_settings())
    """
    if settings is None:
        settings = get_settings()

    formatter = logging.Formatter(settings.log_format)

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(settings.log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    logging.getLogger('transitions').setLevel(logging.WARNING)

    root_logger.info(f"Logging configured: level={settings.log_level}")

"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import Optional


class LedgerConfig(BaseSettings):
    """Personal ledger configuration"""

    # Storage configuration
    storage_backend: str = "sqlite"  # sqlite or memory
    database_path: str = "bank.s3db"

    # Account identity configuration
    account_number_length: int = 16  # 15 payload digits + 1 check digit
    pin_length: int = 6
    max_generation_attempts: int = 1000

    # Logging configuration
    log_level: str = "WARNING"  # successful operations log at INFO
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stderr

    @field_validator("storage_backend")
    @classmethod
    def _known_backend(cls, value: str) -> str:
        value = value.lower()
        if value not in ("sqlite", "memory"):
            raise ValueError("storage_backend must be 'sqlite' or 'memory'")
        return value

    @field_validator("account_number_length")
    @classmethod
    def _long_enough(cls, value: int) -> int:
        if value < 2:
            raise ValueError("account_number_length must be at least 2")
        return value

    @field_validator("pin_length", "max_generation_attempts")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be positive")
        return value

    class Config:
        env_prefix = "LEDGER_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = LedgerConfig()


def get_config() -> LedgerConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LedgerConfig:
    """Reload configuration from environment"""
    global config
    config = LedgerConfig()
    return config

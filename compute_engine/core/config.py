"""
Engine configuration.

Centralized configuration management with environment variables. Every
setting can be overridden per engine through ``ComputeEngine(**overrides)``.
"""

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class NumericMode(str, Enum):
    """Approximate representation used by N() and by decimal literals."""

    MACHINE = "machine"
    BIGNUM = "bignum"


class Settings(BaseSettings):
    """Engine settings"""

    model_config = SettingsConfigDict(
        env_prefix="COMPUTE_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Numerics
    NUMERIC_MODE: NumericMode = NumericMode.MACHINE
    PRECISION: int = 100  # significant digits in bignum mode

    # Parsing
    DICTIONARY_CATEGORIES: list[str] = [
        "core",
        "symbols",
        "arithmetic",
        "relational",
        "logic",
        "trigonometry",
        "calculus",
        "sets",
    ]
    PRESERVE_LATEX: bool = False
    APPLIED_FUNCTION_SYMBOLS: list[str] = ["f", "g", "h"]
    MAX_RECURSION_DEPTH: int = 100

    # Logging
    LOG_LEVEL: str = "WARNING"
    LOG_FORMAT: str = "text"  # json or text
    LOG_FILE: Optional[str] = None


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()

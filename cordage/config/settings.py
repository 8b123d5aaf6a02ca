"""
Global settings from environment variables.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CordageSettings(BaseSettings):
    """
    Global configuration loaded from environment variables.

    Environment variables should be prefixed with CORDAGE_
    Example: CORDAGE_DEBUG=true, CORDAGE_MAX_LLM_CALLS=100
    """

    model_config = SettingsConfigDict(
        env_prefix="CORDAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core settings
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = False

    # Invocation limits
    max_llm_calls: int = Field(default=500)


# Global settings instance (singleton)
settings = CordageSettings()


__all__ = ["CordageSettings", "settings"]

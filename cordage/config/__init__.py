"""Configuration for cordage."""

from cordage.config.settings import CordageSettings, settings

__all__ = ["CordageSettings", "settings"]

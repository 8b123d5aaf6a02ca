"""Plugins: interceptors shared by every agent of a runner."""

from cordage.plugins.base import BasePlugin
from cordage.plugins.logging_plugin import LoggingPlugin
from cordage.plugins.manager import PluginCallbackName, PluginManager

__all__ = ["BasePlugin", "LoggingPlugin", "PluginCallbackName", "PluginManager"]

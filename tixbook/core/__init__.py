"""Configuration and logging for the Tixbook application."""

from .config import Settings, get_settings

__all__ = ["Settings", "get_settings"]

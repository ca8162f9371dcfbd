"""
Configuration for jarbang.

This module provides access to the persistent user settings file.
"""

from .settings import Settings, SettingsError, config_dir

__all__ = [
    "Settings",
    "SettingsError",
    "config_dir",
]

"""
Storage Layer.

This package handles loading the bot's startup configuration.
"""

from .config_manager import ConfigManager

__all__ = ["ConfigManager"]

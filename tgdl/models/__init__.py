"""
Data Models Layer.

This package contains the models that define the core data structures
used throughout the application, such as configuration and statistics.
"""

from .config import BotConfig
from .stats import StatsSnapshot, StatsTracker

__all__ = ["BotConfig", "StatsSnapshot", "StatsTracker"]

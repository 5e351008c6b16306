"""
Telegram API Layer.

This package handles all communication with the Telegram Bot API.
"""

from .client import TelegramBotClient
from .rate_limiter import AdaptiveRateLimiter

__all__ = ["AdaptiveRateLimiter", "TelegramBotClient"]

"""
Bot Layer.

This package turns Telegram updates into command and attachment handler calls.
"""

from .dispatcher import Dispatcher, parse_command
from .handlers import Request

__all__ = ["Dispatcher", "Request", "parse_command"]

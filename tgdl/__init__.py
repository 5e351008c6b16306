"""
tgdl: a Telegram bot that saves attachments into a confined directory tree.
"""

__version__ = "1.0.0"

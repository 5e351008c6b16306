"""
Media Transfer Layer.

This package is responsible for moving file bytes from the network onto disk.
"""

from .downloader import Downloader

__all__ = ["Downloader"]

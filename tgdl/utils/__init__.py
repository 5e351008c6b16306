"""
Utility Layer.

Small, dependency-light helpers for formatting and path handling.
"""

"""
Helper functions for formatting data into human-readable strings.
"""

KB = 1024
MB = KB * 1024
GB = MB * 1024


def human_readable_size(size: int) -> str:
    """Formats bytes with integer truncation (e.g., 1536 -> '1 KB')."""
    if size < KB:
        return f"{size} B"
    if size < MB:
        return f"{size // KB} KB"
    if size < GB:
        return f"{size // MB} MB"
    return f"{size // GB} GB"


DURATION_UNITS = (("d", 86400), ("h", 3600), ("m", 60), ("s", 1))


def format_duration(seconds: float) -> str:
    """Formats an uptime as its non-zero units, largest first (e.g., '1d 2h 5s')."""
    remaining = int(seconds)
    parts = []
    for suffix, unit in DURATION_UNITS:
        count, remaining = divmod(remaining, unit)
        if count:
            parts.append(f"{count}{suffix}")
    return " ".join(parts) or "0s"

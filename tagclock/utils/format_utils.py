"""Formatting utility functions for tagClock."""
from typing import Iterable


def format_hm(seconds: int) -> str:
    """Format seconds as HH:MM.

    Args:
        seconds: Number of seconds (can be negative)

    Returns:
        Formatted time string (with leading '-' if negative)
    """
    if seconds < 0:
        abs_seconds = abs(seconds)
        return f"-{abs_seconds // 3600:02}:{(abs_seconds % 3600) // 60:02}"
    return f"{seconds // 3600:02}:{(seconds % 3600) // 60:02}"

def format_tags(tags: Iterable[str]) -> str:
    """Format a tag set as a sorted, space separated string."""
    return " ".join(sorted(tags))

def short_ref(ref: str, length: int = 8) -> str:
    """Shorten an event or patch ref for display."""
    return ref[:length]

def percent(val: int, total: int) -> str:
    """Calculate percentage and format as string.

    Args:
        val: Value
        total: Total

    Returns:
        Formatted percentage string
    """
    return f"{(val / total * 100):.0f}" if total else "0"

"""
clipscribe.utils - Shared utility functions.

Contains common functions used across multiple modules to avoid duplication.
"""

from __future__ import annotations


def format_duration(seconds: float) -> str:
    """Format seconds as HH:MM:SS or MM:SS.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (HH:MM:SS if >= 1 hour, otherwise MM:SS)
    """
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_minutes(seconds: float) -> str:
    """Describe a duration in minutes the way the segmentation summary does.

    Whole minutes print as an integer with singular/plural handling,
    anything else with one decimal place.
    """
    minutes = seconds / 60
    if minutes % 1 == 0:
        whole = round(minutes)
        return f"{whole} min{'' if whole == 1 else 's'}"
    return f"{minutes:.1f} mins"


def chunked(items: list, size: int) -> list[list]:
    """Split a list into contiguous chunks of at most ``size`` items."""
    if size <= 0:
        raise ValueError("Chunk size must be positive")
    return [items[i : i + size] for i in range(0, len(items), size)]

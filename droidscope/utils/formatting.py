"""Human-readable byte and date formatting."""

from __future__ import annotations

from datetime import datetime

KB = 1024
MB = 1024 * KB
GB = 1024 * MB


def format_file_size(size: int) -> str:
    """Format a file size the way directory listings show it."""
    if size < KB:
        return f"{size} B"
    if size < MB:
        return f"{size / KB:.1f} KB"
    if size < GB:
        return f"{size / MB:.1f} MB"
    return f"{size / GB:.2f} GB"


def format_gb(size: int) -> str:
    return f"{size / GB:.1f} GB"


def format_category_size(size: int) -> str:
    """GB with one decimal from 1 GB upwards, whole MB below."""
    if size >= GB:
        return f"{size / GB:.1f} GB"
    return f"{size / MB:.0f} MB"


def format_date(value: datetime | None) -> str:
    if value is None:
        return "--"
    return value.strftime("%b %d, %Y %H:%M")

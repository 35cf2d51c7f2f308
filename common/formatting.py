"""Human-readable rendering of byte counts and durations."""

import math

SIZE_UNITS = ['B', 'KB', 'MB', 'GB', 'TB']


def format_file_size(size_bytes: int) -> str:
    """
    Format a byte count with 1024-based units.

    Values are rounded to two decimals and trailing zeros are dropped,
    so 2000000 renders as "1.91 MB" and 1024 as "1 KB".

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string such as "512 B" or "1.5 KB"
    """
    if size_bytes <= 0:
        return "0 B"

    index = min(int(math.floor(math.log(size_bytes, 1024))), len(SIZE_UNITS) - 1)
    value = size_bytes / (1024 ** index)

    # log() can land just below an integer for exact powers of 1024
    if value >= 1024 and index < len(SIZE_UNITS) - 1:
        index += 1
        value /= 1024

    text = f"{value:.2f}".rstrip('0').rstrip('.')
    return f"{text} {SIZE_UNITS[index]}"


def format_uptime(seconds: float) -> str:
    """
    Format a duration as "1d 2h 3m 4s", omitting zero parts.

    Args:
        seconds: Duration in seconds

    Returns:
        Compact duration string, "0s" for durations under one second
    """
    total = int(seconds)
    days, remainder = divmod(total, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, secs = divmod(remainder, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs:
        parts.append(f"{secs}s")

    return " ".join(parts) if parts else "0s"

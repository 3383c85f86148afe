"""Time utilities."""


def format_remaining(seconds: int | None) -> str | None:
    """Format a countdown value as ``M:SS`` or ``Hh MMm SSs``."""
    if seconds is None:
        return None
    seconds = max(0, int(seconds))
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    if hours > 0:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    return f"{minutes}:{secs:02d}"

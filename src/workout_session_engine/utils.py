"""Utility functions."""
from typing import Optional, Union


def to_seconds(value: Optional[Union[int, float, str]]) -> int:
    """Convert a duration like 60, '60' or '60s' to whole seconds, 0 if it can't be parsed."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        if isinstance(value, str):
            value = value.strip().lower().rstrip("s").strip()
        seconds = int(float(value))
    except (TypeError, ValueError):
        return 0
    return max(seconds, 0)


def format_time(seconds: int) -> str:
    """Format a countdown as m:ss, e.g. 90 -> '1:30'."""
    seconds = max(int(seconds), 0)
    minutes, remaining = divmod(seconds, 60)
    return f"{minutes}:{remaining:02d}"

"""Number rendering shared by gate messages and CI formats."""

from __future__ import annotations


def format_number(value: float | int | None) -> str:
    """Render a score without a trailing ``.0``."""
    if value is None:
        return ""
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(round(value, 2))
    return str(value)

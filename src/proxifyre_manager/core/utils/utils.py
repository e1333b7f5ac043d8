"""Common formatting helpers for terminal output."""

from typing import Final

# Longest app list shown in a table cell before it is abbreviated
MAX_LISTED_APPS: Final = 4
EMPTY_MARK: Final = "-"


def format_names(names: list[str], limit: int = MAX_LISTED_APPS) -> str:
    """Join names for a table cell, abbreviating long lists.

    Args:
        names: Names to show
        limit: Maximum number of names before the rest is summarized

    Returns:
        str: Comma-separated names, e.g. ``"a, b (+3 more)"``
    """
    if not names:
        return EMPTY_MARK
    shown = ", ".join(names[:limit])
    if len(names) > limit:
        return f"{shown} (+{len(names) - limit} more)"
    return shown


def mask_secret(secret: str) -> str:
    """Hide a password, keeping only whether it is set."""
    return "*" * 8 if secret else EMPTY_MARK

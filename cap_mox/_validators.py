"""Shared validation helpers."""

from __future__ import annotations


def validate_count(value: int, *, name: str = "count") -> None:
    """Ensure *value* is a usable invocation count."""
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{name} must be an integer"
        raise TypeError(msg)

    if value < 0:
        msg = f"{name} must be >= 0"
        raise ValueError(msg)


def validate_range(minimum: int, maximum: int) -> None:
    """Ensure ``minimum..maximum`` is a non-empty count range."""
    validate_count(minimum, name="minimum")
    validate_count(maximum, name="maximum")
    if minimum > maximum:
        msg = f"minimum ({minimum}) must not exceed maximum ({maximum})"
        raise ValueError(msg)

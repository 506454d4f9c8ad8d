from __future__ import annotations

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def optional_text(value: str | None) -> str | None:
    return (value or "").strip() or None


def percentage(part: int, total: int) -> int:
    """Integer percentage rounded half-up; 0 when ``total`` is 0."""
    if total <= 0:
        return 0
    return (200 * part + total) // (2 * total)

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class ValidationError(ValueError):
    """400-level input problem."""


@dataclass(frozen=True)
class Pagination:
    page: int
    per_page: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


def parse_int_arg(raw: Any, *, name: str, default: int) -> int:
    """
    Strict integer parsing for query-string values.

    - None / "" -> default
    - rejects decimals and scientific notation ("12.5", "1e3")
    """
    if raw is None:
        return default
    if isinstance(raw, bool):
        raise ValidationError(f"{name} must be an integer")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        raise ValidationError(f"{name} must be an integer, not a decimal")

    stripped = str(raw).strip()
    if not stripped:
        return default
    if "e" in stripped.lower():
        raise ValidationError(f"{name} must be a plain integer (scientific notation not allowed)")
    if "." in stripped:
        raise ValidationError(f"{name} must be an integer (no decimals)")
    try:
        return int(stripped)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def parse_pagination(page_raw: Any, per_page_raw: Any, *, default_per_page: int, max_per_page: int) -> Pagination:
    """page >= 1, 1 <= per_page <= max_per_page (out-of-range values are clamped)."""
    page = max(parse_int_arg(page_raw, name="page", default=1), 1)
    per_page = parse_int_arg(per_page_raw, name="per_page", default=default_per_page)
    per_page = min(max(per_page, 1), max_per_page)
    return Pagination(page=page, per_page=per_page)


def parse_limit(raw: Any, *, default: int, maximum: int) -> int:
    limit = parse_int_arg(raw, name="limit", default=default)
    return min(max(limit, 1), maximum)


def parse_flag(raw: Any) -> bool:
    if raw is None:
        return False
    return str(raw).strip().lower() in {"1", "true", "yes", "on"}

"""Money helpers for integer yen amounts."""

from __future__ import annotations


def format_yen(amount: int) -> str:
    """Render an integer yen amount with thousands separators."""

    return f"{amount:,} JPY"


def format_signed_yen(amount: int) -> str:
    """Render a yen delta with an explicit sign for non-negative values."""

    sign = "+" if amount >= 0 else ""
    return f"{sign}{amount:,} JPY"

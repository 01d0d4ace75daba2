"""Display formatting shared by templates, the claim history and the certificate."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

MISSING = "--"


def parse_any_date(value: Any) -> Optional[datetime]:
    """Best-effort parse of a stored date/datetime/ISO string. Unparsable → None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    raw = str(value).strip()
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in ("%Y-%m-%d", "%d/%m/%Y"):
        try:
            return datetime.strptime(raw[:10], fmt)
        except ValueError:
            continue
    return None


def ddmmyyyy(value: Any, empty: str = "") -> str:
    """Render as dd/mm/yyyy (en-GB short date)."""
    dt = parse_any_date(value)
    return dt.strftime("%d/%m/%Y") if dt else empty


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def long_date(value: Any) -> str:
    """1st March 2024"""
    dt = parse_any_date(value)
    if dt is None:
        return ""
    return f"{ordinal(dt.day)} {dt.strftime('%B')} {dt.year}"


def to_decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


def format_kina(value: Any) -> str:
    """Kina amount with thousands separators and 0–2 decimals: 1225 → K1,225; 10.5 → K10.5."""
    amount = to_decimal(value).quantize(Decimal("0.01"))
    text = f"{amount:,.2f}".rstrip("0").rstrip(".")
    return f"K{text}"


def or_missing(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return MISSING
    return value

import re
from datetime import date, datetime
from typing import Iterable, Mapping, Optional

# -----------------------------
# Required fields
# -----------------------------

def missing_fields(values: Mapping, required: Iterable[str]) -> list[str]:
    """
    Return the names of required fields that are absent or blank.
    Booleans and numbers count as present (False / 0 are real answers).
    """
    missing = []
    for name in required:
        v = values.get(name)
        if v is None:
            missing.append(name)
        elif isinstance(v, str) and not v.strip():
            missing.append(name)
    return missing


def required_fields_message(fields: Iterable[str]) -> str:
    return "Please fill in all required fields: " + ", ".join(fields)


# -----------------------------
# Phone
# -----------------------------

PHONE_DIGITS_RE = re.compile(r"\D+")

def normalize_phone(value: str | None) -> str | None:
    """
    Strip all non-digits. Return digits-only string or None.
    """
    if not value:
        return None
    digits = PHONE_DIGITS_RE.sub("", value)
    return digits or None


def is_valid_phone(value: str | None) -> bool:
    """
    Valid phone numbers:
    - empty / None → valid
    - 7 (landline) or 8 (mobile) digits, optionally with the 675 country code
    """
    if not value:
        return True
    digits = normalize_phone(value) or ""
    if digits.startswith("675") and len(digits) > 8:
        digits = digits[3:]
    return len(digits) in (7, 8)


# -----------------------------
# Email
# -----------------------------

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

def is_valid_email(value: str | None) -> bool:
    """
    Empty email is allowed.
    Basic sanity check, not RFC insanity.
    """
    if not value:
        return True
    return bool(EMAIL_RE.match(value.strip()))


# -----------------------------
# Dates / numbers from form posts
# -----------------------------

def parse_form_date(value) -> Optional[date]:
    """Parse YYYY-MM-DD (HTML date inputs) or DD/MM/YYYY. Blank/invalid → None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value).strip()
    if not raw:
        return None
    for fmt in ("%Y-%m-%d", "%d/%m/%Y"):
        try:
            return datetime.strptime(raw[:10], fmt).date()
        except ValueError:
            continue
    return None


def to_number(value, default=0):
    """Coerce a posted wage/rate to a number; blanks and junk become `default`."""
    if value is None or value == "":
        return default
    try:
        n = float(value)
    except (TypeError, ValueError):
        return default
    if n != n:  # NaN
        return default
    return int(n) if n.is_integer() else n


# -----------------------------
# Error helpers
# -----------------------------

def validate_fields(field_map: dict[str, tuple[str | None, callable]]):
    """
    field_map = {
        "Mobile": (mobile_value, is_valid_phone),
        "Email": (email_value, is_valid_email),
    }

    Returns: list[str] of error messages
    """
    errors = []
    for label, (value, validator) in field_map.items():
        if not validator(value):
            errors.append(f"{label} is invalid")
    return errors


# -----------------------------
# Filenames
# -----------------------------

_filename_strip_re = re.compile(r"[^A-Za-z0-9._-]+")

def safe_filename(name: str, fallback: str = "file") -> str:
    cleaned = _filename_strip_re.sub("_", (name or "").strip()).strip("._")
    return cleaned or fallback

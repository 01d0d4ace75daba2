"""Shared route helpers.

Intentionally **no Blueprint routes** should live here.
"""

from __future__ import annotations

import io
from typing import Any, Optional

from flask import flash, request, send_file

from ..errors import CppsError, ValidationError


def parse_irn(value: Any) -> Optional[int]:
    """Positive integer IRN from a query/form value, else None."""
    try:
        irn = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return irn if irn > 0 else None


def page_arg() -> int:
    return max(request.args.get("page", 1, type=int) or 1, 1)


def flash_error(e: CppsError) -> None:
    """Flash a service error; validation problems are warnings, the rest are errors."""
    flash(e.message, "warning" if isinstance(e, ValidationError) else "danger")


def pdf_response(pdf_bytes: bytes, filename: str):
    return send_file(
        io.BytesIO(pdf_bytes),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=filename,
    )


def csv_response(text: str, filename: str):
    return send_file(
        io.BytesIO(text.encode("utf-8")),
        mimetype="text/csv",
        as_attachment=True,
        download_name=filename,
    )

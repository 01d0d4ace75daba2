"""Claim snapshot shown beside every review decision (the Form 113 view)."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List

from cpps.errors import NotFoundError
from cpps.extensions import db
from cpps.models import ClaimCompensationWorkerDetails, Employer, Form1112Master
from cpps.services import attachments
from cpps.services.workers import load_worker
from cpps.utils.formatting import to_decimal

logger = logging.getLogger(__name__)

_AMOUNT_FIELDS = (
    ("Compensation", "CCWDCompensationAmount"),
    ("Medical expenses", "CCWDMedicalExpenses"),
    ("Miscellaneous expenses", "CCWDMiscExpenses"),
    ("Deductions", "CCWDDeductions"),
)


def compensation_breakdown(irn: int) -> Dict[str, Any]:
    """Per-worker compensation rows plus the grand total across all of them."""
    rows = db.session.execute(
        db.select(ClaimCompensationWorkerDetails)
        .where(ClaimCompensationWorkerDetails.IRN == irn)
        .order_by(ClaimCompensationWorkerDetails.CCWDID)
    ).scalars().all()

    items: List[Dict[str, Any]] = []
    grand = Decimal("0")
    for r in rows:
        amounts = {label: to_decimal(getattr(r, attr)) for label, attr in _AMOUNT_FIELDS}
        subtotal = sum(amounts.values(), Decimal("0"))
        grand += subtotal
        items.append({
            "name": " ".join(p for p in (r.CCWDWorkerFirstName, r.CCWDWorkerLastName) if p),
            "annual_wage": to_decimal(r.CCWDAnnualWage),
            "amounts": amounts,
            "notes": r.CCWDDeductionsNotes or "",
            "subtotal": subtotal,
        })
    return {"rows": items, "total": grand}


def claim_snapshot(irn: int) -> Dict[str, Any]:
    claim = db.session.get(Form1112Master, irn)
    if claim is None:
        raise NotFoundError(f"Claim {irn} was not found.")

    worker, dependants, history = ({}, [], [])
    if claim.WorkerID:
        try:
            worker, dependants, history = load_worker(claim.WorkerID)
        except NotFoundError:
            logger.warning("Claim %s references missing worker %s", irn, claim.WorkerID)

    employer = None
    if worker.get("EmployerCPPSID"):
        employer = db.session.execute(
            db.select(Employer).where(Employer.CPPSID == worker["EmployerCPPSID"])
        ).scalars().first()

    return {
        "claim": claim,
        "worker": worker,
        "employer": employer,
        "dependants": dependants,
        "history": history,
        "attachments": attachments.attachment_status(irn),
    }

"""Claim decision history.

Every review stage stores its outcome in its own table with its own column
names. STAGES maps each table onto one common row shape:

    {submissionType, status, reason, takenBy, decisionDate, decisionDateRaw}

so the history page, the JSON API and the claim-status lookup all read the
same normalised list. Payments come from two separate tables and are
returned alongside.

NOTE: This service does not render HTML. Routes/templates decide presentation.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from flask import current_app

from cpps.extensions import db
from cpps.models import (
    ApprovedClaimsCPOReview,
    BankAccountDeposit,
    ClaimsAwardedCommissionersReview,
    ClaimsAwardedRegistrarReview,
    CompensationCalculationCommissionersReview,
    CompensationCalculationCPMReview,
    Form1112Master,
    Form18Master,
    Form6Master,
    OWCClaimChequeDetails,
    OWCStaff,
    PrescreeningReview,
    RegistrarReview,
    TimeBarredClaimsRegistrarReview,
)
from cpps.services.locks import staff_names
from cpps.utils.formatting import MISSING, ddmmyyyy, format_kina, or_missing, parse_any_date

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1)


# -----------------------------------------------------------------------------
#  Stage registry
# -----------------------------------------------------------------------------

Value = Callable[[Any], Any]


def col(name: str) -> Value:
    return lambda row: getattr(row, name, None)


def const(value: str) -> Value:
    return lambda row: value


def template(fmt: str, *names: str) -> Value:
    return lambda row: fmt.format(*(getattr(row, n, None) for n in names))


def commissioner_rank(status_col: str) -> Value:
    def _taken_by(row):
        status = getattr(row, status_col, None) or ""
        return "Chief Commissioner" if status.startswith("Chief") else "Commissioner"
    return _taken_by


def _form18_reason(row):
    if row.F18MStatus == "EmployerAccepted":
        return row.F18MEmployerDecisionReason
    if row.F18MStatus == "WorkerAccepted":
        return row.F18MWorkerDecisionReason
    return MISSING


def _form18_taken_by(row):
    return {
        "EmployerAccepted": "Employer",
        "WorkerAccepted": "Worker",
        "NotifiedToWorker": "PCO",
    }.get(row.F18MStatus, MISSING)


def _cpo_status(row):
    return row.CPORStatus or "Review Pending"


def _cpo_taken_by(row):
    if _cpo_status(row) == "CompensationCalculated" or (row.LockedByCPOID or 0) > 0:
        return "CPO"
    return "Provincial Claims Officer"


@dataclass(frozen=True)
class Stage:
    name: str
    model: Any
    submission_type: Value
    status: Value
    reason: Value
    taken_by: Value
    date_column: str
    lock_column: Optional[str] = None


STAGES: Tuple[Stage, ...] = (
    Stage(
        "timebarred", TimeBarredClaimsRegistrarReview,
        submission_type=template("{} - TimeBarred", "TBCRRFormType"),
        status=col("TBCRRReviewStatus"),
        reason=col("TBCRRDecisionReason"),
        taken_by=const("Registrar"),
        date_column="TBCRRDecisionDate",
    ),
    Stage(
        "prescreening", PrescreeningReview,
        submission_type=col("PRFormType"),
        status=col("PRStatus"),
        reason=col("PRDecisionReason"),
        taken_by=const("Deputy Registrar"),
        date_column="PRSubmissionDate",
    ),
    Stage(
        "registrar", RegistrarReview,
        submission_type=col("IncidentType"),
        status=col("RRStatus"),
        reason=col("RRDecisionReason"),
        taken_by=const("Registrar"),
        date_column="RRDecisionDate",
    ),
    Stage(
        "form6", Form6Master,
        submission_type=template("{} (Form6)", "IncidentType"),
        status=template("{} (Notification Received - Insurance Company)", "F6MStatus"),
        reason=const(MISSING),
        taken_by=const(MISSING),
        date_column="F6MApprovalDate",
    ),
    Stage(
        "form18", Form18Master,
        submission_type=template("{} - Form18 Notification", "IncidentType"),
        status=col("F18MStatus"),
        reason=_form18_reason,
        taken_by=_form18_taken_by,
        date_column="F18MWorkerAcceptedDate",
    ),
    Stage(
        "cpo", ApprovedClaimsCPOReview,
        submission_type=col("IncidentType"),
        status=_cpo_status,
        reason=const(MISSING),
        taken_by=_cpo_taken_by,
        date_column="CPORApprovedDate",
        lock_column="LockedByCPOID",
    ),
    Stage(
        "compensation_commissioner", CompensationCalculationCommissionersReview,
        submission_type=col("IncidentType"),
        status=col("CCCRReviewStatus"),
        reason=col("CCCRDecisionReason"),
        taken_by=commissioner_rank("CCCRReviewStatus"),
        date_column="CCCRDecisionDate",
        lock_column="LockedByID",
    ),
    Stage(
        "award_commissioner", ClaimsAwardedCommissionersReview,
        submission_type=col("IncidentType"),
        status=col("CACRReviewStatus"),
        reason=col("CACRDecisionReason"),
        taken_by=commissioner_rank("CACRReviewStatus"),
        date_column="CACRDecisionDate",
        lock_column="LockedByID",
    ),
    Stage(
        "cpm", CompensationCalculationCPMReview,
        submission_type=col("IncidentType"),
        status=col("CPMRStatus"),
        reason=col("CPMRDecisionReason"),
        taken_by=const("CPM"),
        date_column="CPMRDecisionDate",
        lock_column="LockedByID",
    ),
    Stage(
        "award_registrar", ClaimsAwardedRegistrarReview,
        submission_type=col("IncidentType"),
        status=col("CARRReviewStatus"),
        reason=col("CARRDecisionReason"),
        taken_by=const("Registrar"),
        date_column="CARRDecisionDate",
        lock_column="LockedByID",
    ),
)


def normalize_row(stage: Stage, row: Any) -> Dict[str, Any]:
    raw_date = getattr(row, stage.date_column, None)
    return {
        "IRN": row.IRN,
        "stage": stage.name,
        "submissionType": stage.submission_type(row),
        "status": stage.status(row),
        "reason": stage.reason(row),
        "takenBy": stage.taken_by(row),
        "decisionDate": ddmmyyyy(raw_date),
        "decisionDateRaw": raw_date.isoformat() if hasattr(raw_date, "isoformat") else raw_date,
        "_lockedBy": getattr(row, stage.lock_column, None) if stage.lock_column else None,
        "_region": getattr(row, "IncidentRegion", None),
    }


# -----------------------------------------------------------------------------
#  Sorting
# -----------------------------------------------------------------------------

def decision_sort_key(decision: Dict[str, Any]) -> float:
    """Epoch seconds of the decision date; missing/unparsable dates sort first."""
    dt = parse_any_date(decision.get("decisionDateRaw"))
    if dt is None:
        return -math.inf
    if dt.tzinfo is not None:
        return dt.timestamp()
    return (dt - _EPOCH).total_seconds()


def sort_decisions(decisions: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(decisions, key=decision_sort_key)


# -----------------------------------------------------------------------------
#  Enrichment
# -----------------------------------------------------------------------------

def _display_irns(irns: Iterable[int]) -> Dict[int, str]:
    ids = {i for i in irns if i is not None}
    if not ids:
        return {}
    rows = db.session.execute(
        db.select(Form1112Master.IRN, Form1112Master.DisplayIRN).where(Form1112Master.IRN.in_(ids))
    ).all()
    return {irn: display for irn, display in rows if display}


def _claims_managers_by_region(regions: Iterable[str]) -> Dict[str, str]:
    wanted = {r for r in regions if r}
    if not wanted:
        return {}
    designation = current_app.config.get("CPPS_CLAIMS_MANAGER_DESIGNATION", "Claims Manager")
    rows = db.session.execute(
        db.select(OWCStaff)
        .where(OWCStaff.InchargeRegion.in_(wanted))
        .where(OWCStaff.OSMDesignation == designation)
        .order_by(OWCStaff.OSMStaffID.asc())
    ).scalars().all()
    out: Dict[str, str] = {}
    for staff in rows:
        out.setdefault(staff.InchargeRegion, staff.full_name)
    return out


def _enrich(decisions: List[Dict[str, Any]]) -> None:
    names = staff_names(d["_lockedBy"] for d in decisions)
    managers = _claims_managers_by_region(d["_region"] for d in decisions if d["stage"] == "cpm")
    displays = _display_irns(d["IRN"] for d in decisions)

    for d in decisions:
        locked_by = d.pop("_lockedBy")
        region = d.pop("_region")
        d["actingStaff"] = names.get(locked_by) if locked_by else None
        if d["stage"] == "cpm" and managers.get(region):
            d["takenBy"] = f"CPM ({managers[region]})"
        d["displayIRN"] = displays.get(d["IRN"], "N/A")


# -----------------------------------------------------------------------------
#  Payments
# -----------------------------------------------------------------------------

def list_payments(irn: int) -> List[Dict[str, Any]]:
    """At most one payment from each source, insurer deposit first."""
    payments: List[Dict[str, Any]] = []

    deposit = db.session.execute(
        db.select(BankAccountDeposit).where(BankAccountDeposit.IRN == irn).order_by(BankAccountDeposit.BADMID)
    ).scalars().first()
    if deposit is not None:
        payments.append({
            "bankName": or_missing(deposit.BankName),
            "chequeNo": or_missing(deposit.CheckNo),
            "issueDate": ddmmyyyy(deposit.IssuedDate, empty=MISSING),
            "compensationAmount": format_kina(deposit.ChequeCompensationAmount)
            if deposit.ChequeCompensationAmount is not None else MISSING,
            "issuedBy": "Insurance Provider",
        })

    cheque = db.session.execute(
        db.select(OWCClaimChequeDetails).where(OWCClaimChequeDetails.IRN == irn).order_by(OWCClaimChequeDetails.OCCDID)
    ).scalars().first()
    if cheque is not None:
        payments.append({
            "bankName": or_missing(cheque.OCCDBankName),
            "chequeNo": or_missing(cheque.OCCDChequeNumber),
            "issueDate": ddmmyyyy(cheque.OCCDIssueDate, empty=MISSING),
            "compensationAmount": format_kina(cheque.OCCDChequeAmount)
            if cheque.OCCDChequeAmount is not None else MISSING,
            "issuedBy": "OWC Trust",
        })

    return payments


# -----------------------------------------------------------------------------
#  Public API
# -----------------------------------------------------------------------------

def list_claim_decisions(irn: int) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Return (decisions sorted oldest first, payments) for one claim."""
    decisions: List[Dict[str, Any]] = []
    for stage in STAGES:
        rows = db.session.execute(
            db.select(stage.model).where(stage.model.IRN == irn)
        ).scalars().all()
        decisions.extend(normalize_row(stage, r) for r in rows)

    _enrich(decisions)
    decisions = sort_decisions(decisions)
    logger.debug("IRN %s: %d decision rows", irn, len(decisions))
    return decisions, list_payments(irn)


def current_stage(decisions: List[Dict[str, Any]]) -> str:
    """Latest row that carries a status, as a one-line summary."""
    with_status = [d for d in decisions if d.get("status")]
    if not with_status:
        return "No status on record yet"
    latest = sort_decisions(with_status)[-1]
    as_of = latest.get("decisionDate") or MISSING
    return f"{latest['status']} - {latest['submissionType']} (as of {as_of})"

"""Review-stage decisions.

Each (stage, decision) pair maps to a list of steps in TRANSITIONS. A
transition runs all of its steps inside one database transaction: either
every write lands or none does. Award approvals also produce the consent
award certificate once the transaction has committed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Tuple

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from cpps.auth import StaffSession
from cpps.errors import CppsError, NotFoundError, ValidationError, WorkflowError
from cpps.extensions import db
from cpps.models import (
    ApprovedClaimsCPOReview,
    ClaimsAwardedCommissionersReview,
    ClaimsAwardedRegistrarReview,
    CompensationCalculationCPMReview,
    CurrentEmploymentDetails,
    Form1112Master,
    Form18Master,
    Form6Master,
)
from cpps.services import case_history, certificate, claims, locks

logger = logging.getLogger(__name__)

FAILED_MESSAGE = "Failed to process decision. Please try again."

# Stage keys (also used in URLs)
AWARD_COMMISSIONER = "award-commissioner"
CPM = "cpm"

STAGE_MODELS = {
    AWARD_COMMISSIONER: ClaimsAwardedCommissionersReview,
    CPM: CompensationCalculationCPMReview,
}

DECISIONS = {
    AWARD_COMMISSIONER: ("Approved", "DecisionPending", "Reject", "KeepOnHold"),
    CPM: ("Approved", "ReCheck", "Reject"),
}

CONFIRM_TEXT = {
    AWARD_COMMISSIONER: {
        "Approved": "Approve this award and forward the claim to the Registrar? The consent award certificate will be generated.",
        "DecisionPending": "Mark this claim as pending a decision?",
        "Reject": "Reject this award?",
        "KeepOnHold": "Keep this claim on hold? No changes will be saved.",
    },
    CPM: {
        "Approved": "Accept the compensation calculation and send the Form 6 notification to the insurer?",
        "ReCheck": "Send the compensation calculation back to the CPO for recalculation?",
        "Reject": "Reject the compensation calculation?",
    },
}


# -----------------------------------------------------------------------------
#  Transition machinery
# -----------------------------------------------------------------------------

@dataclass
class TransitionContext:
    staff: StaffSession
    irn: int
    decision: str
    reason: Optional[str]
    today: date
    row: object = None
    status: Optional[str] = None
    next_stage: Optional[str] = None


@dataclass
class DecisionResult:
    stage: str
    irn: int
    decision: str
    status: Optional[str] = None
    wrote: bool = False
    next_stage: Optional[str] = None
    certificate: Optional[Tuple[str, bytes]] = None
    warnings: List[str] = field(default_factory=list)


Step = Callable[[TransitionContext], None]


def _run(steps: List[Step], ctx: TransitionContext) -> None:
    """Apply all steps and commit once; roll everything back on any failure."""
    try:
        for step in steps:
            step(ctx)
        db.session.commit()
    except CppsError:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Transition failed for IRN %s (%s)", ctx.irn, ctx.decision)
        raise WorkflowError(FAILED_MESSAGE, e)


def _load_row(model, irn: int):
    row = db.session.execute(
        db.select(model).where(model.IRN == irn)
    ).scalars().first()
    if row is None:
        raise NotFoundError(f"No {model.__tablename__} record for IRN {irn}.")
    return row


def _hold_review_lock(ctx: TransitionContext) -> None:
    locks.hold_lock(type(ctx.row), ctx.irn, ctx.staff.staff_id)


def _clean_reason(reason: Optional[str]) -> Optional[str]:
    r = (reason or "").strip()
    return r or None


def _check_decision(stage: str, decision: str) -> None:
    if decision not in DECISIONS[stage]:
        raise ValidationError(f"Please select a decision ({', '.join(DECISIONS[stage])}).")


# -----------------------------------------------------------------------------
#  Award review (chief commissioner / commissioner)
# -----------------------------------------------------------------------------

def commissioner_prefix(staff: StaffSession) -> str:
    chief_id = current_app.config.get("CPPS_CHIEF_COMMISSIONER_ID", 2811)
    return "ChiefCommissioner" if staff.staff_id == chief_id else "Commissioner"


_AWARD_SUFFIX = {
    "Approved": "Accepted",
    "Reject": "Rejected",
    "DecisionPending": "ReviewPending",
}


def _award_write_status(ctx: TransitionContext) -> None:
    row = ctx.row
    ctx.status = f"{commissioner_prefix(ctx.staff)}{_AWARD_SUFFIX[ctx.decision]}"
    row.CACRReviewStatus = ctx.status
    row.CACRDecisionDate = ctx.today
    row.CACRDecisionReason = ctx.reason


def _award_forward_to_registrar(ctx: TransitionContext) -> None:
    src = ctx.row
    existing = db.session.execute(
        db.select(ClaimsAwardedRegistrarReview).where(ClaimsAwardedRegistrarReview.IRN == ctx.irn)
    ).scalars().first()
    if existing is None:
        existing = ClaimsAwardedRegistrarReview(IRN=ctx.irn)
        db.session.add(existing)

    existing.CARRReviewStatus = "RegistrarReviewPending"
    existing.CARRSubmissionDate = ctx.today
    existing.ClaimType = src.ClaimType
    existing.IncidentType = src.IncidentType
    db.session.flush()
    ctx.next_stage = ClaimsAwardedRegistrarReview.__tablename__


# -----------------------------------------------------------------------------
#  CPM compensation review
# -----------------------------------------------------------------------------

def _cpm_status(value: str) -> Step:
    def _write(ctx: TransitionContext) -> None:
        ctx.status = value
        ctx.row.CPMRStatus = value
        ctx.row.CPMRDecisionDate = ctx.today
        ctx.row.CPMRDecisionReason = ctx.reason
    return _write


def employer_cppsid_for_claim(irn: int) -> Tuple[Optional[Form1112Master], Optional[str]]:
    """(claim, EmployerCPPSID) via the worker's latest employment record."""
    claim = db.session.get(Form1112Master, irn)
    if claim is None or claim.WorkerID is None:
        return claim, None
    employer = db.session.execute(
        db.select(CurrentEmploymentDetails.EmployerCPPSID)
        .where(CurrentEmploymentDetails.WorkerID == claim.WorkerID)
        .order_by(CurrentEmploymentDetails.CEDID.desc())
        .limit(1)
    ).scalars().first()
    return claim, employer


def _cpm_notify_insurer(ctx: TransitionContext) -> None:
    claim, employer_cppsid = employer_cppsid_for_claim(ctx.irn)
    if claim is None:
        raise NotFoundError(f"Claim {ctx.irn} was not found.")

    form6 = db.session.execute(
        db.select(Form6Master).where(Form6Master.IRN == ctx.irn).order_by(Form6Master.F6MID)
    ).scalars().first()
    if form6 is None:
        form6 = Form6Master(IRN=ctx.irn)
        db.session.add(form6)

    form6.IncidentType = claim.IncidentType or ctx.row.IncidentType
    form6.F6MStatus = "Pending"
    form6.F6MApprovalDate = ctx.today
    form6.EmployerCPPSID = employer_cppsid
    db.session.flush()
    ctx.next_stage = Form6Master.__tablename__


def _cpm_send_back_to_cpo(ctx: TransitionContext) -> None:
    rows = db.session.execute(
        db.select(ApprovedClaimsCPOReview).where(ApprovedClaimsCPOReview.IRN == ctx.irn)
    ).scalars().all()
    for r in rows:
        r.CPORStatus = "CompensationReCalculate"
    ctx.next_stage = ApprovedClaimsCPOReview.__tablename__


# -----------------------------------------------------------------------------
#  Transition table
# -----------------------------------------------------------------------------

TRANSITIONS: Dict[Tuple[str, str], List[Step]] = {
    (AWARD_COMMISSIONER, "Approved"): [_award_write_status, _award_forward_to_registrar],
    (AWARD_COMMISSIONER, "Reject"): [_award_write_status],
    (AWARD_COMMISSIONER, "DecisionPending"): [_award_write_status],
    (AWARD_COMMISSIONER, "KeepOnHold"): [],
    (CPM, "Approved"): [_cpm_status("Accepted"), _cpm_notify_insurer],
    (CPM, "ReCheck"): [_cpm_status("Recheck"), _cpm_send_back_to_cpo],
    (CPM, "Reject"): [_cpm_status("Rejected")],
}


def record_decision(
    staff: StaffSession,
    stage: str,
    irn: int,
    decision: str,
    reason: Optional[str] = None,
    *,
    with_certificate: bool = True,
) -> DecisionResult:
    """Record a reviewer's decision for one claim at one stage."""
    if stage not in STAGE_MODELS:
        raise NotFoundError(f"Unknown review stage: {stage}")
    _check_decision(stage, decision)

    result = DecisionResult(stage=stage, irn=irn, decision=decision)
    steps = TRANSITIONS[(stage, decision)]
    if not steps:
        logger.info("%s IRN %s: %s by staff %s, nothing written", stage, irn, decision, staff.staff_id)
        return result

    ctx = TransitionContext(
        staff=staff,
        irn=irn,
        decision=decision,
        reason=_clean_reason(reason),
        today=date.today(),
        row=_load_row(STAGE_MODELS[stage], irn),
    )
    # The decision only lands while the caller holds (or can take) the review lock.
    _run([_hold_review_lock] + steps, ctx)

    result.status = ctx.status
    result.next_stage = ctx.next_stage
    result.wrote = True
    logger.info(
        "%s IRN %s: %s by staff %s → %s", stage, irn, decision, staff.staff_id, ctx.status
    )

    if with_certificate and stage == AWARD_COMMISSIONER and decision == "Approved":
        _attach_certificate(result, ctx)

    return result


def _attach_certificate(result: DecisionResult, ctx: TransitionContext) -> None:
    if (ctx.row.IncidentType or "Injury") != "Injury":
        return
    cfg = current_app.config
    try:
        result.certificate = certificate.download_consent_of_award_injury(
            ctx.irn,
            crest_url=cfg.get("CPPS_CREST_URL") or None,
            stamp_url=cfg.get("CPPS_STAMP_URL") or None,
            signature_url=cfg.get("CPPS_SIGNATURE_URL") or None,
            include_signature=True,
        )
    except CppsError as e:
        # Decision is already committed; the certificate can be re-issued later.
        logger.warning("Certificate for IRN %s not generated: %s", ctx.irn, e.message)
        result.warnings.append(e.message)


# -----------------------------------------------------------------------------
#  Form 18
# -----------------------------------------------------------------------------

def forward_form18_to_worker(staff: StaffSession, irn: int) -> Form18Master:
    """Mark the employer-accepted Form 18 as sent to the worker."""
    row = _load_row(Form18Master, irn)

    def _notify(ctx: TransitionContext) -> None:
        ctx.row.F18MStatus = "NotifiedToWorker"
        ctx.row.F18MWorkerNotifiedDate = datetime.now()
        ctx.status = "NotifiedToWorker"

    _run([_notify], TransitionContext(
        staff=staff, irn=irn, decision="Forward", reason=None, today=date.today(), row=row,
    ))
    logger.info("Form 18 for IRN %s forwarded to worker by staff %s", irn, staff.staff_id)
    return row


# -----------------------------------------------------------------------------
#  Opening a review
# -----------------------------------------------------------------------------

def open_review(staff: StaffSession, stage: str, irn: int) -> Dict[str, object]:
    """Take the stage lock and gather everything the decision page shows.

    The lock is taken first so a reviewer who loses the race is told who holds
    the claim before any of the snapshot is loaded.
    """
    if stage not in STAGE_MODELS:
        raise NotFoundError(f"Unknown review stage: {stage}")
    model = STAGE_MODELS[stage]
    locks.acquire_lock(model, irn, staff.staff_id)

    decisions, payments = case_history.list_claim_decisions(irn)
    return {
        "stage": stage,
        "row": _load_row(model, irn),
        "snapshot": claims.claim_snapshot(irn),
        "compensation": claims.compensation_breakdown(irn),
        "decisions": decisions,
        "payments": payments,
        "current_stage": case_history.current_stage(decisions),
        "choices": DECISIONS[stage],
        "confirm_text": CONFIRM_TEXT[stage],
    }


def close_review(staff: StaffSession, stage: str, irn: int) -> bool:
    if stage not in STAGE_MODELS:
        raise NotFoundError(f"Unknown review stage: {stage}")
    return locks.release_lock(STAGE_MODELS[stage], irn, staff.staff_id)

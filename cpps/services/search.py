"""Search and review queues.

Free-text searches are case-insensitive partial matches (ILIKE) and are only
run when the user submits; nothing here searches on an empty query except
where noted.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy import or_

from cpps.auth import StaffSession
from cpps.errors import ValidationError
from cpps.extensions import db
from cpps.models import (
    ClaimsAwardedCommissionersReview,
    CompensationCalculationCPMReview,
    Employer,
    Form1112Master,
    InsuranceCompany,
    WorkerPersonalDetails,
)
from cpps.services.locks import staff_names

logger = logging.getLogger(__name__)


def _page_size() -> int:
    return current_app.config.get("CPPS_PAGE_SIZE", 10)


def _like(term: str) -> str:
    return f"%{term.strip()}%"


# -----------------------------------------------------------------------------
#  Reference data
# -----------------------------------------------------------------------------

def search_employers(name: Optional[str] = None, cppsid: Optional[str] = None) -> List[Employer]:
    name = (name or "").strip()
    cppsid = (cppsid or "").strip()
    if not name and not cppsid:
        raise ValidationError("Please enter an organization name or CPPS ID to search")

    stmt = db.select(Employer)
    if name:
        stmt = stmt.where(Employer.OrganizationName.ilike(_like(name)))
    if cppsid:
        stmt = stmt.where(Employer.CPPSID == cppsid)
    return db.session.execute(stmt.order_by(Employer.OrganizationName)).scalars().all()


def search_insurance_providers(name: Optional[str] = None) -> List[InsuranceCompany]:
    """An empty name lists every provider (the list is short)."""
    stmt = db.select(InsuranceCompany)
    if (name or "").strip():
        stmt = stmt.where(InsuranceCompany.InsuranceCompanyOrganizationName.ilike(_like(name)))
    return db.session.execute(
        stmt.order_by(InsuranceCompany.InsuranceCompanyOrganizationName)
    ).scalars().all()


# -----------------------------------------------------------------------------
#  Workers / claims
# -----------------------------------------------------------------------------

def search_workers(first_name: str = "", last_name: str = "", page: int = 1):
    stmt = db.select(WorkerPersonalDetails)
    if (first_name or "").strip():
        stmt = stmt.where(WorkerPersonalDetails.WorkerFirstName.ilike(_like(first_name)))
    if (last_name or "").strip():
        stmt = stmt.where(WorkerPersonalDetails.WorkerLastName.ilike(_like(last_name)))
    stmt = stmt.order_by(WorkerPersonalDetails.WorkerLastName, WorkerPersonalDetails.WorkerFirstName)
    return db.paginate(stmt, page=page, per_page=_page_size(), error_out=False)


def _workers_by_id(worker_ids) -> Dict[int, WorkerPersonalDetails]:
    ids = {i for i in worker_ids if i is not None}
    if not ids:
        return {}
    rows = db.session.execute(
        db.select(WorkerPersonalDetails).where(WorkerPersonalDetails.WorkerID.in_(ids))
    ).scalars().all()
    return {w.WorkerID: w for w in rows}


def _claims_by_irn(irns) -> Dict[int, Form1112Master]:
    ids = {i for i in irns if i is not None}
    if not ids:
        return {}
    rows = db.session.execute(
        db.select(Form1112Master).where(Form1112Master.IRN.in_(ids))
    ).scalars().all()
    return {c.IRN: c for c in rows}


# db.paginate() yields only the first selected entity, so list pages paginate
# the primary rows and attach the related claim / worker afterwards.

def _with_workers(pagination):
    workers = _workers_by_id(c.WorkerID for c in pagination.items)
    pagination.items = [(c, workers.get(c.WorkerID)) for c in pagination.items]
    return pagination


def _with_claims_and_workers(pagination):
    claims = _claims_by_irn(r.IRN for r in pagination.items)
    workers = _workers_by_id(c.WorkerID for c in claims.values())
    items = []
    for review in pagination.items:
        claim = claims.get(review.IRN)
        items.append((review, claim, workers.get(claim.WorkerID) if claim else None))
    pagination.items = items
    return pagination


def _claims_query(crn: str, first_name: str, last_name: str, incident_type: Optional[str]):
    stmt = db.select(Form1112Master).join(
        WorkerPersonalDetails, WorkerPersonalDetails.WorkerID == Form1112Master.WorkerID, isouter=True
    )
    if crn:
        stmt = stmt.where(Form1112Master.DisplayIRN == crn)
    if first_name:
        stmt = stmt.where(WorkerPersonalDetails.WorkerFirstName.ilike(_like(first_name)))
    if last_name:
        stmt = stmt.where(WorkerPersonalDetails.WorkerLastName.ilike(_like(last_name)))
    if incident_type:
        stmt = stmt.where(Form1112Master.IncidentType == incident_type)
    return stmt.order_by(Form1112Master.IRN.desc())


def search_claims(
    crn: str = "",
    first_name: str = "",
    last_name: str = "",
    incident_type: Optional[str] = None,
    page: int = 1,
):
    crn, first_name, last_name = (crn or "").strip(), (first_name or "").strip(), (last_name or "").strip()
    if not (crn or first_name or last_name):
        raise ValidationError("Please enter at least one search criteria")
    stmt = _claims_query(crn, first_name, last_name, incident_type or None)
    return _with_workers(db.paginate(stmt, page=page, per_page=_page_size(), error_out=False, count=True))


def claims_by_crn_or_name(crn: str = "", first_name: str = "", last_name: str = "", limit: int = 5):
    """Claim-status lookup: CRN is a partial match here, unlike search_claims."""
    crn, first_name, last_name = (crn or "").strip(), (first_name or "").strip(), (last_name or "").strip()
    if not (crn or first_name or last_name):
        raise ValidationError("Please enter a claim reference number or the worker's name")

    stmt = db.select(Form1112Master, WorkerPersonalDetails).join(
        WorkerPersonalDetails, WorkerPersonalDetails.WorkerID == Form1112Master.WorkerID, isouter=True
    )
    if crn:
        stmt = stmt.where(Form1112Master.DisplayIRN.ilike(_like(crn)))
    if first_name:
        stmt = stmt.where(WorkerPersonalDetails.WorkerFirstName.ilike(_like(first_name)))
    if last_name:
        stmt = stmt.where(WorkerPersonalDetails.WorkerLastName.ilike(_like(last_name)))
    return db.session.execute(stmt.order_by(Form1112Master.IRN.desc()).limit(limit)).all()


# -----------------------------------------------------------------------------
#  Review queues
# -----------------------------------------------------------------------------

def staff_region(staff: StaffSession) -> str:
    return staff.region or current_app.config.get("CPPS_DEFAULT_REGION", "Momase Region")


def cpm_pending_queue(staff: StaffSession, crn: str = "", first_name: str = "", last_name: str = "", page: int = 1):
    """Compensation calculations awaiting the CPM for the reviewer's region, newest first."""
    region = staff_region(staff)
    stmt = (
        db.select(CompensationCalculationCPMReview)
        .join(Form1112Master, Form1112Master.IRN == CompensationCalculationCPMReview.IRN)
        .join(WorkerPersonalDetails, WorkerPersonalDetails.WorkerID == Form1112Master.WorkerID, isouter=True)
        .where(CompensationCalculationCPMReview.IncidentRegion == region)
        .where(or_(
            CompensationCalculationCPMReview.CPMRStatus.is_(None),
            CompensationCalculationCPMReview.CPMRStatus == "Pending",
        ))
    )
    if (crn or "").strip():
        stmt = stmt.where(Form1112Master.DisplayIRN.ilike(_like(crn)))
    if (first_name or "").strip():
        stmt = stmt.where(WorkerPersonalDetails.WorkerFirstName.ilike(_like(first_name)))
    if (last_name or "").strip():
        stmt = stmt.where(WorkerPersonalDetails.WorkerLastName.ilike(_like(last_name)))
    stmt = stmt.order_by(CompensationCalculationCPMReview.CPMRSubmissionDate.desc())
    pagination = db.paginate(stmt, page=page, per_page=_page_size(), error_out=False, count=True)
    return region, _with_claims_and_workers(pagination)


def award_commissioner_queue(page: int = 1):
    """Awards awaiting a commissioner decision, with the lock holder's name."""
    stmt = (
        db.select(ClaimsAwardedCommissionersReview)
        .join(Form1112Master, Form1112Master.IRN == ClaimsAwardedCommissionersReview.IRN)
        .join(WorkerPersonalDetails, WorkerPersonalDetails.WorkerID == Form1112Master.WorkerID, isouter=True)
        .where(or_(
            ClaimsAwardedCommissionersReview.CACRReviewStatus.is_(None),
            ClaimsAwardedCommissionersReview.CACRReviewStatus.like("%ReviewPending"),
        ))
        .order_by(ClaimsAwardedCommissionersReview.CACRSubmissionDate.desc())
    )
    pagination = _with_claims_and_workers(
        db.paginate(stmt, page=page, per_page=_page_size(), error_out=False, count=True)
    )
    names = staff_names(r.LockedByID for r, _c, _w in pagination.items)
    return pagination, names

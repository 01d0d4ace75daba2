"""Consent award certificate (injury claims).

Gathers claim, award, compensation, worker, employer and insurer details and
renders the fixed two-page tribunal certificate to PDF with WeasyPrint.
"""

from __future__ import annotations

import base64
import logging
import mimetypes
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

import requests
from flask import current_app, render_template
from sqlalchemy import func

from cpps.errors import CppsError, NotFoundError
from cpps.extensions import db
from cpps.models import (
    ClaimCompensationWorkerDetails,
    ClaimsAwardedCommissionersReview,
    CurrentEmploymentDetails,
    Employer,
    Form1112Master,
    InsuranceCompany,
    WorkerPersonalDetails,
)
from cpps.services import storage
from cpps.utils.formatting import format_kina, ordinal, parse_any_date, to_decimal

# Optional WeasyPrint import for PDF generation
# Importing WeasyPrint can raise non-ImportError exceptions (e.g. OSError when
# pango/gobject are missing), so catch any Exception and fall back to None.
try:
    from weasyprint import HTML
except Exception:
    HTML = None

logger = logging.getLogger(__name__)

PDF_UNAVAILABLE = "PDF generation is not available (WeasyPrint is not installed)."
PDF_FAILED = "The consent award certificate could not be generated."

TRIBUNAL_CHAIRMAN = "Mr. Martin Pala"
SIGNATORY_NAME = "Chris Kolias"
SIGNATORY_TITLE = "CHAIRMAN OF TRIBUNAL / COMMISSIONER"
DECISION_PLACE = "WAIGANI"


# -----------------------------------------------------------------------------
#  Formatting helpers
# -----------------------------------------------------------------------------

def certificate_date(value: Any) -> str:
    """'1st day of March, 2024' (empty string when the date is missing)."""
    dt = parse_any_date(value)
    if dt is None:
        return ""
    return f"{ordinal(dt.day)} day of {dt.strftime('%B')}, {dt.year}"


def _join_upper(parts) -> str:
    return ", ".join(str(p).strip().upper() for p in parts if p and str(p).strip())


def worker_origin(worker: WorkerPersonalDetails) -> str:
    parts = []
    if worker.WorkerPlaceOfOriginVillage:
        parts.append(f"{worker.WorkerPlaceOfOriginVillage} VILLAGE")
    if worker.WorkerPlaceOfOriginDistrict:
        parts.append(f"{worker.WorkerPlaceOfOriginDistrict} DISTRICT")
    if worker.WorkerPlaceOfOriginProvince:
        parts.append(f"{worker.WorkerPlaceOfOriginProvince} PROVINCE")
    return _join_upper(parts)


def employer_address(employer: Employer) -> str:
    po_box = f"P.O. BOX {employer.POBox}" if employer.POBox else None
    return _join_upper([employer.Address1, employer.Address2, employer.City, employer.Province, po_box])


def total_compensation(*amounts) -> Decimal:
    return sum((to_decimal(a) for a in amounts), Decimal("0"))


# -----------------------------------------------------------------------------
#  Images
# -----------------------------------------------------------------------------

def fetch_image_data_uri(url: Optional[str]) -> Optional[str]:
    """Fetch an image and return it as a base64 data URI. Any failure → None."""
    if not url:
        return None
    try:
        if url.startswith(("http://", "https://")):
            r = requests.get(url, timeout=10)
            r.raise_for_status()
            data = r.content
            mime = (r.headers.get("Content-Type") or "image/png").split(";")[0].strip()
        else:
            path = storage.resolve_path(url)
            with open(path, "rb") as fh:
                data = fh.read()
            mime = mimetypes.guess_type(path)[0] or "image/png"
    except (OSError, ValueError, CppsError, requests.RequestException) as e:
        logger.warning("Could not load certificate image %s: %s", url, e)
        return None
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


# -----------------------------------------------------------------------------
#  Data gathering
# -----------------------------------------------------------------------------

def _first(stmt):
    return db.session.execute(stmt).scalars().first()


def gather_certificate_data(irn: int) -> Dict[str, Any]:
    claim = db.session.get(Form1112Master, irn)
    if claim is None:
        raise NotFoundError(f"Claim {irn} was not found.")

    award = _first(
        db.select(ClaimsAwardedCommissionersReview).where(ClaimsAwardedCommissionersReview.IRN == irn)
    )

    sums = db.session.execute(
        db.select(
            func.coalesce(func.sum(ClaimCompensationWorkerDetails.CCWDCompensationAmount), 0),
            func.coalesce(func.sum(ClaimCompensationWorkerDetails.CCWDMedicalExpenses), 0),
            func.coalesce(func.sum(ClaimCompensationWorkerDetails.CCWDMiscExpenses), 0),
            func.coalesce(func.sum(ClaimCompensationWorkerDetails.CCWDDeductions), 0),
        ).where(ClaimCompensationWorkerDetails.IRN == irn)
    ).one()
    total = total_compensation(*sums)

    # A claim without a worker row still prints, with the worker lines blank.
    worker = db.session.get(WorkerPersonalDetails, claim.WorkerID) if claim.WorkerID else None

    employer_cppsid = _first(
        db.select(CurrentEmploymentDetails.EmployerCPPSID)
        .where(CurrentEmploymentDetails.WorkerID == worker.WorkerID)
        .order_by(CurrentEmploymentDetails.CEDID.desc())
    ) if worker else None
    employer = _first(db.select(Employer).where(Employer.CPPSID == employer_cppsid)) if employer_cppsid else None

    employer_name = (employer.OrganizationName or "") if employer else ""
    insurer_name = employer_name
    ipa_code = (employer.InsuranceProviderIPACode or "").strip() if employer else ""
    if ipa_code and ipa_code.upper() != "SELF":
        insurer = db.session.get(InsuranceCompany, ipa_code)
        if insurer is not None and insurer.InsuranceCompanyOrganizationName:
            insurer_name = insurer.InsuranceCompanyOrganizationName

    decision_date = award.CACRDecisionDate if award else None

    return {
        "irn": irn,
        "display_irn": claim.DisplayIRN or str(irn),
        "incident_date": certificate_date(claim.IncidentDate),
        "incident_province": (claim.IncidentProvince or "").upper(),
        "claim_type": award.ClaimType if award else None,
        "award_status": award.CACRReviewStatus if award else None,
        "decision_date": certificate_date(decision_date),
        "decision_dt": parse_any_date(decision_date),
        "total": total,
        "total_display": format_kina(total),
        "worker_name": worker.full_name.upper() if worker else "",
        "worker_origin": worker_origin(worker) if worker else "",
        "employer_name": employer_name.upper(),
        "employer_address": employer_address(employer) if employer else "",
        "insurer_name": insurer_name.upper(),
    }


# -----------------------------------------------------------------------------
#  Public API
# -----------------------------------------------------------------------------

def certificate_filename(data: Dict[str, Any]) -> str:
    return f"ConsentOfAward-Injury-{data['display_irn']}.pdf"


def render_certificate_html(
    data: Dict[str, Any],
    *,
    crest: Optional[str] = None,
    stamp: Optional[str] = None,
    signature: Optional[str] = None,
    include_signature: bool = False,
) -> str:
    dt = data.get("decision_dt")
    return render_template(
        "pdf/consent_of_award_injury.html",
        c=data,
        crest=crest,
        stamp=stamp if include_signature else None,
        signature=signature if include_signature else None,
        include_signature=include_signature,
        awarded_day=ordinal(dt.day) if dt else "____",
        awarded_month=dt.strftime("%B") if dt else "__________",
        awarded_year=dt.year if dt else "____",
        tribunal_chairman=TRIBUNAL_CHAIRMAN,
        signatory_name=SIGNATORY_NAME,
        signatory_title=SIGNATORY_TITLE,
        decision_place=DECISION_PLACE,
    )


def download_consent_of_award_injury(
    irn: int,
    crest_url: Optional[str] = None,
    stamp_url: Optional[str] = None,
    signature_url: Optional[str] = None,
    include_signature: bool = False,
) -> Tuple[str, bytes]:
    """Build the certificate for `irn`. Returns (filename, pdf_bytes).

    Query errors propagate unchanged. A missing WeasyPrint or a rendering
    failure raises CppsError.
    """
    if HTML is None:
        raise CppsError(PDF_UNAVAILABLE)

    data = gather_certificate_data(irn)
    html = render_certificate_html(
        data,
        crest=fetch_image_data_uri(crest_url),
        stamp=fetch_image_data_uri(stamp_url) if include_signature else None,
        signature=fetch_image_data_uri(signature_url) if include_signature else None,
        include_signature=include_signature,
    )
    try:
        pdf_bytes = HTML(string=html, base_url=current_app.root_path).write_pdf()
    except Exception as e:
        logger.exception("Certificate rendering failed for IRN %s", irn)
        raise CppsError(PDF_FAILED, e)
    logger.info("Consent award certificate generated for IRN %s (signed=%s)", irn, include_signature)
    return certificate_filename(data), pdf_bytes

"""Claim document checklist, CSV exports and PDF report."""

from __future__ import annotations

from flask import abort, current_app, flash, redirect, render_template, request, url_for

from ..auth import staff_required
from ..errors import NotFoundError
from ..services import attachments as attachment_service
from ..services import certificate
from . import bp
from .helpers import csv_response, pdf_response


def _load(irn: int):
    try:
        return attachment_service.attachment_status(irn)
    except NotFoundError:
        abort(404)


def _include_extras() -> bool:
    return request.args.get("extras") in ("1", "true", "yes")


@bp.route("/claims/<int:irn>/attachments")
@staff_required
def claim_attachments(irn, staff):
    claim = _load(irn)
    return render_template("attachments/status.html", active_page="claims", c=claim, stats=claim.stats)


@bp.route("/claims/<int:irn>/attachments/<kind>.csv")
@staff_required
def claim_attachments_csv(irn, kind, staff):
    if kind not in ("summary", "per-file"):
        abort(404)
    claim = _load(irn)
    extras = _include_extras()
    if kind == "summary":
        text = attachment_service.summary_csv(claim, include_extras=extras)
    else:
        text = attachment_service.per_file_csv(claim, include_extras=extras)
    return csv_response(text, attachment_service.csv_filename(claim, kind, extras))


@bp.route("/claims/<int:irn>/attachments/report.pdf")
@staff_required
def claim_attachments_pdf(irn, staff):
    claim = _load(irn)
    if certificate.HTML is None:
        flash(certificate.PDF_UNAVAILABLE, "danger")
        return redirect(url_for("main.claim_attachments", irn=irn))

    html = render_template("pdf/attachments_report.html", c=claim, stats=claim.stats)
    pdf_bytes = certificate.HTML(string=html, base_url=current_app.root_path).write_pdf()
    return pdf_response(pdf_bytes, attachment_service.report_filename(claim))

"""Review decision pages.

Opening a review takes the stage lock; a reviewer who finds the claim locked
by someone else is sent back to the queue with the holder's name.
"""

from __future__ import annotations

from flask import abort, current_app, flash, redirect, render_template, request, url_for

from ..auth import reviewer_required
from ..errors import CppsError, NotFoundError, RecordLockedError
from ..services import certificate, workflow
from . import bp
from .helpers import flash_error, pdf_response
from .queues import QUEUE_ENDPOINTS


def _queue_redirect(stage: str):
    return redirect(url_for(QUEUE_ENDPOINTS.get(stage, "main.index")))


@bp.route("/review/<stage>/<int:irn>")
@reviewer_required
def review_open(stage, irn, staff):
    if stage not in workflow.STAGE_MODELS:
        abort(404)
    try:
        review = workflow.open_review(staff, stage, irn)
    except RecordLockedError as e:
        flash(e.message, "warning")
        return _queue_redirect(stage)
    except CppsError as e:
        flash_error(e)
        return _queue_redirect(stage)

    return render_template(
        "decisions/review.html",
        active_page="queues",
        irn=irn,
        staff=staff,
        **review,
    )


@bp.route("/review/<stage>/<int:irn>/decide", methods=["POST"])
@reviewer_required
def review_decide(stage, irn, staff):
    if stage not in workflow.STAGE_MODELS:
        abort(404)
    decision = (request.form.get("decision") or "").strip()
    reason = request.form.get("reason")

    try:
        result = workflow.record_decision(staff, stage, irn, decision, reason)
    except RecordLockedError as e:
        flash(e.message, "warning")
        return _queue_redirect(stage)
    except CppsError as e:
        current_app.logger.warning("Decision %s on %s IRN %s failed: %s", decision, stage, irn, e.message)
        flash_error(e)
        return redirect(url_for("main.review_open", stage=stage, irn=irn))

    for w in result.warnings:
        flash(w, "warning")

    if not result.wrote:
        flash("Claim kept on hold. No changes were saved.", "info")
        return redirect(url_for("main.review_open", stage=stage, irn=irn))

    flash(f"Decision recorded: {result.status}.", "success")
    if result.certificate:
        filename, pdf_bytes = result.certificate
        return pdf_response(pdf_bytes, filename)
    return _queue_redirect(stage)


@bp.route("/review/<stage>/<int:irn>/close", methods=["POST"])
@reviewer_required
def review_close(stage, irn, staff):
    try:
        workflow.close_review(staff, stage, irn)
    except NotFoundError:
        abort(404)
    return _queue_redirect(stage)


@bp.route("/review/award-commissioner/<int:irn>/certificate-preview")
@reviewer_required
def certificate_preview(irn, staff):
    if certificate.HTML is None:
        flash(certificate.PDF_UNAVAILABLE, "danger")
        return redirect(url_for("main.review_open", stage=workflow.AWARD_COMMISSIONER, irn=irn))

    try:
        filename, pdf_bytes = certificate.download_consent_of_award_injury(
            irn, crest_url=current_app.config.get("CPPS_CREST_URL") or None
        )
    except CppsError as e:
        flash_error(e)
        return redirect(url_for("main.review_open", stage=workflow.AWARD_COMMISSIONER, irn=irn))
    return pdf_response(pdf_bytes, filename)


@bp.route("/form18/<int:irn>/forward", methods=["POST"])
@reviewer_required
def form18_forward(irn, staff):
    try:
        workflow.forward_form18_to_worker(staff, irn)
    except CppsError as e:
        flash_error(e)
    else:
        flash("Form 18 has been forwarded to the worker.", "success")
    return redirect(url_for("main.claim_history", irn=irn))

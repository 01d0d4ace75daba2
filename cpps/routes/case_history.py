"""Claim history page and its JSON endpoints."""

from __future__ import annotations

from flask import abort, jsonify, render_template, request

from ..auth import current_staff, staff_required
from ..errors import ValidationError
from ..extensions import db
from ..models import Form1112Master, Form18Master
from ..services import case_history as history_service
from ..services import search as search_service
from . import bp
from .helpers import parse_irn


@bp.route("/claims/<int:irn>/history")
@staff_required
def claim_history(irn, staff):
    claim = db.session.get(Form1112Master, irn)
    if claim is None:
        abort(404)
    decisions, payments = history_service.list_claim_decisions(irn)
    form18 = db.session.execute(
        db.select(Form18Master).where(Form18Master.IRN == irn).order_by(Form18Master.F18MID)
    ).scalars().first()
    return render_template(
        "case_history.html",
        active_page="claims",
        claim=claim,
        decisions=decisions,
        payments=payments,
        current_stage=history_service.current_stage(decisions),
        can_forward_form18=bool(form18 and form18.F18MStatus == "EmployerAccepted" and staff.staff_id),
    )


def _json_auth_error():
    return jsonify({"error": "Please sign in to continue."}), 401


@bp.route("/api/case-history")
def api_case_history():
    if current_staff() is None:
        return _json_auth_error()
    irn = parse_irn(request.args.get("irn"))
    if irn is None:
        return jsonify({"error": "Invalid IRN"}), 400

    decisions, payments = history_service.list_claim_decisions(irn)
    return jsonify({
        "irn": irn,
        "decisions": decisions,
        "payments": payments,
        "currentStage": history_service.current_stage(decisions),
    }), 200


@bp.route("/api/claim-status")
def api_claim_status():
    if current_staff() is None:
        return _json_auth_error()
    try:
        rows = search_service.claims_by_crn_or_name(
            crn=request.args.get("crn", ""),
            first_name=request.args.get("first", ""),
            last_name=request.args.get("last", ""),
        )
    except ValidationError as e:
        return jsonify({"error": e.message}), 400

    claims = []
    for claim, worker in rows:
        decisions, _payments = history_service.list_claim_decisions(claim.IRN)
        claims.append({
            "irn": claim.IRN,
            "displayIRN": claim.DisplayIRN or "N/A",
            "workerName": worker.full_name if worker else "",
            "incidentType": claim.IncidentType or "",
            "currentStage": history_service.current_stage(decisions),
        })
    return jsonify({"claims": claims}), 200

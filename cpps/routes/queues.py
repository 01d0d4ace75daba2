"""Review queues (work lists that lead into the decision pages)."""

from __future__ import annotations

from flask import render_template, request

from ..auth import reviewer_required
from ..services import search as search_service
from ..services.workflow import AWARD_COMMISSIONER, CPM
from . import bp
from .helpers import page_arg

QUEUE_ENDPOINTS = {
    AWARD_COMMISSIONER: "main.award_queue",
    CPM: "main.cpm_queue",
}


@bp.route("/queues/cpm")
@reviewer_required
def cpm_queue(staff):
    crn = request.args.get("crn", "").strip()
    first = request.args.get("first", "").strip()
    last = request.args.get("last", "").strip()
    region, pagination = search_service.cpm_pending_queue(staff, crn, first, last, page=page_arg())
    return render_template(
        "queues/cpm.html",
        active_page="queues",
        region=region,
        pagination=pagination,
        crn=crn,
        first=first,
        last=last,
    )


@bp.route("/queues/award-commissioner")
@reviewer_required
def award_queue(staff):
    pagination, lock_names = search_service.award_commissioner_queue(page=page_arg())
    return render_template(
        "queues/award_commissioner.html",
        active_page="queues",
        pagination=pagination,
        lock_names=lock_names,
    )

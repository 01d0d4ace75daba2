"""Search pages: employers, insurance providers, workers and claims.

Searches only run once the user submits (``?search=1``); an empty page is
just the form.
"""

from __future__ import annotations

from flask import render_template, request, url_for

from ..auth import staff_required
from ..errors import ValidationError
from ..services import search as search_service
from . import bp
from .helpers import flash_error, page_arg


def _submitted() -> bool:
    return request.args.get("search") == "1"


def _pick_url(**pick):
    """Link back to the worker form that opened this list, or None.

    ``?for_worker=new`` returns to registration, ``?for_worker=<id>`` to that
    worker's edit page.
    """
    target = request.args.get("for_worker", "").strip()
    if target == "new":
        return url_for("main.worker_new", **pick)
    if target.isdigit():
        return url_for("main.worker_edit", worker_id=int(target), **pick)
    return None


@bp.route("/search/employers")
@staff_required
def search_employers(staff):
    name = request.args.get("name", "").strip()
    cppsid = request.args.get("cppsid", "").strip()
    results = None
    if _submitted():
        try:
            results = search_service.search_employers(name, cppsid)
        except ValidationError as e:
            flash_error(e)
    picks = {e.CPPSID: _pick_url(employer=e.CPPSID) for e in results or []}
    return render_template(
        "search/employers.html",
        active_page="search",
        name=name,
        cppsid=cppsid,
        results=results,
        for_worker=request.args.get("for_worker", ""),
        picks=picks,
    )


@bp.route("/search/insurance-providers")
@staff_required
def search_insurers(staff):
    name = request.args.get("name", "").strip()
    results = search_service.search_insurance_providers(name) if _submitted() else None
    picks = {i.IPACODE: _pick_url(insurer=i.IPACODE) for i in results or []}
    return render_template(
        "search/insurers.html",
        active_page="search",
        name=name,
        results=results,
        for_worker=request.args.get("for_worker", ""),
        picks=picks,
    )


@bp.route("/search/workers")
@staff_required
def search_workers(staff):
    first = request.args.get("first", "").strip()
    last = request.args.get("last", "").strip()
    pagination = None
    if _submitted():
        pagination = search_service.search_workers(first, last, page=page_arg())
    return render_template(
        "search/workers.html", active_page="search", first=first, last=last, pagination=pagination
    )


@bp.route("/search/claims")
@staff_required
def search_claims(staff):
    crn = request.args.get("crn", "").strip()
    first = request.args.get("first", "").strip()
    last = request.args.get("last", "").strip()
    incident_type = request.args.get("incident_type", "").strip()
    pagination = None
    if _submitted():
        try:
            pagination = search_service.search_claims(crn, first, last, incident_type, page=page_arg())
        except ValidationError as e:
            flash_error(e)
    return render_template(
        "search/claims.html",
        active_page="search",
        crn=crn,
        first=first,
        last=last,
        incident_type=incident_type,
        pagination=pagination,
    )

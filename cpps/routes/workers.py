"""Worker registration and edit pages.

Editing is two steps: the tabbed form posts to a review page listing every
change per tab, and that page posts the same values back to save them.
"""

from __future__ import annotations

from flask import abort, current_app, flash, redirect, render_template, request, url_for

from ..auth import staff_required
from ..errors import CppsError, NotFoundError, ValidationError
from ..services import workers as worker_service
from . import bp
from .helpers import flash_error


def _apply_picks(staff, form):
    """Employer or insurer chosen from the search lists arrives as ?employer= / ?insurer=."""
    if staff.is_employer:
        return
    try:
        if request.args.get("employer"):
            worker_service.select_employer(form, request.args["employer"].strip())
        if request.args.get("insurer"):
            worker_service.select_insurer(form, request.args["insurer"].strip())
    except ValidationError as e:
        flash_error(e)


def _render_form(staff, form, dependants, history, *, worker_id=None, missing=()):
    pick_for = worker_id or "new"
    return render_template(
        "workers/form.html",
        active_page="workers",
        worker_id=worker_id,
        find_employer_url=url_for("main.search_employers", for_worker=pick_for),
        find_insurer_url=url_for("main.search_insurers", for_worker=pick_for),
        form=form,
        dependants=dependants,
        history=history,
        provinces=worker_service.province_options(),
        employer_locked=staff.is_employer,
        labels=worker_service.FIELD_LABELS,
        tab_titles=worker_service.TAB_TITLES,
        sections=worker_service.FORM_SECTIONS,
        locked_fields=worker_service.EMPLOYER_LOCKED_FIELDS if staff.is_employer else (),
        dependant_fields=worker_service.DEPENDANT_FIELDS,
        history_fields=worker_service.WORK_HISTORY_FIELDS,
        required=worker_service.EDIT_REQUIRED if worker_id else worker_service.REGISTER_REQUIRED,
        missing=set(missing),
    )


@bp.route("/workers/new", methods=["GET", "POST"])
@staff_required
def worker_new(staff):
    if request.method == "GET":
        form = worker_service.empty_form()
        form.update(worker_service.employer_prefill(staff))
        _apply_picks(staff, form)
        return _render_form(staff, form, [], [])

    form, dependants, history = worker_service.form_from_post(request.form)
    try:
        summary = worker_service.register_worker(
            staff, form, dependants, history, photo=request.files.get("WorkerPassportPhotoFile")
        )
    except ValidationError as e:
        flash_error(e)
        return _render_form(staff, form, dependants, history, missing=e.missing_fields)
    except CppsError as e:
        flash_error(e)
        return _render_form(staff, form, dependants, history)

    flash("Worker registered successfully.", "success")
    return render_template("workers/summary.html", active_page="workers", summary=summary)


@bp.route("/workers/<int:worker_id>/edit", methods=["GET", "POST"])
@staff_required
def worker_edit(worker_id, staff):
    try:
        original, orig_dependants, orig_history = worker_service.load_worker(worker_id)
    except NotFoundError:
        abort(404)

    if request.method == "GET":
        form = dict(original)
        _apply_picks(staff, form)
        return _render_form(staff, form, orig_dependants, orig_history, worker_id=worker_id)

    form, dependants, history = worker_service.form_from_post(request.form)
    if staff.is_employer:
        form.update(worker_service.employer_prefill(staff))

    try:
        worker_service.validate_worker_form(form)
        worker_service.resolve_selections(form)
    except ValidationError as e:
        flash_error(e)
        return _render_form(staff, form, dependants, history, worker_id=worker_id, missing=e.missing_fields)

    if request.form.get("step") != "save":
        changes = worker_service.compute_changes(
            original, form, orig_dependants, dependants, orig_history, history
        )
        return render_template(
            "workers/confirm.html",
            active_page="workers",
            worker_id=worker_id,
            posted=request.form,
            changes=changes,
            tab_counts=worker_service.tab_change_counts(changes),
            tab_titles=worker_service.TAB_TITLES,
        )

    try:
        message = worker_service.update_worker(
            staff, worker_id, form, dependants, history, photo=request.files.get("WorkerPassportPhotoFile")
        )
    except CppsError as e:
        current_app.logger.warning("Worker %s edit failed: %s", worker_id, e.message)
        flash_error(e)
        return _render_form(staff, form, dependants, history, worker_id=worker_id)

    flash(message, "success")
    return redirect(url_for("main.worker_edit", worker_id=worker_id))

"""Serving files out of the storage bucket."""

from __future__ import annotations

import os

from flask import abort, send_file

from ..auth import staff_required
from ..errors import NotFoundError
from ..services import storage as storage_service
from . import bp


def _send(rel_path: str):
    try:
        full = storage_service.resolve_path(rel_path)
    except NotFoundError:
        abort(404)
    if not os.path.isfile(full):
        abort(404)
    return send_file(full)


@bp.route("/storage/public/<path:path>")
@staff_required
def storage_public(path, staff):
    return _send(path)


@bp.route("/storage/signed/<token>")
def storage_signed(token):
    try:
        rel = storage_service.verify_signed_token(token)
    except NotFoundError:
        abort(404)
    return _send(rel)

"""Landing page."""

from __future__ import annotations

from flask import render_template

from ..auth import current_staff
from . import bp


@bp.route("/")
def index():
    staff = current_staff()
    return render_template("index.html", active_page="home", staff=staff)

"""Staff session handling.

Sign-in is handled by the external auth gateway, which stores the signed-in
profile id and permission group in the Flask session. Routes turn that into a
`StaffSession` and pass it explicitly to the services that need to know who
is acting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import wraps
from typing import Optional

from flask import current_app, flash, g, redirect, session, url_for

from .extensions import db
from .models import OWCStaff

logger = logging.getLogger(__name__)

# Permission groups issued by the auth gateway
GROUP_EMPLOYER = 15
GROUP_DATA_ENTRY = 18

SESSION_PROFILE_KEY = "profile_id"
SESSION_GROUP_KEY = "group"
SESSION_ORGANIZATION_KEY = "organization_id"


@dataclass(frozen=True)
class StaffSession:
    profile_id: str
    group: Optional[int] = None
    staff_id: Optional[int] = None
    staff_name: str = ""
    region: Optional[str] = None
    designation: Optional[str] = None
    organization_id: Optional[str] = None

    @property
    def is_employer(self) -> bool:
        return self.group == GROUP_EMPLOYER

    @property
    def is_data_entry(self) -> bool:
        return self.group == GROUP_DATA_ENTRY

    @property
    def display_name(self) -> str:
        if self.staff_name:
            return self.staff_name
        return f"User {self.staff_id or self.profile_id}"


def build_staff_session(profile_id, group=None, organization_id=None) -> StaffSession:
    """Resolve a signed-in profile into a StaffSession.

    Profiles without an owcstaffmaster row (employers, data entry clerks) still
    get a session; they simply have no staff id.
    """
    pid = str(profile_id).strip()
    org = str(organization_id).strip() if organization_id else None
    try:
        grp = int(group) if group not in (None, "") else None
    except (TypeError, ValueError):
        grp = None

    staff = db.session.execute(
        db.select(OWCStaff).where(OWCStaff.cppsid == pid)
    ).scalars().first()

    if staff is None:
        logger.debug("No owcstaffmaster row for profile %s", pid)
        return StaffSession(profile_id=pid, group=grp, organization_id=org)

    return StaffSession(
        profile_id=pid,
        group=grp,
        staff_id=staff.OSMStaffID,
        staff_name=staff.full_name,
        region=staff.InchargeRegion,
        designation=staff.OSMDesignation,
        organization_id=org,
    )


def current_staff() -> Optional[StaffSession]:
    """Return the StaffSession for this request, or None when nobody is signed in."""
    profile_id = session.get(SESSION_PROFILE_KEY)
    if not profile_id:
        return None

    cached = g.get("staff")
    if cached is not None and cached.profile_id == str(profile_id).strip():
        return cached

    g.staff = build_staff_session(
        profile_id, session.get(SESSION_GROUP_KEY), session.get(SESSION_ORGANIZATION_KEY)
    )
    return g.staff


def staff_required(view):
    """Redirect to the landing page unless the auth gateway has signed someone in."""

    @wraps(view)
    def wrapped(*args, **kwargs):
        staff = current_staff()
        if staff is None:
            flash("Please sign in to continue.", "warning")
            return redirect(url_for("main.index"))
        return view(*args, staff=staff, **kwargs)

    return wrapped


def reviewer_required(view):
    """Like staff_required, but the profile must map to an owcstaffmaster row."""

    @wraps(view)
    def wrapped(*args, **kwargs):
        staff = current_staff()
        if staff is None or staff.staff_id is None:
            current_app.logger.warning(
                "Review access denied for profile %s", staff.profile_id if staff else None
            )
            flash("Only OWC staff can review claims.", "error")
            return redirect(url_for("main.index"))
        return view(*args, staff=staff, **kwargs)

    return wrapped

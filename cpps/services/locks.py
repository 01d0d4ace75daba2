"""Single-owner review locks.

A review row is "locked" when its lock column holds a staff id. Acquiring is
one conditional UPDATE so two reviewers opening the same claim cannot both
win; the loser gets RecordLockedError naming the holder.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import or_, update

from cpps.errors import CppsError, NotFoundError, RecordLockedError
from cpps.extensions import db
from cpps.models import LOCKABLE_STAGES, OWCStaff

logger = logging.getLogger(__name__)


def _lock_column(model):
    try:
        return getattr(model, LOCKABLE_STAGES[model])
    except KeyError:
        raise ValueError(f"{model.__tablename__} has no lock column")


def staff_display_name(staff_id: Optional[int]) -> str:
    """'First Last' from owcstaffmaster, or 'User {id}' when unknown."""
    if not staff_id:
        return "Unknown"
    staff = db.session.get(OWCStaff, staff_id)
    if staff is not None and staff.full_name:
        return staff.full_name
    return f"User {staff_id}"


def staff_names(staff_ids) -> dict[int, str]:
    """Batch variant of staff_display_name for list views."""
    ids = {int(i) for i in staff_ids if i}
    if not ids:
        return {}
    rows = db.session.execute(
        db.select(OWCStaff).where(OWCStaff.OSMStaffID.in_(ids))
    ).scalars().all()
    names = {r.OSMStaffID: r.full_name for r in rows if r.full_name}
    return {i: names.get(i, f"User {i}") for i in ids}


def lock_holder(model, irn: int) -> Optional[int]:
    col = _lock_column(model)
    return db.session.execute(db.select(col).where(model.IRN == irn)).scalars().first()


def hold_lock(model, irn: int, staff_id: int) -> None:
    """Take (or keep) the review lock inside the caller's transaction.

    Nothing is committed here. Raises NotFoundError when the claim has no row
    at this stage and RecordLockedError when someone else holds it.
    """
    col = _lock_column(model)
    stmt = (
        update(model)
        .where(model.IRN == irn)
        .where(or_(col.is_(None), col == 0, col == staff_id))
        .values({col.key: staff_id})
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    if result.rowcount:
        return

    holder = lock_holder(model, irn)
    exists = db.session.execute(
        db.select(model.IRN).where(model.IRN == irn)
    ).first()
    if exists is None:
        raise NotFoundError(f"No {model.__tablename__} record for IRN {irn}.")

    logger.info("Lock on %s IRN %s refused for %s (held by %s)", model.__tablename__, irn, staff_id, holder)
    raise RecordLockedError(staff_display_name(holder))


def acquire_lock(model, irn: int, staff_id: int) -> None:
    """Take (or re-take) the review lock for `irn`, committing immediately."""
    try:
        hold_lock(model, irn, staff_id)
    except CppsError:
        db.session.rollback()
        raise
    db.session.commit()
    logger.info("Lock on %s IRN %s held by %s", model.__tablename__, irn, staff_id)


def release_lock(model, irn: int, staff_id: int) -> bool:
    """Clear the lock if the caller holds it. Returns True when a row was released."""
    col = _lock_column(model)
    stmt = (
        update(model)
        .where(model.IRN == irn)
        .where(col == staff_id)
        .values({col.key: None})
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    db.session.commit()
    return bool(result.rowcount)

"""Tests for single-owner review locks."""

import pytest

from cpps.errors import NotFoundError, RecordLockedError
from cpps.extensions import db
from cpps.models import ClaimsAwardedCommissionersReview, Form6Master
from cpps.services import locks

AWARD = ClaimsAwardedCommissionersReview


class TestAcquireLock:
    def test_first_reviewer_takes_the_lock(self, seeded):
        locks.acquire_lock(AWARD, 101, 2811)

        assert locks.lock_holder(AWARD, 101) == 2811

    def test_holder_can_reopen(self, seeded):
        locks.acquire_lock(AWARD, 101, 2811)
        locks.acquire_lock(AWARD, 101, 2811)

        assert locks.lock_holder(AWARD, 101) == 2811

    def test_zero_counts_as_unlocked(self, seeded):
        row = db.session.execute(db.select(AWARD).where(AWARD.IRN == 101)).scalars().one()
        row.LockedByID = 0
        db.session.commit()

        locks.acquire_lock(AWARD, 101, 2812)

        assert locks.lock_holder(AWARD, 101) == 2812

    def test_second_reviewer_is_told_who_holds_it(self, seeded):
        locks.acquire_lock(AWARD, 101, 2811)

        with pytest.raises(RecordLockedError) as exc:
            locks.acquire_lock(AWARD, 101, 2812)

        assert exc.value.locked_by == "Chris Kolias"
        assert exc.value.message == "The record is locked by Chris Kolias."
        assert locks.lock_holder(AWARD, 101) == 2811

    def test_unknown_holder_is_shown_by_id(self, seeded):
        locks.acquire_lock(AWARD, 101, 9999)

        with pytest.raises(RecordLockedError) as exc:
            locks.acquire_lock(AWARD, 101, 2811)

        assert exc.value.locked_by == "User 9999"

    def test_missing_row(self, seeded):
        with pytest.raises(NotFoundError):
            locks.acquire_lock(AWARD, 555, 2811)

    def test_table_without_lock_column(self, seeded):
        with pytest.raises(ValueError):
            locks.acquire_lock(Form6Master, 101, 2811)


class TestReleaseLock:
    def test_only_the_holder_releases(self, seeded):
        locks.acquire_lock(AWARD, 101, 2811)

        assert locks.release_lock(AWARD, 101, 2812) is False
        assert locks.lock_holder(AWARD, 101) == 2811

        assert locks.release_lock(AWARD, 101, 2811) is True
        assert locks.lock_holder(AWARD, 101) is None

    def test_released_claim_can_be_taken_by_someone_else(self, seeded):
        locks.acquire_lock(AWARD, 101, 2811)
        locks.release_lock(AWARD, 101, 2811)

        locks.acquire_lock(AWARD, 101, 2812)

        assert locks.lock_holder(AWARD, 101) == 2812


class TestStaffNames:
    def test_display_name(self, seeded):
        assert locks.staff_display_name(2811) == "Chris Kolias"
        assert locks.staff_display_name(123) == "User 123"
        assert locks.staff_display_name(None) == "Unknown"

    def test_batch_names(self, seeded):
        assert locks.staff_names([2811, None, 0, 77]) == {2811: "Chris Kolias", 77: "User 77"}

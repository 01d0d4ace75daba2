"""Tests for searches and review queues."""

from datetime import date

import pytest

from cpps.errors import ValidationError
from cpps.extensions import db
from cpps.models import ClaimsAwardedCommissionersReview, CompensationCalculationCPMReview, Form1112Master
from cpps.services import search


class TestReferenceSearch:
    def test_employer_needs_criteria(self, seeded):
        with pytest.raises(ValidationError) as exc:
            search.search_employers("  ", "")

        assert exc.value.message == "Please enter an organization name or CPPS ID to search"

    def test_employer_by_cppsid_is_exact(self, seeded):
        assert [e.CPPSID for e in search.search_employers(cppsid="EMP1")] == ["EMP1"]
        assert search.search_employers(cppsid="EMP") == []

    def test_insurers(self, seeded):
        assert [i.IPACODE for i in search.search_insurance_providers("")] == ["IPA1"]
        assert search.search_insurance_providers("nothing like it") == []


class TestClaimSearch:
    def test_needs_criteria(self, seeded):
        with pytest.raises(ValidationError):
            search.search_claims()

    def test_rows_carry_the_worker(self, seeded):
        pagination = search.search_claims(last_name="kam")

        assert pagination.total == 1
        claim, worker = pagination.items[0]
        assert claim.IRN == 101
        assert worker.WorkerFirstName == "Peter"

    def test_incident_type_filter(self, seeded):
        assert search.search_claims(crn="2024-102", incident_type="Injury").total == 0
        assert search.search_claims(crn="2024-102", incident_type="Death").total == 1

    def test_status_lookup_is_limited(self, seeded):
        for n in range(6):
            db.session.add(Form1112Master(IRN=200 + n, DisplayIRN=f"2025-{n}", IncidentType="Injury"))
        db.session.commit()

        rows = search.claims_by_crn_or_name(crn="2025-")

        assert [claim.IRN for claim, _worker in rows] == [205, 204, 203, 202, 201]
        assert all(worker is None for _claim, worker in rows)


class TestQueues:
    def test_cpm_queue_is_filtered_by_region_and_status(self, seeded, cpm):
        db.session.add_all([
            Form1112Master(IRN=301, DisplayIRN="2024-301", IncidentType="Injury"),
            Form1112Master(IRN=302, DisplayIRN="2024-302", IncidentType="Injury"),
            CompensationCalculationCPMReview(IRN=301, IncidentRegion="Southern Region", CPMRStatus="Pending"),
            CompensationCalculationCPMReview(IRN=302, IncidentRegion="Momase Region", CPMRStatus="Accepted"),
        ])
        db.session.commit()

        region, pagination = search.cpm_pending_queue(cpm)

        assert region == "Momase Region"
        assert [(r.IRN, c.DisplayIRN, w.WorkerFirstName) for r, c, w in pagination.items] == [
            (102, "2024-102", "Anna"),
        ]

    def test_region_falls_back_to_default(self, app, chief):
        assert search.staff_region(chief) == app.config["CPPS_DEFAULT_REGION"]

    def test_award_queue_with_lock_names(self, seeded):
        db.session.add_all([
            Form1112Master(IRN=401, DisplayIRN="2024-401", IncidentType="Injury"),
            ClaimsAwardedCommissionersReview(IRN=401, CACRReviewStatus="ChiefCommissionerReviewPending",
                                             CACRSubmissionDate=date(2024, 3, 5), LockedByID=2812),
            Form1112Master(IRN=402, DisplayIRN="2024-402", IncidentType="Injury"),
            ClaimsAwardedCommissionersReview(IRN=402, CACRReviewStatus="CommissionerAccepted",
                                             CACRSubmissionDate=date(2024, 3, 6)),
        ])
        db.session.commit()

        pagination, names = search.award_commissioner_queue()

        assert [r.IRN for r, _c, _w in pagination.items] == [401, 101]
        assert names == {2812: "Mary Tamu"}
        _review, claim, worker = pagination.items[1]
        assert claim.DisplayIRN == "2024-101"
        assert worker.WorkerLastName == "Kama"

"""HTTP-level tests for the blueprint (pages, JSON endpoints, downloads)."""

import io
import os

import pytest

from cpps.extensions import db
from cpps.models import ClaimsAwardedCommissionersReview, FormAttachment, InsuranceCompany, WorkerPersonalDetails
from cpps.services import certificate, locks, storage
from cpps.services import workers as worker_service


def _award_row():
    return db.session.execute(
        db.select(ClaimsAwardedCommissionersReview).where(ClaimsAwardedCommissionersReview.IRN == 101)
    ).scalars().one()


class FakeHTML:
    def __init__(self, string=None, base_url=None):
        self.string = string

    def write_pdf(self):
        return b"%PDF-route"


class TestCaseHistoryApi:
    def test_requires_sign_in(self, client, seeded):
        resp = client.get("/api/case-history?irn=101")

        assert resp.status_code == 401
        assert resp.get_json() == {"error": "Please sign in to continue."}

    @pytest.mark.parametrize("irn", ["abc", "0", "-3", ""])
    def test_invalid_irn(self, client, login, seeded, irn):
        login("p2811")

        resp = client.get(f"/api/case-history?irn={irn}")

        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Invalid IRN"}

    def test_history_payload(self, client, login, seeded):
        login("p2811")

        resp = client.get("/api/case-history?irn=102")

        body = resp.get_json()
        assert resp.status_code == 200
        assert body["irn"] == 102
        # the CPM row has no decision date yet, so it comes first
        assert [d["stage"] for d in body["decisions"]] == ["cpm", "cpo"]
        assert body["payments"] == []
        assert body["currentStage"] == "CompensationCalculated - Death (as of 25/01/2024)"


class TestClaimStatusApi:
    def test_needs_criteria(self, client, login, seeded):
        login("p2811")

        resp = client.get("/api/claim-status")

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Please enter a claim reference number or the worker's name"

    def test_partial_crn(self, client, login, seeded):
        login("p2811")

        resp = client.get("/api/claim-status?crn=2024-10")

        claims = resp.get_json()["claims"]
        assert [c["irn"] for c in claims] == [102, 101]
        assert claims[1]["workerName"] == "Peter Kama"
        assert claims[1]["incidentType"] == "Injury"


class TestReviewPages:
    def test_non_staff_cannot_review(self, client, login, seeded):
        login("someone-else")

        resp = client.get("/review/award-commissioner/101")

        assert resp.status_code == 302
        assert resp.headers["Location"].endswith("/")

    def test_open_review_takes_the_lock(self, client, login, seeded):
        login("p2812")

        resp = client.get("/review/award-commissioner/101")

        assert resp.status_code == 200
        assert b"Preview consent award certificate" in resp.data
        assert b"Peter Kama" in resp.data
        assert _award_row().LockedByID == 2812

    def test_locked_review_sends_reviewer_back_to_queue(self, client, login, seeded):
        locks.acquire_lock(ClaimsAwardedCommissionersReview, 101, 2811)
        login("p2812")

        resp = client.get("/review/award-commissioner/101", follow_redirects=True)

        assert resp.request.path == "/queues/award-commissioner"
        assert b"The record is locked by Chris Kolias." in resp.data

    def test_unknown_stage(self, client, login, seeded):
        login("p2811")

        assert client.get("/review/tribunal/101").status_code == 404

    def test_keep_on_hold(self, client, login, seeded):
        login("p2811")

        resp = client.post("/review/award-commissioner/101/decide", data={"decision": "KeepOnHold"})

        assert resp.status_code == 302
        assert resp.headers["Location"].endswith("/review/award-commissioner/101")
        assert _award_row().CACRReviewStatus == "CommissionerReviewPending"

    def test_approval_downloads_certificate(self, client, login, seeded, monkeypatch):
        monkeypatch.setattr(certificate, "HTML", FakeHTML)
        login("p2811")

        resp = client.post("/review/award-commissioner/101/decide", data={"decision": "Approved", "reason": "ok"})

        assert resp.status_code == 200
        assert resp.mimetype == "application/pdf"
        assert "ConsentOfAward-Injury-2024-101.pdf" in resp.headers["Content-Disposition"]
        assert resp.data == b"%PDF-route"
        assert _award_row().CACRReviewStatus == "ChiefCommissionerAccepted"

    def test_decision_on_someone_elses_claim_is_refused(self, client, login, seeded):
        locks.acquire_lock(ClaimsAwardedCommissionersReview, 101, 2812)
        login("p2811")

        resp = client.post(
            "/review/award-commissioner/101/decide", data={"decision": "Reject"}, follow_redirects=True
        )

        assert resp.request.path == "/queues/award-commissioner"
        assert b"The record is locked by Mary Tamu." in resp.data
        row = _award_row()
        assert row.CACRReviewStatus == "CommissionerReviewPending"
        assert row.LockedByID == 2812

    def test_cpm_decision_redirects_to_queue(self, client, login, seeded):
        login("p3001")

        resp = client.post("/review/cpm/102/decide", data={"decision": "Reject"})

        assert resp.status_code == 302
        assert resp.headers["Location"].endswith("/queues/cpm")

    def test_close_releases_lock(self, client, login, seeded):
        login("p2812")
        client.get("/review/award-commissioner/101")

        client.post("/review/award-commissioner/101/close")

        assert _award_row().LockedByID is None


class TestQueues:
    def test_award_queue_lists_pending_claims(self, client, login, seeded):
        login("p2811")

        resp = client.get("/queues/award-commissioner")

        assert resp.status_code == 200
        assert b"2024-101" in resp.data

    def test_cpm_queue_is_regional(self, client, login, seeded):
        login("p3001")

        resp = client.get("/queues/cpm")

        assert resp.status_code == 200
        assert b"2024-102" in resp.data


class TestSearchPages:
    def test_form_only_until_submitted(self, client, login, seeded):
        login("p2811")

        resp = client.get("/search/claims")

        assert resp.status_code == 200
        assert b"Please enter at least one search criteria" not in resp.data

    def test_claim_search_needs_criteria(self, client, login, seeded):
        login("p2811")

        resp = client.get("/search/claims?search=1")

        assert b"Please enter at least one search criteria" in resp.data

    def test_claim_search_by_exact_crn(self, client, login, seeded):
        login("p2811")

        resp = client.get("/search/claims?search=1&crn=2024-101")

        assert b"Peter" in resp.data
        assert b"2024-102" not in resp.data

    def test_employer_search_needs_criteria(self, client, login, seeded):
        login("p2811")

        resp = client.get("/search/employers?search=1")

        assert b"Please enter an organization name or CPPS ID to search" in resp.data

    def test_employer_search_by_name(self, client, login, seeded):
        login("p2811")

        resp = client.get("/search/employers?search=1&name=timber")

        assert b"Lae Timber Ltd" in resp.data
        assert b"Madang Fisheries" not in resp.data

    def test_insurers_list_all_on_empty_name(self, client, login, seeded):
        login("p2811")

        resp = client.get("/search/insurance-providers?search=1")

        assert b"Pacific Mutual Insurance" in resp.data

    def test_sign_in_required(self, client, seeded):
        resp = client.get("/search/workers")

        assert resp.status_code == 302


def _edit_post(worker_id, **extra):
    """The edit form as the browser would post it back."""
    form, _, _ = worker_service.load_worker(worker_id)
    data = {k: ("1" if v is True else str(v)) for k, v in form.items() if v not in (None, False, "")}
    data.update(extra)
    return data


class TestWorkerPages:
    def test_employer_list_links_back_to_the_new_worker_form(self, client, login, seeded):
        login("p2811")

        resp = client.get("/search/employers?search=1&name=timber&for_worker=new")

        assert b'href="/workers/new?employer=EMP1"' in resp.data

    def test_insurer_list_links_back_to_the_edit_form(self, client, login, seeded):
        worker_id = seeded["worker"].WorkerID
        login("p2811")

        resp = client.get(f"/search/insurance-providers?search=1&for_worker={worker_id}")

        assert f'href="/workers/{worker_id}/edit?insurer=IPA1"'.encode() in resp.data

    def test_plain_search_has_no_select_links(self, client, login, seeded):
        login("p2811")

        resp = client.get("/search/employers?search=1&name=timber")

        assert b"/workers/new?employer=" not in resp.data

    def test_chosen_employer_fills_the_form(self, client, login, seeded):
        login("p2811")

        resp = client.get("/workers/new?employer=EMP2")

        assert resp.status_code == 200
        assert b'value="Madang Fisheries"' in resp.data
        assert b'value="SELF"' in resp.data

    def test_unknown_employer_choice_is_reported(self, client, login, seeded):
        login("p2811")

        resp = client.get("/workers/new?employer=EMP404")

        assert b"Employer EMP404 was not found." in resp.data

    def test_edit_review_shows_the_new_insurer(self, client, login, seeded):
        db.session.add(InsuranceCompany(IPACODE="IPA2", InsuranceCompanyOrganizationName="Kina Assurance"))
        db.session.commit()
        worker_id = seeded["worker"].WorkerID
        login("p2811")

        resp = client.post(
            f"/workers/{worker_id}/edit",
            data=_edit_post(worker_id, step="review", InsuranceProviderIPACode="IPA2"),
        )

        assert resp.status_code == 200
        assert b"Kina Assurance" in resp.data

    def test_edit_form_has_no_photo_upload(self, client, login, seeded):
        worker_id = seeded["worker"].WorkerID
        login("p2811")

        resp = client.get(f"/workers/{worker_id}/edit")

        assert b'name="WorkerPassportPhotoFile"' not in resp.data
        assert b"A new photo can be chosen on the confirmation step." in resp.data

    def test_photo_is_chosen_on_the_confirmation_step(self, app, client, login, seeded):
        worker_id = seeded["worker"].WorkerID
        login("p2811")

        review = client.post(f"/workers/{worker_id}/edit", data=_edit_post(worker_id, step="review"))
        saved = client.post(
            f"/workers/{worker_id}/edit",
            data=_edit_post(worker_id, step="save", WorkerPassportPhotoFile=(io.BytesIO(b"png"), "me.png")),
            content_type="multipart/form-data",
        )

        assert b'name="WorkerPassportPhotoFile"' in review.data
        assert saved.status_code == 302
        stored = db.session.get(WorkerPersonalDetails, worker_id).WorkerPassportPhoto
        assert stored.startswith("cpps/attachments/workerpassportphotos/")
        assert os.path.exists(os.path.join(app.config["CPPS_STORAGE_ROOT"], stored))


class TestAttachmentDownloads:
    def test_summary_csv(self, client, login, seeded, form11_catalog):
        db.session.add(FormAttachment(IRN=101, AttachmentType="Medical Report", FileName="med1.pdf"))
        db.session.commit()
        login("p2811")

        resp = client.get("/claims/101/attachments/summary.csv")

        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        assert "attachments_2024-101_summary.csv" in resp.headers["Content-Disposition"]
        assert resp.data.startswith(b'"CRN","WorkerID"')

    def test_unknown_csv_kind(self, client, login, seeded, form11_catalog):
        login("p2811")

        assert client.get("/claims/101/attachments/everything.csv").status_code == 404

    def test_status_page(self, client, login, seeded, form11_catalog):
        login("p2811")

        resp = client.get("/claims/101/attachments")

        assert resp.status_code == 200
        assert b"Medical Report" in resp.data


class TestStorage:
    def _write(self, app, rel, data=b"hello"):
        full = os.path.join(app.config["CPPS_STORAGE_ROOT"], "cpps", rel)
        os.makedirs(os.path.dirname(full), exist_ok=True)
        with open(full, "wb") as fh:
            fh.write(data)

    def test_signed_link_round_trip(self, app, client, seeded):
        self._write(app, "attachments/a.pdf")
        with app.test_request_context():
            url = storage.signed_url("cpps/attachments/a.pdf", expires_in=60)

        resp = client.get(url)

        assert resp.status_code == 200
        assert resp.data == b"hello"

    def test_tampered_token(self, client, seeded):
        assert client.get("/storage/signed/not-a-token").status_code == 404

    def test_public_path_cannot_escape_bucket(self, app, client, login, seeded):
        login("p2811")

        assert client.get("/storage/public/../../etc/passwd").status_code == 404

    def test_public_file(self, app, client, login, seeded):
        self._write(app, "images/crest.png", b"png")
        login("p2811")

        resp = client.get("/storage/public/images/crest.png")

        assert resp.status_code == 200
        assert resp.data == b"png"

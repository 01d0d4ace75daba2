"""Tests for the consent award certificate."""

import os
from datetime import date

import pytest

from cpps.errors import CppsError, NotFoundError
from cpps.extensions import db
from cpps.models import ClaimsAwardedCommissionersReview, CurrentEmploymentDetails, Form1112Master
from cpps.services import certificate


class RecordingHTML:
    last = None

    def __init__(self, string=None, base_url=None):
        RecordingHTML.last = string

    def write_pdf(self):
        return b"%PDF-1.7 test"


@pytest.fixture
def weasy(monkeypatch):
    RecordingHTML.last = None
    monkeypatch.setattr(certificate, "HTML", RecordingHTML)
    return RecordingHTML


@pytest.fixture
def decided(seeded):
    row = db.session.execute(
        db.select(ClaimsAwardedCommissionersReview).where(ClaimsAwardedCommissionersReview.IRN == 101)
    ).scalars().one()
    row.CACRReviewStatus = "ChiefCommissionerAccepted"
    row.CACRDecisionDate = date(2024, 3, 1)
    db.session.commit()
    return row


class TestFormatting:
    def test_certificate_date(self):
        assert certificate.certificate_date(date(2024, 3, 1)) == "1st day of March, 2024"
        assert certificate.certificate_date("2023-11-22") == "22nd day of November, 2023"
        assert certificate.certificate_date(None) == ""

    def test_total_compensation(self):
        assert certificate.total_compensation(1000, 200, 50, -25) == 1225
        assert certificate.total_compensation(None, "", "10.5") == certificate.to_decimal("10.5")


class TestGatherCertificateData:
    def test_claim_worker_and_insurer(self, decided):
        data = certificate.gather_certificate_data(101)

        assert data["display_irn"] == "2024-101"
        assert data["total_display"] == "K1,225"
        assert data["worker_name"] == "PETER KAMA"
        assert data["worker_origin"] == "BUMBU VILLAGE, LAE DISTRICT, MOROBE PROVINCE"
        assert data["employer_name"] == "LAE TIMBER LTD"
        assert data["employer_address"] == "SECTION 5 LOT 12, LAE, MOROBE, P.O. BOX 881"
        assert data["insurer_name"] == "PACIFIC MUTUAL INSURANCE"
        assert data["incident_date"] == "20th day of November, 2023"
        assert data["decision_date"] == "1st day of March, 2024"

    def test_self_insured_employer_is_named_as_insurer(self, decided, seeded):
        db.session.add(CurrentEmploymentDetails(WorkerID=seeded["worker"].WorkerID, EmployerCPPSID="EMP2"))
        db.session.commit()

        data = certificate.gather_certificate_data(101)

        assert data["employer_name"] == "MADANG FISHERIES"
        assert data["insurer_name"] == "MADANG FISHERIES"

    def test_claim_without_worker_prints_blank_worker_lines(self, decided):
        db.session.add(Form1112Master(IRN=103, DisplayIRN="2024-103", IncidentType="Injury"))
        db.session.commit()

        data = certificate.gather_certificate_data(103)

        assert data["display_irn"] == "2024-103"
        assert data["worker_name"] == ""
        assert data["worker_origin"] == ""
        assert data["employer_name"] == ""
        assert data["insurer_name"] == ""

    def test_missing_claim(self, seeded):
        with pytest.raises(NotFoundError):
            certificate.gather_certificate_data(404)


class TestDownload:
    def test_renders_both_pages(self, decided, weasy):
        filename, pdf = certificate.download_consent_of_award_injury(101)

        assert filename == "ConsentOfAward-Injury-2024-101.pdf"
        assert pdf == b"%PDF-1.7 test"
        html = weasy.last
        assert "CONSENT AWARD IN THE CASE OF SPECIFIED INJURIES TO WORKER" in html
        assert "K1,225" in html
        assert "IT IS SO AWARDED, this the 1st day of March, 2024." in html

    def test_signature_artwork_only_when_requested(self, app, decided, weasy):
        images = os.path.join(app.config["CPPS_STORAGE_ROOT"], "cpps", "images")
        os.makedirs(images)
        for name in ("crest.png", "stamp.png"):
            with open(os.path.join(images, name), "wb") as fh:
                fh.write(b"\x89PNG\r\n\x1a\n")

        certificate.download_consent_of_award_injury(101, crest_url="images/crest.png", stamp_url="images/stamp.png")
        unsigned = weasy.last
        certificate.download_consent_of_award_injury(
            101, crest_url="images/crest.png", stamp_url="images/stamp.png", include_signature=True
        )
        signed = weasy.last

        assert 'alt="crest"' in unsigned
        assert "data:image/png;base64," in unsigned
        assert 'alt="stamp"' not in unsigned
        assert 'alt="stamp"' in signed

    def test_missing_image_is_skipped(self, decided, weasy):
        certificate.download_consent_of_award_injury(101, crest_url="images/nowhere.png")

        assert 'alt="crest"' not in weasy.last

    def test_without_pdf_engine(self, decided, monkeypatch):
        monkeypatch.setattr(certificate, "HTML", None)

        with pytest.raises(CppsError) as exc:
            certificate.download_consent_of_award_injury(101)

        assert exc.value.message == certificate.PDF_UNAVAILABLE


class TestRemoteImages:
    def test_http_image_becomes_data_uri(self, monkeypatch):
        class Resp:
            content = b"GIF89a"
            headers = {"Content-Type": "image/gif; charset=binary"}

            def raise_for_status(self):
                pass

        monkeypatch.setattr(certificate.requests, "get", lambda url, timeout: Resp())

        uri = certificate.fetch_image_data_uri("https://cdn.example/crest.gif")

        assert uri == "data:image/gif;base64,R0lGODlh"

    def test_http_failure_is_skipped(self, monkeypatch):
        def _fail(url, timeout):
            raise certificate.requests.ConnectionError("offline")

        monkeypatch.setattr(certificate.requests, "get", _fail)

        assert certificate.fetch_image_data_uri("https://cdn.example/crest.gif") is None

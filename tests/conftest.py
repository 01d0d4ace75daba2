"""Pytest configuration and shared fixtures."""

from datetime import date

import pytest

from cpps import create_app
from cpps.auth import StaffSession
from cpps.config import TestConfig
from cpps.extensions import db
from cpps.models import (
    ApprovedClaimsCPOReview,
    AttachmentMaster,
    ClaimCompensationWorkerDetails,
    ClaimsAwardedCommissionersReview,
    CompensationCalculationCPMReview,
    CurrentEmploymentDetails,
    Employer,
    Form1112Master,
    InsuranceCompany,
    OWCStaff,
    WorkerPersonalDetails,
)

CHIEF_ID = 2811
COMMISSIONER_ID = 2812
CPM_ID = 3001
OTHER_ID = 4001

INJURY_IRN = 101
DEATH_IRN = 102


@pytest.fixture
def app(tmp_path):
    """Application with an in-memory database and a throwaway storage bucket.

    The app context stays pushed for the whole test so services can be
    called directly.
    """

    class _Config(TestConfig):
        CPPS_STORAGE_ROOT = str(tmp_path / "storage")

    app = create_app(_Config)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    """Sign a profile in the way the auth gateway does (profile id + group in the session)."""

    def _login(profile_id, group=18, organization_id=None):
        with client.session_transaction() as sess:
            sess["profile_id"] = profile_id
            sess["group"] = group
            if organization_id is not None:
                sess["organization_id"] = organization_id
        return client

    return _login


def _staff_session(staff_id, name, region=None, designation=None):
    return StaffSession(
        profile_id=f"p{staff_id}",
        group=18,
        staff_id=staff_id,
        staff_name=name,
        region=region,
        designation=designation,
    )


@pytest.fixture
def chief():
    return _staff_session(CHIEF_ID, "Chris Kolias", designation="Chief Commissioner")


@pytest.fixture
def commissioner():
    return _staff_session(COMMISSIONER_ID, "Mary Tamu", designation="Commissioner")


@pytest.fixture
def cpm():
    return _staff_session(CPM_ID, "John Waim", region="Momase Region", designation="Claims Manager")


@pytest.fixture
def seeded(app):
    """Two claims (injury 101 at the award stage, death 102 at the CPM stage) and their people.

    Returns a dict of the created rows keyed by role.
    """
    staff = [
        OWCStaff(OSMStaffID=CHIEF_ID, cppsid=f"p{CHIEF_ID}", OSMFirstName="Chris", OSMLastName="Kolias",
                 OSMDesignation="Chief Commissioner"),
        OWCStaff(OSMStaffID=COMMISSIONER_ID, cppsid=f"p{COMMISSIONER_ID}", OSMFirstName="Mary", OSMLastName="Tamu",
                 OSMDesignation="Commissioner"),
        OWCStaff(OSMStaffID=CPM_ID, cppsid=f"p{CPM_ID}", OSMFirstName="John", OSMLastName="Waim",
                 OSMDesignation="Claims Manager", InchargeRegion="Momase Region"),
        OWCStaff(OSMStaffID=OTHER_ID, cppsid=f"p{OTHER_ID}", OSMFirstName="Ruth", OSMLastName="Kila",
                 OSMDesignation="Provincial Claims Officer", InchargeRegion="Momase Region"),
    ]
    insurer = InsuranceCompany(IPACODE="IPA1", InsuranceCompanyOrganizationName="Pacific Mutual Insurance")
    employer = Employer(
        CPPSID="EMP1",
        OrganizationName="Lae Timber Ltd",
        Address1="Section 5 Lot 12",
        City="Lae",
        Province="Morobe",
        POBox="881",
        OrganizationType="Private",
        InsuranceProviderIPACode="IPA1",
        InsuranceIPACode="IPA1",
    )
    self_insured = Employer(CPPSID="EMP2", OrganizationName="Madang Fisheries", InsuranceProviderIPACode="SELF")
    worker = WorkerPersonalDetails(
        WorkerFirstName="Peter",
        WorkerLastName="Kama",
        WorkerDOB=date(1985, 6, 1),
        WorkerGender="M",
        WorkerMarried="0",
        WorkerPlaceOfOriginVillage="Bumbu",
        WorkerPlaceOfOriginDistrict="Lae",
        WorkerPlaceOfOriginProvince="Morobe",
    )
    other_worker = WorkerPersonalDetails(WorkerFirstName="Anna", WorkerLastName="Sale", WorkerGender="F")
    db.session.add_all(staff + [insurer, employer, self_insured, worker, other_worker])
    db.session.flush()

    db.session.add_all([
        CurrentEmploymentDetails(WorkerID=worker.WorkerID, EmployerCPPSID="EMP1", Occupation="Sawmill operator",
                                 PlaceOfEmployment="Lae Timber Ltd", AverageWeeklyWage=350, InsuranceIPACode="IPA1"),
        CurrentEmploymentDetails(WorkerID=other_worker.WorkerID, EmployerCPPSID="EMP2", Occupation="Deckhand"),
        Form1112Master(IRN=INJURY_IRN, DisplayIRN="2024-101", WorkerID=worker.WorkerID, IncidentType="Injury",
                       IncidentDate=date(2023, 11, 20), IncidentProvince="Morobe", IncidentRegion="Momase Region"),
        Form1112Master(IRN=DEATH_IRN, DisplayIRN="2024-102", WorkerID=other_worker.WorkerID, IncidentType="Death",
                       IncidentDate=date(2024, 1, 5), IncidentProvince="Madang", IncidentRegion="Momase Region"),
        ClaimsAwardedCommissionersReview(IRN=INJURY_IRN, ClaimType="Consent", IncidentType="Injury",
                                         CACRReviewStatus="CommissionerReviewPending",
                                         CACRSubmissionDate=date(2024, 2, 20)),
        ClaimCompensationWorkerDetails(IRN=INJURY_IRN, CCWDWorkerFirstName="Peter", CCWDWorkerLastName="Kama",
                                       CCWDCompensationAmount=1000, CCWDMedicalExpenses=200,
                                       CCWDMiscExpenses=50, CCWDDeductions=-25),
        CompensationCalculationCPMReview(IRN=DEATH_IRN, IncidentType="Death", IncidentRegion="Momase Region",
                                         CPMRStatus="Pending", CPMRSubmissionDate=date(2024, 2, 1)),
        ApprovedClaimsCPOReview(IRN=DEATH_IRN, IncidentType="Death", CPORStatus="CompensationCalculated",
                                CPORApprovedDate=date(2024, 1, 25)),
    ])
    db.session.commit()
    return {"worker": worker, "other_worker": other_worker, "employer": employer, "insurer": insurer}


@pytest.fixture
def form11_catalog(app):
    """Seven Form11 documents, five of them mandatory."""
    docs = [
        ("Medical Report", True),
        ("Police Report", True),
        ("Supervisor Statement", True),
        ("Witness Statement", True),
        ("Wage Records", True),
        ("Photographs of Injury", False),
        ("Hospital Invoices", False),
    ]
    rows = [
        AttachmentMaster(FormType=name, AttachmentType="Form11", Mandatory=mandatory,
                         FolderName="attachments/" + name.lower().replace(" ", ""))
        for name, mandatory in docs
    ]
    rows.append(AttachmentMaster(FormType="Death Certificate", AttachmentType="Form12", Mandatory=True,
                                 FolderName="attachments/deathcertificate"))
    db.session.add_all(rows)
    db.session.commit()
    return rows

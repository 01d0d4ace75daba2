import argparse
import random
from datetime import date, timedelta

from faker import Faker

from cpps import create_app
from cpps.extensions import db
from cpps.models import (
    ApprovedClaimsCPOReview,
    AttachmentMaster,
    BankAccountDeposit,
    ClaimCompensationWorkerDetails,
    ClaimsAwardedCommissionersReview,
    ClaimsAwardedRegistrarReview,
    CompensationCalculationCPMReview,
    CurrentEmploymentDetails,
    DependantPersonalDetails,
    Dictionary,
    Employer,
    Form1112Master,
    Form18Master,
    Form6Master,
    FormAttachment,
    InsuranceCompany,
    OWCClaimChequeDetails,
    OWCStaff,
    PrescreeningReview,
    RegistrarReview,
    WorkHistory,
    WorkerPersonalDetails,
)

fake = Faker()

PROVINCES = {
    "Momase Region": ["Morobe", "Madang", "East Sepik", "Sandaun"],
    "Southern Region": ["Central", "Gulf", "Milne Bay", "Oro", "Western", "National Capital District"],
    "Highlands Region": ["Eastern Highlands", "Western Highlands", "Simbu", "Enga", "Hela", "Jiwaka", "Southern Highlands"],
    "New Guinea Islands Region": ["East New Britain", "West New Britain", "Manus", "New Ireland", "Bougainville"],
}

FORM11_DOCUMENTS = [
    ("Medical Report", True),
    ("Police Report", True),
    ("Supervisor Statement", True),
    ("Witness Statement", True),
    ("Wage Records", True),
    ("Photographs of Injury", False),
    ("Hospital Invoices", False),
]
FORM12_DOCUMENTS = [
    ("Death Certificate", True),
    ("Post Mortem Report", True),
    ("Police Report", True),
    ("Dependant Declarations", False),
]


def _region_of(province):
    for region, provinces in PROVINCES.items():
        if province in provinces:
            return region
    return "Momase Region"


def _recent(days=365):
    return date.today() - timedelta(days=random.randint(1, days))


# ============================================================
#  WIPE (child tables first)
# ============================================================

WIPE_ORDER = [
    FormAttachment, AttachmentMaster, OWCClaimChequeDetails, BankAccountDeposit,
    ClaimCompensationWorkerDetails, Form18Master, Form6Master, ApprovedClaimsCPOReview,
    CompensationCalculationCPMReview, ClaimsAwardedRegistrarReview, ClaimsAwardedCommissionersReview,
    RegistrarReview, PrescreeningReview, Form1112Master, WorkHistory, DependantPersonalDetails,
    CurrentEmploymentDetails, WorkerPersonalDetails, Employer, InsuranceCompany, OWCStaff, Dictionary,
]


def wipe_domain_data():
    print("Wiping demo data...")
    for model in WIPE_ORDER:
        db.session.execute(db.delete(model))
    db.session.commit()
    print("Demo data wiped.")


# ============================================================
#  SEED HELPERS
# ============================================================

def seed_provinces():
    rows = []
    for provinces in PROVINCES.values():
        for p in provinces:
            rows.append(Dictionary(DType="Province", DKey=p, DValue=p))
    db.session.add_all(rows)
    db.session.commit()
    return rows


def seed_staff():
    staff = [
        OWCStaff(OSMStaffID=2811, cppsid="chief-commissioner", OSMFirstName="Chris", OSMLastName="Kolias",
                 OSMDesignation="Chief Commissioner", InchargeRegion=None),
        OWCStaff(OSMStaffID=2812, cppsid="commissioner", OSMFirstName=fake.first_name(), OSMLastName=fake.last_name(),
                 OSMDesignation="Commissioner", InchargeRegion=None),
    ]
    next_id = 3001
    for region in PROVINCES:
        staff.append(OWCStaff(OSMStaffID=next_id, cppsid=f"cpm-{next_id}", OSMFirstName=fake.first_name(),
                              OSMLastName=fake.last_name(), OSMDesignation="Claims Manager", InchargeRegion=region))
        staff.append(OWCStaff(OSMStaffID=next_id + 1, cppsid=f"cpo-{next_id + 1}", OSMFirstName=fake.first_name(),
                              OSMLastName=fake.last_name(), OSMDesignation="Provincial Claims Officer",
                              InchargeRegion=region))
        next_id += 10
    db.session.add_all(staff)
    db.session.commit()
    return staff


def seed_insurers(n=3):
    insurers = []
    for i in range(n):
        insurers.append(InsuranceCompany(
            IPACODE=f"IPA{100 + i}",
            InsuranceCompanyOrganizationName=f"{fake.last_name()} General Insurance",
            InsuranceCompanyAddress1=fake.street_address(),
            InsuranceCompanyCity="Port Moresby",
            InsuranceCompanyProvince="National Capital District",
            InsuranceCompanyPOBox=str(random.randint(100, 9999)),
            InsuranceCompanyLandLine=f"3{random.randint(100000, 999999)}",
        ))
    db.session.add_all(insurers)
    db.session.commit()
    return insurers


def seed_employers(insurers, n=5):
    employers = []
    for i in range(n):
        province = random.choice(random.choice(list(PROVINCES.values())))
        ipa = random.choice(insurers).IPACODE if random.random() > 0.2 else "SELF"
        employers.append(Employer(
            CPPSID=f"EMP{1000 + i}",
            OrganizationName=fake.company(),
            Address1=fake.street_address(),
            City=fake.city(),
            Province=province,
            POBox=str(random.randint(100, 9999)),
            MobilePhone=f"7{random.randint(1000000, 9999999)}",
            OrganizationType=random.choice(["Private", "State", "NGO"]),
            InsuranceProviderIPACode=ipa,
            InsuranceIPACode=ipa,
        ))
    db.session.add_all(employers)
    db.session.commit()
    return employers


def seed_workers(employers, n=12):
    workers = []
    for _ in range(n):
        province = random.choice(random.choice(list(PROVINCES.values())))
        married = random.random() > 0.5
        w = WorkerPersonalDetails(
            WorkerFirstName=fake.first_name(),
            WorkerLastName=fake.last_name(),
            WorkerDOB=fake.date_of_birth(minimum_age=18, maximum_age=60),
            WorkerGender=random.choice(["M", "F"]),
            WorkerMarried="1" if married else "0",
            WorkerHanded=random.choice(["Right", "Left"]),
            WorkerPlaceOfOriginVillage=fake.last_name(),
            WorkerPlaceOfOriginDistrict=fake.city(),
            WorkerPlaceOfOriginProvince=province,
            WorkerProvince=province,
            WorkerMobile=f"7{random.randint(1000000, 9999999)}",
            WorkerEmail=fake.email(),
            SpouseFirstName=fake.first_name() if married else None,
            SpouseLastName=fake.last_name() if married else None,
        )
        db.session.add(w)
        db.session.flush()

        employer = random.choice(employers)
        db.session.add(CurrentEmploymentDetails(
            WorkerID=w.WorkerID,
            EmployerCPPSID=employer.CPPSID,
            Occupation=fake.job()[:100],
            PlaceOfEmployment=employer.OrganizationName,
            NatureOfEmployment=random.choice(["Full-time", "Casual", "Contract"]),
            AverageWeeklyWage=random.randint(150, 900),
            WeeklyPaymentRate=random.randint(100, 600),
            WorkedUnderSubContractor="No",
            OrganizationType=employer.OrganizationType,
            InsuranceIPACode=employer.InsuranceIPACode,
        ))
        for _ in range(random.randint(0, 3)):
            db.session.add(DependantPersonalDetails(
                WorkerID=w.WorkerID,
                DependantFirstName=fake.first_name(),
                DependantLastName=w.WorkerLastName,
                DependantDOB=fake.date_of_birth(minimum_age=1, maximum_age=17),
                DependantGender=random.choice(["M", "F"]),
                DependantType="Child",
                DependanceDegree=random.choice([50, 100]),
            ))
        workers.append(w)
    db.session.commit()
    return workers


def seed_attachment_catalog():
    rows = []
    for code, docs in (("Form11", FORM11_DOCUMENTS), ("Form12", FORM12_DOCUMENTS)):
        for name, mandatory in docs:
            folder = "attachments/" + name.lower().replace(" ", "")
            rows.append(AttachmentMaster(FormType=name, AttachmentType=code, Mandatory=mandatory, FolderName=folder))
    db.session.add_all(rows)
    db.session.commit()
    return rows


def seed_claims(workers, staff):
    claims = []
    managers = {s.InchargeRegion: s for s in staff if s.OSMDesignation == "Claims Manager"}
    for i, w in enumerate(workers):
        incident_type = "Death" if random.random() < 0.2 else "Injury"
        province = w.WorkerProvince or "Morobe"
        region = _region_of(province)
        claim = Form1112Master(
            IRN=5000 + i,
            DisplayIRN=f"{date.today().year}-{5000 + i}",
            WorkerID=w.WorkerID,
            IncidentType=incident_type,
            IncidentDate=_recent(),
            IncidentProvince=province,
            IncidentRegion=region,
        )
        db.session.add(claim)

        db.session.add(PrescreeningReview(IRN=claim.IRN, PRFormType="Form11" if incident_type == "Injury" else "Form12",
                                          PRStatus="Approved", PRSubmissionDate=claim.IncidentDate + timedelta(days=3)))
        db.session.add(RegistrarReview(IRN=claim.IRN, IncidentType=incident_type, RRStatus="Accepted",
                                       RRDecisionDate=claim.IncidentDate + timedelta(days=10)))
        db.session.add(ApprovedClaimsCPOReview(IRN=claim.IRN, IncidentType=incident_type,
                                               CPORStatus="CompensationCalculated",
                                               CPORApprovedDate=claim.IncidentDate + timedelta(days=20)))
        db.session.add(ClaimCompensationWorkerDetails(
            IRN=claim.IRN, CCWDWorkerFirstName=w.WorkerFirstName, CCWDWorkerLastName=w.WorkerLastName,
            CCWDAnnualWage=random.randint(8000, 40000), CCWDCompensationAmount=random.randint(1000, 20000),
            CCWDMedicalExpenses=random.randint(0, 2000), CCWDMiscExpenses=random.randint(0, 500),
            CCWDDeductions=0,
        ))

        stage = random.choice(["cpm", "award", "paid"])
        if stage == "cpm":
            db.session.add(CompensationCalculationCPMReview(
                IRN=claim.IRN, IncidentType=incident_type, IncidentRegion=region, CPMRStatus="Pending",
                CPMRSubmissionDate=claim.IncidentDate + timedelta(days=25),
            ))
        else:
            cpm = managers.get(region)
            db.session.add(CompensationCalculationCPMReview(
                IRN=claim.IRN, IncidentType=incident_type, IncidentRegion=region, CPMRStatus="Accepted",
                CPMRSubmissionDate=claim.IncidentDate + timedelta(days=25),
                CPMRDecisionDate=claim.IncidentDate + timedelta(days=30),
                LockedByID=cpm.OSMStaffID if cpm else None,
            ))
            db.session.add(Form6Master(IRN=claim.IRN, IncidentType=incident_type, F6MStatus="Pending",
                                       F6MApprovalDate=claim.IncidentDate + timedelta(days=30)))
            db.session.add(ClaimsAwardedCommissionersReview(
                IRN=claim.IRN, ClaimType="Consent", IncidentType=incident_type,
                CACRReviewStatus="CommissionerReviewPending" if stage == "award" else "ChiefCommissionerAccepted",
                CACRSubmissionDate=claim.IncidentDate + timedelta(days=40),
                CACRDecisionDate=None if stage == "award" else claim.IncidentDate + timedelta(days=45),
            ))
        if stage == "paid":
            db.session.add(ClaimsAwardedRegistrarReview(
                IRN=claim.IRN, ClaimType="Consent", IncidentType=incident_type,
                CARRReviewStatus="RegistrarAccepted",
                CARRSubmissionDate=claim.IncidentDate + timedelta(days=45),
                CARRDecisionDate=claim.IncidentDate + timedelta(days=50),
            ))
            db.session.add(Form18Master(IRN=claim.IRN, IncidentType=incident_type, F18MStatus="EmployerAccepted",
                                        F18MEmployerDecisionReason="Agreed with assessment"))
            db.session.add(OWCClaimChequeDetails(
                IRN=claim.IRN, OCCDBankName="Bank South Pacific", OCCDChequeNumber=str(random.randint(100000, 999999)),
                OCCDIssueDate=claim.IncidentDate + timedelta(days=60), OCCDChequeAmount=random.randint(1000, 20000),
            ))
        claims.append(claim)
    db.session.commit()
    return claims


# ============================================================
#  MAIN
# ============================================================

def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--wipe", action="store_true")
    parser.add_argument("--seed", action="store_true")
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        if args.wipe:
            wipe_domain_data()
        if args.seed:
            provinces = seed_provinces()
            staff = seed_staff()
            insurers = seed_insurers()
            employers = seed_employers(insurers)
            workers = seed_workers(employers, n=random.randint(10, 14))
            catalog = seed_attachment_catalog()
            claims = seed_claims(workers, staff)
            print("Demo data seeded.")
            print(f"Provinces: {len(provinces)}")
            print(f"Staff: {len(staff)}")
            print(f"Insurers: {len(insurers)}")
            print(f"Employers: {len(employers)}")
            print(f"Workers: {len(workers)}")
            print(f"Attachment catalog: {len(catalog)}")
            print(f"Claims: {len(claims)}")


if __name__ == "__main__":
    main()

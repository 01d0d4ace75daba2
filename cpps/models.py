"""
SQLAlchemy models for the CPPS claims backend.

The schema is owned by the hosted claims backend, so table and column names
here are the wire contract and must match it exactly (including the mixed
case column names). This file defines:
- Staff and reference data: OWCStaff, Employer, InsuranceCompany, Dictionary
- Worker registration: WorkerPersonalDetails, CurrentEmploymentDetails,
  DependantPersonalDetails, WorkHistory
- Claims: Form1112Master plus one review table per workflow stage
- Compensation and payments
- Attachment catalog and per-claim uploads

Local development and the test suite call db.create_all() against these
definitions; production never does.
"""

from .extensions import db


# ============================================================
#  STAFF / REFERENCE DATA
# ============================================================

class OWCStaff(db.Model):
    __tablename__ = "owcstaffmaster"

    OSMStaffID = db.Column(db.Integer, primary_key=True)
    cppsid = db.Column(db.String(64), index=True)
    OSMFirstName = db.Column(db.String(120))
    OSMLastName = db.Column(db.String(120))
    OSMDesignation = db.Column(db.String(120))
    InchargeRegion = db.Column(db.String(120))

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.OSMFirstName, self.OSMLastName) if p).strip()

    def __repr__(self):
        return f"<OWCStaff {self.OSMStaffID} {self.full_name}>"


class Employer(db.Model):
    __tablename__ = "employermaster"

    EMID = db.Column(db.Integer, primary_key=True)
    CPPSID = db.Column(db.String(64), index=True)
    OrganizationName = db.Column(db.String(255))
    Address1 = db.Column(db.String(255))
    Address2 = db.Column(db.String(255))
    City = db.Column(db.String(120))
    Province = db.Column(db.String(120))
    POBox = db.Column(db.String(50))
    MobilePhone = db.Column(db.String(50))
    LandLine = db.Column(db.String(50))
    OrganizationType = db.Column(db.String(120))
    InsuranceProviderIPACode = db.Column(db.String(64))
    InsuranceIPACode = db.Column(db.String(64))

    def __repr__(self):
        return f"<Employer {self.CPPSID} {self.OrganizationName}>"


class InsuranceCompany(db.Model):
    __tablename__ = "insurancecompanymaster"

    IPACODE = db.Column(db.String(64), primary_key=True)
    InsuranceCompanyOrganizationName = db.Column(db.String(255))
    InsuranceCompanyAddress1 = db.Column(db.String(255))
    InsuranceCompanyAddress2 = db.Column(db.String(255))
    InsuranceCompanyCity = db.Column(db.String(120))
    InsuranceCompanyProvince = db.Column(db.String(120))
    InsuranceCompanyPOBox = db.Column(db.String(50))
    InsuranceCompanyLandLine = db.Column(db.String(50))

    def __repr__(self):
        return f"<InsuranceCompany {self.IPACODE}>"


class Dictionary(db.Model):
    __tablename__ = "dictionary"

    DID = db.Column(db.Integer, primary_key=True)
    DType = db.Column(db.String(64), index=True)
    DKey = db.Column(db.String(120))
    DValue = db.Column(db.String(255))


# ============================================================
#  WORKER REGISTRATION
# ============================================================

class WorkerPersonalDetails(db.Model):
    __tablename__ = "workerpersonaldetails"

    WorkerID = db.Column(db.Integer, primary_key=True)

    WorkerFirstName = db.Column(db.String(120))
    WorkerLastName = db.Column(db.String(120))
    WorkerAliasName = db.Column(db.String(120))
    WorkerDOB = db.Column(db.Date)
    WorkerGender = db.Column(db.String(10))
    WorkerMarried = db.Column(db.String(5))
    WorkerHanded = db.Column(db.String(20))
    WorkerPlaceOfOriginVillage = db.Column(db.String(120))
    WorkerPlaceOfOriginDistrict = db.Column(db.String(120))
    WorkerPlaceOfOriginProvince = db.Column(db.String(120))
    WorkerPassportPhoto = db.Column(db.String(255))
    WorkerAddress1 = db.Column(db.String(255))
    WorkerAddress2 = db.Column(db.String(255))
    WorkerCity = db.Column(db.String(120))
    WorkerProvince = db.Column(db.String(120))
    WorkerPOBox = db.Column(db.String(50))
    WorkerEmail = db.Column(db.String(255))
    WorkerMobile = db.Column(db.String(50))
    WorkerLandline = db.Column(db.String(50))

    SpouseFirstName = db.Column(db.String(120))
    SpouseLastName = db.Column(db.String(120))
    SpouseDOB = db.Column(db.Date)
    SpousePlaceOfOriginVillage = db.Column(db.String(120))
    SpousePlaceOfOriginDistrict = db.Column(db.String(120))
    SpousePlaceOfOriginProvince = db.Column(db.String(120))
    SpouseAddress1 = db.Column(db.String(255))
    SpouseAddress2 = db.Column(db.String(255))
    SpouseCity = db.Column(db.String(120))
    SpouseProvince = db.Column(db.String(120))
    SpousePOBox = db.Column(db.String(50))
    SpouseEmail = db.Column(db.String(255))
    SpouseMobile = db.Column(db.String(50))
    SpouseLandline = db.Column(db.String(50))

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.WorkerFirstName, self.WorkerLastName) if p).strip()

    def __repr__(self):
        return f"<Worker {self.WorkerID} {self.full_name}>"


class CurrentEmploymentDetails(db.Model):
    __tablename__ = "currentemploymentdetails"

    CEDID = db.Column(db.Integer, primary_key=True)
    WorkerID = db.Column(db.Integer, index=True)
    EmploymentID = db.Column(db.String(64))
    Occupation = db.Column(db.String(120))
    PlaceOfEmployment = db.Column(db.String(255))
    NatureOfEmployment = db.Column(db.String(120))
    AverageWeeklyWage = db.Column(db.Numeric(12, 2), default=0)
    WeeklyPaymentRate = db.Column(db.Numeric(12, 2), default=0)
    WorkedUnderSubContractor = db.Column(db.String(5), default="No")
    SubContractorOrganizationName = db.Column(db.String(255))
    SubContractorLocation = db.Column(db.String(255))
    SubContractorNatureOfBusiness = db.Column(db.String(255))
    EmployerCPPSID = db.Column(db.String(64))
    OrganizationType = db.Column(db.String(120))
    InsuranceIPACode = db.Column(db.String(64))


class DependantPersonalDetails(db.Model):
    __tablename__ = "dependantpersonaldetails"

    DependantID = db.Column(db.Integer, primary_key=True)
    WorkerID = db.Column(db.Integer, index=True)
    DependantFirstName = db.Column(db.String(120))
    DependantLastName = db.Column(db.String(120))
    DependantDOB = db.Column(db.Date)
    DependantGender = db.Column(db.String(10))
    DependantType = db.Column(db.String(40))
    DependantAddress1 = db.Column(db.String(255))
    DependantAddress2 = db.Column(db.String(255))
    DependantCity = db.Column(db.String(120))
    DependantProvince = db.Column(db.String(120))
    DependantPOBox = db.Column(db.String(50))
    DependantEmail = db.Column(db.String(255))
    DependantMobile = db.Column(db.String(50))
    DependantLandline = db.Column(db.String(50))
    DependanceDegree = db.Column(db.Float)


class WorkHistory(db.Model):
    __tablename__ = "workhistory"

    WorkHistoryID = db.Column(db.Integer, primary_key=True)
    WorkerID = db.Column(db.Integer, index=True)
    OrganizationName = db.Column(db.String(255))
    OrganizationAddress1 = db.Column(db.String(255))
    OrganizationAddress2 = db.Column(db.String(255))
    OrganizationCity = db.Column(db.String(120))
    OrganizationProvince = db.Column(db.String(120))
    OrganizationPOBox = db.Column(db.String(50))
    OrganizationLandline = db.Column(db.String(50))
    OrganizationCPPSID = db.Column(db.String(64))
    WorkerJoiningDate = db.Column(db.Date)
    WorkerLeavingDate = db.Column(db.Date)


# ============================================================
#  CLAIMS
# ============================================================

class Form1112Master(db.Model):
    """Claim header created by Form 11 (injury) / Form 12 (death) intake."""

    __tablename__ = "form1112master"

    IRN = db.Column(db.Integer, primary_key=True)
    DisplayIRN = db.Column(db.String(64), index=True)
    WorkerID = db.Column(db.Integer, index=True)
    IncidentType = db.Column(db.String(20))
    IncidentDate = db.Column(db.Date)
    IncidentProvince = db.Column(db.String(120))
    IncidentRegion = db.Column(db.String(120))

    def __repr__(self):
        return f"<Claim {self.IRN} {self.DisplayIRN}>"


# ------------------------------------------------------------
#  Review stages
# ------------------------------------------------------------

class ClaimsAwardedCommissionersReview(db.Model):
    __tablename__ = "claimsawardedcommissionersreview"

    CACRID = db.Column(db.Integer, primary_key=True)
    IRN = db.Column(db.Integer, index=True)
    ClaimType = db.Column(db.String(40))
    IncidentType = db.Column(db.String(20))
    CACRReviewStatus = db.Column(db.String(64))
    CACRDecisionReason = db.Column(db.Text)
    CACRDecisionDate = db.Column(db.Date)
    CACRSubmissionDate = db.Column(db.Date)
    LockedByID = db.Column(db.Integer)


class ClaimsAwardedRegistrarReview(db.Model):
    __tablename__ = "claimsawardedregistrarreview"

    CARRID = db.Column(db.Integer, primary_key=True)
    IRN = db.Column(db.Integer, index=True)
    ClaimType = db.Column(db.String(40))
    IncidentType = db.Column(db.String(20))
    CARRReviewStatus = db.Column(db.String(64))
    CARRDecisionReason = db.Column(db.Text)
    CARRDecisionDate = db.Column(db.Date)
    CARRSubmissionDate = db.Column(db.Date)
    LockedByID = db.Column(db.Integer)


class CompensationCalculationCPMReview(db.Model):
    __tablename__ = "compensationcalculationcpmreview"

    CPMRID = db.Column(db.Integer, primary_key=True)
    IRN = db.Column(db.Integer, index=True)
    IncidentType = db.Column(db.String(20))
    IncidentRegion = db.Column(db.String(120))
    CPMRStatus = db.Column(db.String(64))
    CPMRDecisionReason = db.Column(db.Text)
    CPMRDecisionDate = db.Column(db.Date)
    CPMRSubmissionDate = db.Column(db.Date)
    LockedByID = db.Column(db.Integer)


class CompensationCalculationCommissionersReview(db.Model):
    __tablename__ = "compensationcalculationcommissionersreview"

    CCCRID = db.Column(db.Integer, primary_key=True)
    IRN = db.Column(db.Integer, index=True)
    IncidentType = db.Column(db.String(20))
    CCCRReviewStatus = db.Column(db.String(64))
    CCCRDecisionReason = db.Column(db.Text)
    CCCRDecisionDate = db.Column(db.Date)
    LockedByID = db.Column(db.Integer)


class ApprovedClaimsCPOReview(db.Model):
    __tablename__ = "approvedclaimscporeview"

    CPORID = db.Column(db.Integer, primary_key=True)
    IRN = db.Column(db.Integer, index=True)
    IncidentType = db.Column(db.String(20))
    CPORStatus = db.Column(db.String(64))
    CPORApprovedDate = db.Column(db.Date)
    LockedByCPOID = db.Column(db.Integer)


class RegistrarReview(db.Model):
    __tablename__ = "registrarreview"

    RRID = db.Column(db.Integer, primary_key=True)
    IRN = db.Column(db.Integer, index=True)
    IncidentType = db.Column(db.String(20))
    RRStatus = db.Column(db.String(64))
    RRDecisionReason = db.Column(db.Text)
    RRDecisionDate = db.Column(db.Date)


class PrescreeningReview(db.Model):
    # Read through a backend view; locally a plain table.
    __tablename__ = "prescreening_view"

    PRID = db.Column(db.Integer, primary_key=True)
    IRN = db.Column(db.Integer, index=True)
    PRFormType = db.Column(db.String(40))
    PRStatus = db.Column(db.String(64))
    PRDecisionReason = db.Column(db.Text)
    PRSubmissionDate = db.Column(db.Date)


class TimeBarredClaimsRegistrarReview(db.Model):
    __tablename__ = "timebarredclaimsregistrarreview"

    TBCRRID = db.Column(db.Integer, primary_key=True)
    IRN = db.Column(db.Integer, index=True)
    TBCRRFormType = db.Column(db.String(40))
    TBCRRReviewStatus = db.Column(db.String(64))
    TBCRRDecisionReason = db.Column(db.Text)
    TBCRRDecisionDate = db.Column(db.Date)


class Form6Master(db.Model):
    __tablename__ = "form6master"

    F6MID = db.Column(db.Integer, primary_key=True)
    IRN = db.Column(db.Integer, index=True)
    IncidentType = db.Column(db.String(20))
    F6MStatus = db.Column(db.String(64))
    F6MApprovalDate = db.Column(db.Date)
    EmployerCPPSID = db.Column(db.String(64))


class Form18Master(db.Model):
    __tablename__ = "form18master"

    F18MID = db.Column(db.Integer, primary_key=True)
    IRN = db.Column(db.Integer, index=True)
    IncidentType = db.Column(db.String(20))
    F18MStatus = db.Column(db.String(64))
    F18MEmployerDecisionReason = db.Column(db.Text)
    F18MWorkerDecisionReason = db.Column(db.Text)
    F18MWorkerAcceptedDate = db.Column(db.Date)
    F18MWorkerNotifiedDate = db.Column(db.DateTime)


# ============================================================
#  COMPENSATION / PAYMENTS
# ============================================================

class ClaimCompensationWorkerDetails(db.Model):
    __tablename__ = "claimcompensationworkerdetails"

    CCWDID = db.Column(db.Integer, primary_key=True)
    IRN = db.Column(db.Integer, index=True)
    CCWDWorkerFirstName = db.Column(db.String(120))
    CCWDWorkerLastName = db.Column(db.String(120))
    CCWDAnnualWage = db.Column(db.Numeric(14, 2))
    CCWDCompensationAmount = db.Column(db.Numeric(14, 2))
    CCWDMedicalExpenses = db.Column(db.Numeric(14, 2))
    CCWDMiscExpenses = db.Column(db.Numeric(14, 2))
    CCWDDeductions = db.Column(db.Numeric(14, 2))
    CCWDDeductionsNotes = db.Column(db.Text)


class BankAccountDeposit(db.Model):
    __tablename__ = "bankaccountdepositmaster"

    BADMID = db.Column(db.Integer, primary_key=True)
    IRN = db.Column(db.Integer, index=True)
    BankName = db.Column(db.String(255))
    CheckNo = db.Column(db.String(64))
    IssuedDate = db.Column(db.Date)
    ChequeCompensationAmount = db.Column(db.Numeric(14, 2))


class OWCClaimChequeDetails(db.Model):
    __tablename__ = "owcclaimchequedetails"

    OCCDID = db.Column(db.Integer, primary_key=True)
    IRN = db.Column(db.Integer, index=True)
    OCCDBankName = db.Column(db.String(255))
    OCCDChequeNumber = db.Column(db.String(64))
    OCCDIssueDate = db.Column(db.Date)
    OCCDChequeAmount = db.Column(db.Numeric(14, 2))


# ============================================================
#  ATTACHMENTS
# ============================================================

class AttachmentMaster(db.Model):
    """Required-document catalog.

    NOTE: the backend names are swapped relative to their meaning:
    FormType holds the attachment name and AttachmentType holds the form code
    (Form11 / Form12).
    """

    __tablename__ = "attachmentmaster"

    AttachmentID = db.Column(db.Integer, primary_key=True)
    FormType = db.Column(db.String(255))
    AttachmentType = db.Column(db.String(40), index=True)
    Mandatory = db.Column(db.Boolean, default=False)
    FolderName = db.Column(db.String(255))


class FormAttachment(db.Model):
    __tablename__ = "formattachments"

    FormAttachmentID = db.Column(db.Integer, primary_key=True)
    IRN = db.Column(db.Integer, index=True)
    AttachmentType = db.Column(db.String(255))
    FileName = db.Column(db.String(500))
    PublicUrl = db.Column(db.String(1000))


# Review tables that carry a single-owner lock, and the lock column on each.
LOCKABLE_STAGES = {
    ClaimsAwardedCommissionersReview: "LockedByID",
    ClaimsAwardedRegistrarReview: "LockedByID",
    CompensationCalculationCPMReview: "LockedByID",
    CompensationCalculationCommissionersReview: "LockedByID",
    ApprovedClaimsCPOReview: "LockedByCPOID",
}
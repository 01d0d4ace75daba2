"""Worker registration and edit.

A worker is one workerpersonaldetails row plus one currentemploymentdetails
row and two child sets (dependants, work history). The form works on a flat
dict keyed by the backend column names; child sets are lists of dicts.

Saving an edit replaces both child sets wholesale (delete all, re-insert)
and runs as a single transaction.
"""

from __future__ import annotations

import logging
import os
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from sqlalchemy import delete, or_
from sqlalchemy.exc import SQLAlchemyError

from cpps.auth import StaffSession
from cpps.errors import CppsError, NotFoundError, ValidationError
from cpps.extensions import db
from cpps.models import (
    CurrentEmploymentDetails,
    DependantPersonalDetails,
    Dictionary,
    Employer,
    InsuranceCompany,
    WorkHistory,
    WorkerPersonalDetails,
)
from cpps.services import storage
from cpps.utils.validation import (
    is_valid_email,
    is_valid_phone,
    missing_fields,
    parse_form_date,
    required_fields_message,
    safe_filename,
    to_number,
    validate_fields,
)

logger = logging.getLogger(__name__)

UPDATE_FAILED = "Failed to update worker. Please try again."
REGISTER_FAILED = "Failed to register worker. Please try again."


# ============================================================
#  FIELD DEFINITIONS
# ============================================================

PERSONAL_FIELDS = (
    "WorkerFirstName", "WorkerLastName", "WorkerAliasName", "WorkerDOB", "WorkerGender",
    "WorkerMarried", "WorkerHanded", "WorkerPlaceOfOriginVillage", "WorkerPlaceOfOriginDistrict",
    "WorkerPlaceOfOriginProvince", "WorkerPassportPhoto", "WorkerAddress1", "WorkerAddress2",
    "WorkerCity", "WorkerProvince", "WorkerPOBox", "WorkerEmail", "WorkerMobile", "WorkerLandline",
)

SPOUSE_FIELDS = (
    "SpouseFirstName", "SpouseLastName", "SpouseDOB", "SpousePlaceOfOriginVillage",
    "SpousePlaceOfOriginDistrict", "SpousePlaceOfOriginProvince", "SpouseAddress1", "SpouseAddress2",
    "SpouseCity", "SpouseProvince", "SpousePOBox", "SpouseEmail", "SpouseMobile", "SpouseLandline",
)

EMPLOYMENT_FIELDS = (
    "EmployerCPPSID", "EmploymentID", "Occupation", "PlaceOfEmployment", "NatureOfEmployment",
    "AverageWeeklyWage", "WeeklyPaymentRate", "WorkedUnderSubContractor",
    "SubContractorOrganizationName", "SubContractorLocation", "SubContractorNatureOfBusiness",
    "OrganizationType", "InsuranceIPACode",
)

INSURANCE_FIELDS = (
    "InsuranceProviderIPACode", "InsuranceCompanyOrganizationName", "InsuranceCompanyAddress1",
    "InsuranceCompanyAddress2", "InsuranceCompanyCity", "InsuranceCompanyProvince",
    "InsuranceCompanyPOBox", "InsuranceCompanyLandLine",
)

TOGGLE_FIELDS = ("WorkerHaveDependants", "WorkerHasHistory")
BOOL_FIELDS = ("WorkerHaveDependants", "WorkerHasHistory", "WorkedUnderSubContractor")
NUMBER_FIELDS = ("AverageWeeklyWage", "WeeklyPaymentRate")

# Order matters: it is the order rows appear in the change summary.
FORM_FIELDS = PERSONAL_FIELDS + SPOUSE_FIELDS + TOGGLE_FIELDS + EMPLOYMENT_FIELDS + INSURANCE_FIELDS

DEPENDANT_FIELDS = (
    "DependantFirstName", "DependantLastName", "DependantDOB", "DependantGender", "DependantType",
    "DependantAddress1", "DependantAddress2", "DependantCity", "DependantProvince", "DependantPOBox",
    "DependantEmail", "DependantMobile", "DependantLandline", "DependanceDegree",
)

WORK_HISTORY_FIELDS = (
    "OrganizationName", "OrganizationAddress1", "OrganizationAddress2", "OrganizationCity",
    "OrganizationProvince", "OrganizationPOBox", "OrganizationLandline", "OrganizationCPPSID",
    "WorkerJoiningDate", "WorkerLeavingDate",
)

EDIT_REQUIRED = ("WorkerFirstName", "WorkerLastName", "WorkerDOB", "WorkerGender", "EmployerCPPSID", "Occupation")
REGISTER_REQUIRED = EDIT_REQUIRED + ("PlaceOfEmployment",)

DEFAULTS: Dict[str, Any] = {
    "WorkerGender": "M",
    "WorkerMarried": "0",
    "WorkerHanded": "Right",
    "AverageWeeklyWage": 0,
    "WeeklyPaymentRate": 0,
    "WorkerHaveDependants": False,
    "WorkerHasHistory": False,
    "WorkedUnderSubContractor": False,
}

TAB_TITLES = {
    1: "Worker Personal Details",
    2: "Spouse Details",
    3: "Dependants",
    4: "Employment Details",
    5: "Work History",
    6: "Insurance Details",
}

FIELD_TABS: Dict[str, int] = {f: 1 for f in PERSONAL_FIELDS}
FIELD_TABS.update({f: 2 for f in SPOUSE_FIELDS})
FIELD_TABS.update({f: 4 for f in EMPLOYMENT_FIELDS})
FIELD_TABS.update({f: 6 for f in INSURANCE_FIELDS})
FIELD_TABS["WorkerHaveDependants"] = 3
FIELD_TABS["WorkerHasHistory"] = 5
# Insurance code is edited on the employment row but shown with the insurer.
FIELD_TABS["InsuranceIPACode"] = 6

# Flat-field sections of the tabbed form; tabs 3 and 5 are the child tables.
FORM_SECTIONS = (
    (1, PERSONAL_FIELDS),
    (2, SPOUSE_FIELDS),
    (4, EMPLOYMENT_FIELDS),
    (6, INSURANCE_FIELDS),
)

# Filled from the employer's own record for group 15 users and not editable.
EMPLOYER_LOCKED_FIELDS = (
    "EmployerCPPSID", "PlaceOfEmployment", "OrganizationType", "InsuranceIPACode", "InsuranceProviderIPACode",
)

FIELD_LABELS = {
    "WorkerFirstName": "First Name",
    "WorkerLastName": "Last Name",
    "WorkerAliasName": "Alias Name",
    "WorkerDOB": "Date of Birth",
    "WorkerGender": "Gender",
    "WorkerMarried": "Marital Status",
    "WorkerHanded": "Dominant Hand",
    "WorkerPlaceOfOriginVillage": "Place of Origin Village",
    "WorkerPlaceOfOriginDistrict": "Place of Origin District",
    "WorkerPlaceOfOriginProvince": "Place of Origin Province",
    "WorkerPassportPhoto": "Passport Photo",
    "WorkerAddress1": "Address Line 1",
    "WorkerAddress2": "Address Line 2",
    "WorkerCity": "City",
    "WorkerProvince": "Province",
    "WorkerPOBox": "P.O. Box",
    "WorkerEmail": "Email",
    "WorkerMobile": "Mobile",
    "WorkerLandline": "Landline",
    "SpouseFirstName": "Spouse First Name",
    "SpouseLastName": "Spouse Last Name",
    "SpouseDOB": "Spouse Date of Birth",
    "SpousePlaceOfOriginVillage": "Spouse Place of Origin Village",
    "SpousePlaceOfOriginDistrict": "Spouse Place of Origin District",
    "SpousePlaceOfOriginProvince": "Spouse Place of Origin Province",
    "SpouseAddress1": "Spouse Address Line 1",
    "SpouseAddress2": "Spouse Address Line 2",
    "SpouseCity": "Spouse City",
    "SpouseProvince": "Spouse Province",
    "SpousePOBox": "Spouse P.O. Box",
    "SpouseEmail": "Spouse Email",
    "SpouseMobile": "Spouse Mobile",
    "SpouseLandline": "Spouse Landline",
    "WorkerHaveDependants": "Worker has dependants",
    "WorkerHasHistory": "Worker has work history",
    "EmployerCPPSID": "Employer CPPSID",
    "EmploymentID": "Employment ID",
    "Occupation": "Occupation",
    "PlaceOfEmployment": "Place of Employment",
    "NatureOfEmployment": "Nature of Employment",
    "AverageWeeklyWage": "Average Weekly Wage",
    "WeeklyPaymentRate": "Weekly Payment Rate",
    "WorkedUnderSubContractor": "Worked Under Sub-Contractor",
    "SubContractorOrganizationName": "Sub-Contractor Organization Name",
    "SubContractorLocation": "Sub-Contractor Location",
    "SubContractorNatureOfBusiness": "Sub-Contractor Nature of Business",
    "OrganizationType": "Organization Type",
    "InsuranceProviderIPACode": "Insurance Provider (IPACode)",
    "InsuranceIPACode": "Insurance IPACode",
    "InsuranceCompanyOrganizationName": "Insurance Company Name",
    "InsuranceCompanyAddress1": "Insurance Address 1",
    "InsuranceCompanyAddress2": "Insurance Address 2",
    "InsuranceCompanyCity": "Insurance City",
    "InsuranceCompanyProvince": "Insurance Province",
    "InsuranceCompanyPOBox": "Insurance P.O. Box",
    "InsuranceCompanyLandLine": "Insurance Landline",
}


# ============================================================
#  NORMALISATION / DIFF
# ============================================================

def is_empty(v: Any) -> bool:
    return v is None or v == "" or (isinstance(v, float) and v != v)


def norm_bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    return v == "1" or v == "Yes" or v == 1


def norm_date(v: Any) -> str:
    if is_empty(v):
        return ""
    if hasattr(v, "isoformat"):
        return v.isoformat()[:10]
    return str(v)


def _is_date_field(key: str) -> bool:
    return key.endswith("DOB") or "Date" in key


def display_value(key: str, v: Any) -> Any:
    if key == "WorkerMarried":
        return "Married" if str(v) == "1" else "Single"
    if key in BOOL_FIELDS:
        return "Yes" if norm_bool(v) else "No"
    if _is_date_field(key):
        return norm_date(v)
    if key in NUMBER_FIELDS:
        return str(to_number(v))
    if isinstance(v, bool):
        return "Yes" if v else "No"
    if isinstance(v, (int, float)):
        return str(v)
    return "" if v is None else v


def slim_dependant(d: Mapping[str, Any]) -> Dict[str, Any]:
    out = {}
    for f in DEPENDANT_FIELDS:
        v = d.get(f)
        if f == "DependantDOB":
            out[f] = norm_date(v)
        elif f == "DependanceDegree":
            out[f] = "" if is_empty(v) else to_number(v, default="")
        else:
            out[f] = "" if v is None else v
    return out


def slim_work_history(w: Mapping[str, Any]) -> Dict[str, Any]:
    out = {}
    for f in WORK_HISTORY_FIELDS:
        v = w.get(f)
        out[f] = norm_date(v) if _is_date_field(f) else ("" if v is None else v)
    return out


def _rows_change(label: str, tab: int, old_rows, new_rows, slim) -> Optional[Dict[str, Any]]:
    if len(old_rows) != len(new_rows):
        return {"field": f"{label} (rows)", "from": str(len(old_rows)), "to": str(len(new_rows)), "tab": tab}
    if [slim(r) for r in old_rows] != [slim(r) for r in new_rows]:
        return {"field": f"{label} (details)", "from": f"rows: {len(old_rows)}", "to": f"rows: {len(new_rows)}", "tab": tab}
    return None


def compute_changes(
    original: Mapping[str, Any],
    form: Mapping[str, Any],
    original_dependants: List[Mapping[str, Any]] = (),
    dependants: List[Mapping[str, Any]] = (),
    original_history: List[Mapping[str, Any]] = (),
    history: List[Mapping[str, Any]] = (),
) -> List[Dict[str, Any]]:
    """Field-by-field change rows: {field, from, to, tab}."""
    rows: List[Dict[str, Any]] = []

    for key in FORM_FIELDS:
        old = display_value(key, original.get(key))
        new = display_value(key, form.get(key))
        if (old if old is not None else "") == (new if new is not None else ""):
            continue
        rows.append({
            "field": FIELD_LABELS.get(key, key),
            "from": None if is_empty(old) else str(old),
            "to": None if is_empty(new) else str(new),
            "tab": FIELD_TABS.get(key, 1),
        })

    for change in (
        _rows_change("Dependants", 3, list(original_dependants), list(dependants), slim_dependant),
        _rows_change("Work History", 5, list(original_history), list(history), slim_work_history),
    ):
        if change:
            rows.append(change)

    return rows


def tab_change_counts(changes: Iterable[Mapping[str, Any]]) -> List[int]:
    counts = [0] * len(TAB_TITLES)
    for c in changes:
        counts[c["tab"] - 1] += 1
    return counts


# ============================================================
#  LOADING
# ============================================================

def _str(v: Any) -> str:
    return "" if v is None else str(v)


def _date_str(v: Any) -> str:
    return v.isoformat() if v is not None and hasattr(v, "isoformat") else _str(v)


def empty_form() -> Dict[str, Any]:
    form = {f: "" for f in FORM_FIELDS}
    form.update(DEFAULTS)
    return form


SELF_INSURED = "SELF"


def insurer_fields(ipa_code: Optional[str]) -> Dict[str, str]:
    """Insurer block for `ipa_code`; {} when the code is blank or unknown."""
    code = (ipa_code or "").strip()
    if not code:
        return {}
    if code.upper() == SELF_INSURED:
        fields = {f: "" for f in INSURANCE_FIELDS}
        fields.update({"InsuranceProviderIPACode": SELF_INSURED, "InsuranceIPACode": SELF_INSURED})
        return fields
    ins = db.session.get(InsuranceCompany, code)
    if ins is None:
        return {}
    return {
        "InsuranceProviderIPACode": _str(ins.IPACODE),
        "InsuranceIPACode": _str(ins.IPACODE),
        "InsuranceCompanyOrganizationName": _str(ins.InsuranceCompanyOrganizationName),
        "InsuranceCompanyAddress1": _str(ins.InsuranceCompanyAddress1),
        "InsuranceCompanyAddress2": _str(ins.InsuranceCompanyAddress2),
        "InsuranceCompanyCity": _str(ins.InsuranceCompanyCity),
        "InsuranceCompanyProvince": _str(ins.InsuranceCompanyProvince),
        "InsuranceCompanyPOBox": _str(ins.InsuranceCompanyPOBox),
        "InsuranceCompanyLandLine": _str(ins.InsuranceCompanyLandLine),
    }


def load_worker(worker_id: int) -> Tuple[Dict[str, Any], List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Return (form, dependants, work_history) for an existing worker."""
    wp = db.session.get(WorkerPersonalDetails, worker_id)
    if wp is None:
        raise NotFoundError(f"Worker {worker_id} was not found.")

    form = empty_form()
    for f in PERSONAL_FIELDS + SPOUSE_FIELDS:
        v = getattr(wp, f)
        form[f] = _date_str(v) if _is_date_field(f) else _str(v)
    form["WorkerGender"] = form["WorkerGender"] or "M"
    form["WorkerMarried"] = form["WorkerMarried"] or "0"
    form["WorkerHanded"] = form["WorkerHanded"] or "Right"

    ce = db.session.execute(
        db.select(CurrentEmploymentDetails)
        .where(CurrentEmploymentDetails.WorkerID == worker_id)
        .order_by(CurrentEmploymentDetails.CEDID.desc())
    ).scalars().first()
    if ce is not None:
        for f in EMPLOYMENT_FIELDS:
            form[f] = _str(getattr(ce, f))
        form["AverageWeeklyWage"] = to_number(ce.AverageWeeklyWage)
        form["WeeklyPaymentRate"] = to_number(ce.WeeklyPaymentRate)
        form["WorkedUnderSubContractor"] = (ce.WorkedUnderSubContractor or "No") == "Yes"
        form.update(insurer_fields(ce.InsuranceIPACode))

    dep_rows = db.session.execute(
        db.select(DependantPersonalDetails)
        .where(DependantPersonalDetails.WorkerID == worker_id)
        .order_by(DependantPersonalDetails.DependantID)
    ).scalars().all()
    dependants = []
    for d in dep_rows:
        row = {"DependantID": d.DependantID}
        for f in DEPENDANT_FIELDS:
            v = getattr(d, f)
            if f == "DependantDOB":
                row[f] = _date_str(v)
            elif f == "DependanceDegree":
                row[f] = "" if v is None else to_number(v)
            else:
                row[f] = _str(v)
        dependants.append(row)

    wh_rows = db.session.execute(
        db.select(WorkHistory).where(WorkHistory.WorkerID == worker_id).order_by(WorkHistory.WorkHistoryID)
    ).scalars().all()
    history = []
    for w in wh_rows:
        row = {"WorkHistoryID": w.WorkHistoryID}
        for f in WORK_HISTORY_FIELDS:
            v = getattr(w, f)
            row[f] = _date_str(v) if _is_date_field(f) else _str(v)
        history.append(row)

    form["WorkerHaveDependants"] = len(dependants) > 0
    form["WorkerHasHistory"] = len(history) > 0
    return form, dependants, history


def province_options() -> List[Dictionary]:
    return db.session.execute(
        db.select(Dictionary).where(Dictionary.DType == "Province").order_by(Dictionary.DValue)
    ).scalars().all()


def employer_by_cppsid(cppsid: Optional[str]) -> Optional[Employer]:
    code = (cppsid or "").strip()
    if not code:
        return None
    return db.session.execute(
        db.select(Employer).where(Employer.CPPSID == code).order_by(Employer.EMID)
    ).scalars().first()


def _employer_insurer_code(employer: Employer) -> str:
    return _str(employer.InsuranceIPACode or employer.InsuranceProviderIPACode)


def employer_fields(employer: Employer) -> Dict[str, Any]:
    """What picking `employer` fills in: its identity and its default insurer."""
    code = _employer_insurer_code(employer)
    fields = {
        "EmployerCPPSID": _str(employer.CPPSID),
        "PlaceOfEmployment": _str(employer.OrganizationName),
        "OrganizationType": _str(employer.OrganizationType),
        "InsuranceProviderIPACode": code,
        "InsuranceIPACode": code,
    }
    fields.update(insurer_fields(code))
    return fields


def employer_prefill(staff: StaffSession) -> Dict[str, Any]:
    """Employer-group users register workers for their own organisation only."""
    if not staff.is_employer or not staff.organization_id:
        return {}
    org = staff.organization_id
    clauses = [Employer.CPPSID == org]
    if org.isdigit():
        clauses.append(Employer.EMID == int(org))
    employer = db.session.execute(
        db.select(Employer).where(or_(*clauses))
    ).scalars().first()
    if employer is None:
        return {}
    return employer_fields(employer)


def select_employer(form: Dict[str, Any], cppsid: str) -> None:
    """Apply an employer picked from the employer list."""
    employer = employer_by_cppsid(cppsid)
    if employer is None:
        raise ValidationError(f"Employer {cppsid} was not found.", missing_fields=["EmployerCPPSID"])
    form.update(employer_fields(employer))


def select_insurer(form: Dict[str, Any], ipa_code: str) -> None:
    """Apply an insurance provider picked from the provider list."""
    fields = insurer_fields(ipa_code)
    if not fields:
        raise ValidationError(
            f"Insurance provider {ipa_code} was not found.", missing_fields=["InsuranceProviderIPACode"]
        )
    form.update(fields)


def resolve_selections(form: Dict[str, Any]) -> None:
    """Check the posted employer and insurer exist and fill in their details.

    The insurer is one choice: InsuranceProviderIPACode when posted, else the
    code already on the employment row, else the employer's own insurer.
    Both code columns and the address block are rewritten from that choice.
    """
    employer = None
    cppsid = (form.get("EmployerCPPSID") or "").strip()
    if cppsid:
        employer = employer_by_cppsid(cppsid)
        if employer is None:
            raise ValidationError(f"Employer {cppsid} was not found.", missing_fields=["EmployerCPPSID"])
        form["EmployerCPPSID"] = cppsid
        form["PlaceOfEmployment"] = form.get("PlaceOfEmployment") or _str(employer.OrganizationName)
        form["OrganizationType"] = form.get("OrganizationType") or _str(employer.OrganizationType)

    code = (form.get("InsuranceProviderIPACode") or form.get("InsuranceIPACode") or "").strip()
    if not code and employer is not None:
        code = _employer_insurer_code(employer)
    if code:
        select_insurer(form, code)
    else:
        form.update({f: "" for f in INSURANCE_FIELDS + ("InsuranceIPACode",)})


# ============================================================
#  FORM PARSING
# ============================================================

_ROW_KEY_RE = re.compile(r"^(dependants|history)-(\d+)-(\w+)$")


def form_from_post(post: Mapping[str, Any]) -> Tuple[Dict[str, Any], List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Turn a posted worker form (werkzeug MultiDict or dict) into (form, dependants, history).

    Child rows are posted as ``dependants-<n>-<Field>`` / ``history-<n>-<Field>``.
    Checkboxes are absent when unticked.
    """
    form = empty_form()
    for f in FORM_FIELDS:
        if f in BOOL_FIELDS:
            form[f] = norm_bool(post.get(f)) or post.get(f) in ("on", "true", "True")
        elif f in post:
            form[f] = (post.get(f) or "").strip()

    rows: Dict[str, Dict[int, Dict[str, Any]]] = {"dependants": {}, "history": {}}
    for key in post.keys():
        m = _ROW_KEY_RE.match(key)
        if not m:
            continue
        group, idx, field = m.group(1), int(m.group(2)), m.group(3)
        rows[group].setdefault(idx, {})[field] = (post.get(key) or "").strip()

    def _ordered(group: str, fields) -> List[Dict[str, Any]]:
        out = []
        for idx in sorted(rows[group]):
            raw = rows[group][idx]
            row = {f: raw.get(f, "") for f in fields}
            if any(v for v in row.values()):
                out.append(row)
        return out

    return form, _ordered("dependants", DEPENDANT_FIELDS), _ordered("history", WORK_HISTORY_FIELDS)


def validate_worker_form(form: Mapping[str, Any], *, registering: bool = False) -> None:
    required = REGISTER_REQUIRED if registering else EDIT_REQUIRED
    missing = missing_fields(form, required)
    if missing:
        raise ValidationError(
            required_fields_message(FIELD_LABELS.get(f, f) for f in missing),
            missing_fields=missing,
        )
    errors = validate_fields({
        "Email": (form.get("WorkerEmail"), is_valid_email),
        "Spouse Email": (form.get("SpouseEmail"), is_valid_email),
        "Mobile": (form.get("WorkerMobile"), is_valid_phone),
    })
    if errors:
        raise ValidationError("; ".join(errors))


# ============================================================
#  WRITES
# ============================================================

def _personal_values(form: Mapping[str, Any]) -> Dict[str, Any]:
    values = {}
    for f in PERSONAL_FIELDS + SPOUSE_FIELDS:
        v = form.get(f)
        values[f] = parse_form_date(v) if _is_date_field(f) else v
    return values


def _employment_values(form: Mapping[str, Any]) -> Dict[str, Any]:
    values = {f: form.get(f) for f in EMPLOYMENT_FIELDS}
    values["AverageWeeklyWage"] = to_number(form.get("AverageWeeklyWage"))
    values["WeeklyPaymentRate"] = to_number(form.get("WeeklyPaymentRate"))
    values["WorkedUnderSubContractor"] = "Yes" if norm_bool(form.get("WorkedUnderSubContractor")) else "No"
    return values


def _insert_children(worker_id: int, form, dependants, history) -> None:
    if norm_bool(form.get("WorkerHaveDependants")):
        for d in dependants:
            values = {f: d.get(f) for f in DEPENDANT_FIELDS}
            values["DependantDOB"] = parse_form_date(d.get("DependantDOB"))
            values["DependanceDegree"] = None if is_empty(d.get("DependanceDegree")) else to_number(d.get("DependanceDegree"))
            db.session.add(DependantPersonalDetails(WorkerID=worker_id, **values))

    if norm_bool(form.get("WorkerHasHistory")):
        for w in history:
            values = {f: w.get(f) for f in WORK_HISTORY_FIELDS}
            values["WorkerJoiningDate"] = parse_form_date(w.get("WorkerJoiningDate"))
            values["WorkerLeavingDate"] = parse_form_date(w.get("WorkerLeavingDate"))
            db.session.add(WorkHistory(WorkerID=worker_id, **values))


def store_passport_photo(worker_key: Any, photo) -> Optional[str]:
    """Upload a passport photo; returns the stored 'cpps/...' path, or None when no file was sent."""
    if photo is None or not getattr(photo, "filename", ""):
        return None
    _, ext = os.path.splitext(photo.filename)
    name = safe_filename(f"{worker_key}_{datetime.now():%Y%m%d%H%M%S}{ext.lower()}")
    return storage.upload(f"attachments/workerpassportphotos/{name}", photo)


def update_worker(
    staff: StaffSession,
    worker_id: int,
    form: Dict[str, Any],
    dependants: List[Dict[str, Any]],
    history: List[Dict[str, Any]],
    photo=None,
) -> str:
    """Save an edit. Returns the success message."""
    wp = db.session.get(WorkerPersonalDetails, worker_id)
    if wp is None:
        raise NotFoundError(f"Worker {worker_id} was not found.")

    form = dict(form)
    form.update(employer_prefill(staff))
    validate_worker_form(form)
    resolve_selections(form)

    stored_photo = store_passport_photo(worker_id, photo)
    if stored_photo:
        form["WorkerPassportPhoto"] = stored_photo

    try:
        for k, v in _personal_values(form).items():
            setattr(wp, k, v)

        ce = db.session.execute(
            db.select(CurrentEmploymentDetails)
            .where(CurrentEmploymentDetails.WorkerID == worker_id)
            .order_by(CurrentEmploymentDetails.CEDID.desc())
        ).scalars().first()
        if ce is None:
            ce = CurrentEmploymentDetails(WorkerID=worker_id)
            db.session.add(ce)
        for k, v in _employment_values(form).items():
            setattr(ce, k, v)

        db.session.execute(delete(DependantPersonalDetails).where(DependantPersonalDetails.WorkerID == worker_id))
        db.session.execute(delete(WorkHistory).where(WorkHistory.WorkerID == worker_id))
        _insert_children(worker_id, form, dependants, history)

        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Worker %s update failed", worker_id)
        raise CppsError(UPDATE_FAILED, e)

    logger.info("Worker %s updated by %s", worker_id, staff.profile_id)
    return f"Worker {form.get('WorkerFirstName')} {form.get('WorkerLastName')} has been updated successfully!"


def register_worker(
    staff: StaffSession,
    form: Dict[str, Any],
    dependants: List[Dict[str, Any]],
    history: List[Dict[str, Any]],
    photo=None,
) -> Dict[str, Any]:
    """Create a worker. Returns the summary shown after registration."""
    form = dict(form)
    form.update(employer_prefill(staff))
    validate_worker_form(form, registering=True)
    resolve_selections(form)

    stored_photo = store_passport_photo(
        f"{form.get('WorkerFirstName', '')}_{form.get('WorkerLastName', '')}", photo
    )
    if stored_photo:
        form["WorkerPassportPhoto"] = stored_photo

    try:
        wp = WorkerPersonalDetails(**_personal_values(form))
        db.session.add(wp)
        db.session.flush()

        db.session.add(CurrentEmploymentDetails(WorkerID=wp.WorkerID, **_employment_values(form)))
        _insert_children(wp.WorkerID, form, dependants, history)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Worker registration failed")
        raise CppsError(REGISTER_FAILED, e)

    logger.info("Worker %s registered by %s", wp.WorkerID, staff.profile_id)
    return {
        "WorkerID": wp.WorkerID,
        "WorkerName": f"{form.get('WorkerFirstName', '')} {form.get('WorkerLastName', '')}".strip(),
        "EmployerName": form.get("PlaceOfEmployment") or "",
        "InsuranceProvider": form.get("InsuranceCompanyOrganizationName") or "",
        "WorkerMobile": form.get("WorkerMobile") or "",
        "WorkerEmail": form.get("WorkerEmail") or "",
    }

"""Claim document checklist.

Compares the required-document catalog (attachmentmaster) for the claim's
form type against what has actually been uploaded (formattachments), and
exports the result as CSV.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from cpps.errors import NotFoundError
from cpps.extensions import db
from cpps.models import AttachmentMaster, Form1112Master, FormAttachment, WorkerPersonalDetails
from cpps.services import storage

logger = logging.getLogger(__name__)

SUMMARY_HEADER = [
    "CRN", "WorkerID", "WorkerName", "IncidentType", "AttachmentType",
    "Mandatory", "FolderPath", "Submitted", "FileCount", "Files",
]
PER_FILE_HEADER = [
    "CRN", "WorkerID", "WorkerName", "IncidentType", "AttachmentType",
    "Mandatory", "FolderPath", "Submitted", "FileName", "PublicUrl",
]


def form_code_for(incident_type: Optional[str]) -> str:
    return "Form12" if (incident_type or "").strip().lower() == "death" else "Form11"


def norm_type(value: Optional[str]) -> str:
    return (value or "").strip().lower()


@dataclass
class AttachmentStatus:
    attachment_type: str
    mandatory: bool
    folder_name: str
    required: bool = True
    files: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def submitted(self) -> bool:
        return bool(self.files)


@dataclass
class ClaimAttachments:
    irn: int
    display_irn: str
    worker_id: Optional[int]
    worker_name: str
    incident_type: str
    statuses: List[AttachmentStatus]

    @property
    def stats(self) -> Dict[str, int]:
        return attachment_stats(self.statuses)


def file_public_url(folder_name: str, file: Dict[str, Any]) -> str:
    if file.get("PublicUrl"):
        return file["PublicUrl"]
    name = (file.get("FileName") or "").lstrip("/")
    if not name:
        return ""
    if name.startswith("attachments/") or not folder_name:
        return storage.public_url(name)
    return storage.public_url(f"{folder_name.strip('/')}/{name}")


def build_statuses(catalog: List[AttachmentMaster], uploads: List[FormAttachment]) -> List[AttachmentStatus]:
    """Match uploads to catalog rows by trimmed, lowercased type.

    Upload types missing from the catalog are appended as not-required rows.
    """
    by_type: Dict[str, List[FormAttachment]] = {}
    for u in uploads:
        by_type.setdefault(norm_type(u.AttachmentType), []).append(u)

    statuses: List[AttachmentStatus] = []
    seen = set()
    for m in catalog:
        key = norm_type(m.FormType)
        seen.add(key)
        status = AttachmentStatus(
            attachment_type=m.FormType or "",
            mandatory=bool(m.Mandatory),
            folder_name=m.FolderName or "",
        )
        status.files = [_file_dict(status.folder_name, u) for u in by_type.get(key, [])]
        statuses.append(status)

    for key, files in by_type.items():
        if key in seen:
            continue
        extra = AttachmentStatus(
            attachment_type=files[0].AttachmentType or "",
            mandatory=False,
            folder_name="",
            required=False,
        )
        extra.files = [_file_dict("", u) for u in files]
        statuses.append(extra)

    return statuses


def _file_dict(folder_name: str, u: FormAttachment) -> Dict[str, Any]:
    f = {"FormAttachmentID": u.FormAttachmentID, "FileName": u.FileName or "", "PublicUrl": u.PublicUrl}
    f["url"] = file_public_url(folder_name, f)
    return f


def attachment_stats(statuses: List[AttachmentStatus]) -> Dict[str, int]:
    required = [s for s in statuses if s.required]
    mandatory = [s for s in required if s.mandatory]
    total_submitted = sum(1 for s in required if s.submitted)
    mandatory_submitted = sum(1 for s in mandatory if s.submitted)
    return {
        "totalRequired": len(required),
        "mandatoryRequired": len(mandatory),
        "totalSubmitted": total_submitted,
        "mandatorySubmitted": mandatory_submitted,
        "totalMissing": len(required) - total_submitted,
        "mandatoryMissing": len(mandatory) - mandatory_submitted,
    }


def attachment_status(irn: int) -> ClaimAttachments:
    claim = db.session.get(Form1112Master, irn)
    if claim is None:
        raise NotFoundError(f"Claim {irn} was not found.")

    worker = db.session.get(WorkerPersonalDetails, claim.WorkerID) if claim.WorkerID else None
    code = form_code_for(claim.IncidentType)

    catalog = db.session.execute(
        db.select(AttachmentMaster)
        .where(AttachmentMaster.AttachmentType == code)
        .order_by(AttachmentMaster.Mandatory.desc(), AttachmentMaster.AttachmentID.asc())
    ).scalars().all()
    uploads = db.session.execute(
        db.select(FormAttachment).where(FormAttachment.IRN == irn).order_by(FormAttachment.FormAttachmentID)
    ).scalars().all()

    return ClaimAttachments(
        irn=irn,
        display_irn=claim.DisplayIRN or str(irn),
        worker_id=claim.WorkerID,
        worker_name=worker.full_name if worker else "",
        incident_type=claim.IncidentType or "",
        statuses=build_statuses(catalog, uploads),
    )


# -----------------------------------------------------------------------------
#  CSV export
# -----------------------------------------------------------------------------

def _writer(buf):
    return csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")


def _row_prefix(claim: ClaimAttachments, s: AttachmentStatus) -> List[Any]:
    return [
        claim.display_irn,
        claim.worker_id if claim.worker_id is not None else "",
        claim.worker_name,
        claim.incident_type,
        s.attachment_type,
        "Yes" if s.mandatory else "No",
        s.folder_name,
        "Yes" if s.submitted else "No",
    ]


def _selected(claim: ClaimAttachments, include_extras: bool) -> List[AttachmentStatus]:
    return [s for s in claim.statuses if s.required or include_extras]


def summary_csv(claim: ClaimAttachments, include_extras: bool = False) -> str:
    buf = io.StringIO()
    w = _writer(buf)
    w.writerow(SUMMARY_HEADER)
    for s in _selected(claim, include_extras):
        w.writerow(_row_prefix(claim, s) + [len(s.files), "|".join(f["FileName"] for f in s.files)])
    return buf.getvalue()


def per_file_csv(claim: ClaimAttachments, include_extras: bool = False) -> str:
    buf = io.StringIO()
    w = _writer(buf)
    w.writerow(PER_FILE_HEADER)
    for s in _selected(claim, include_extras):
        if not s.files:
            w.writerow(_row_prefix(claim, s) + ["", ""])
            continue
        for f in s.files:
            w.writerow(_row_prefix(claim, s) + [f["FileName"], f["url"]])
    return buf.getvalue()


def csv_filename(claim: ClaimAttachments, kind: str, include_extras: bool = False) -> str:
    suffix = "_with-extras" if include_extras else ""
    return f"attachments_{claim.display_irn}_{kind}{suffix}.csv"


def report_filename(claim: ClaimAttachments) -> str:
    return f"attachments_report_{claim.display_irn}.pdf"

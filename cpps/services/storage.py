"""Object storage for claim documents and worker photos.

Paths are bucket-relative (e.g. ``attachments/workerpassportphotos/x.jpg``)
and are stored in the database prefixed with the bucket name
(``cpps/attachments/...``). Files live under CPPS_STORAGE_ROOT/<bucket>.
"""

from __future__ import annotations

import logging
import os
from typing import Optional
from urllib.parse import quote

from flask import current_app, url_for
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from cpps.errors import CppsError, NotFoundError

logger = logging.getLogger(__name__)

_SIGNED_URL_SALT = "cpps-storage-signed-url"


def _bucket() -> str:
    return current_app.config.get("CPPS_STORAGE_BUCKET", "cpps")


def _bucket_root() -> str:
    root = os.path.join(current_app.config["CPPS_STORAGE_ROOT"], _bucket())
    os.makedirs(root, exist_ok=True)
    return root


def strip_bucket(path: str) -> str:
    """'cpps/attachments/a.pdf' → 'attachments/a.pdf'"""
    p = (path or "").strip().lstrip("/")
    prefix = _bucket() + "/"
    return p[len(prefix):] if p.startswith(prefix) else p


def resolve_path(path: str) -> str:
    """Absolute filesystem path for a bucket-relative path; refuses to escape the bucket."""
    root = os.path.realpath(_bucket_root())
    full = os.path.realpath(os.path.join(root, strip_bucket(path)))
    if full != root and not full.startswith(root + os.sep):
        raise NotFoundError("File not found.")
    return full


def upload(path: str, file_storage) -> str:
    """Save an uploaded werkzeug FileStorage at `path`. Returns the stored value ('cpps/<path>')."""
    rel = strip_bucket(path)
    full = resolve_path(rel)
    if os.path.exists(full):
        raise CppsError(f"Failed to upload file: {rel} already exists")
    os.makedirs(os.path.dirname(full), exist_ok=True)
    file_storage.save(full)
    logger.info("Stored %s", rel)
    return f"{_bucket()}/{rel}"


def public_url(path: str) -> str:
    rel = strip_bucket(path)
    base = (current_app.config.get("CPPS_PUBLIC_BASE_URL") or "").rstrip("/")
    if base:
        return f"{base}/{_bucket()}/{quote(rel)}"
    return url_for("main.storage_public", path=rel, _external=False)


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=_SIGNED_URL_SALT)


def signed_url(path: str, expires_in: Optional[int] = None) -> str:
    """Time-limited download link. The TTL is enforced when the token is read back."""
    token = _serializer().dumps({"path": strip_bucket(path), "ttl": expires_in})
    return url_for("main.storage_signed", token=token, _external=False)


def verify_signed_token(token: str) -> str:
    """Return the bucket-relative path for a valid token, else raise NotFoundError."""
    s = _serializer()
    try:
        payload = s.loads(token)
    except BadSignature as e:
        raise NotFoundError("Invalid download link.", e)

    ttl = payload.get("ttl") or current_app.config.get("CPPS_SIGNED_URL_TTL", 3600)
    try:
        payload = s.loads(token, max_age=int(ttl))
    except SignatureExpired as e:
        raise NotFoundError("This download link has expired.", e)
    return payload["path"]

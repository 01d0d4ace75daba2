import os

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))


def _int_env(name: str, default: int) -> int:
    raw = (os.environ.get(name) or "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-me")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Object storage (local bucket directory standing in for the hosted bucket)
    CPPS_STORAGE_BUCKET = os.environ.get("CPPS_STORAGE_BUCKET", "cpps")
    CPPS_STORAGE_ROOT = os.environ.get("CPPS_STORAGE_ROOT", os.path.join(BASE_DIR, "storage"))
    CPPS_PUBLIC_BASE_URL = os.environ.get("CPPS_PUBLIC_BASE_URL", "")
    CPPS_SIGNED_URL_TTL = _int_env("CPPS_SIGNED_URL_TTL", 3600)

    # Workflow roles
    CPPS_CHIEF_COMMISSIONER_ID = _int_env("CPPS_CHIEF_COMMISSIONER_ID", 2811)
    CPPS_COMMISSIONER_ID = _int_env("CPPS_COMMISSIONER_ID", 2812)
    CPPS_DEFAULT_REGION = os.environ.get("CPPS_DEFAULT_REGION", "Momase Region")
    CPPS_CLAIMS_MANAGER_DESIGNATION = os.environ.get("CPPS_CLAIMS_MANAGER_DESIGNATION", "Claims Manager")

    CPPS_PAGE_SIZE = _int_env("CPPS_PAGE_SIZE", 10)

    # Certificate artwork
    CPPS_CREST_URL = os.environ.get("CPPS_CREST_URL", "")
    CPPS_STAMP_URL = os.environ.get("CPPS_STAMP_URL", "")
    CPPS_SIGNATURE_URL = os.environ.get("CPPS_SIGNATURE_URL", "")

    # Only local/dev databases should ever be created from the models.
    CPPS_CREATE_TABLES = os.environ.get("CPPS_CREATE_TABLES", "").lower() in ("1", "true", "yes")


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    CPPS_CREATE_TABLES = True
    CPPS_PUBLIC_BASE_URL = "http://storage.test"

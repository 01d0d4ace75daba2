import re

from flask import Flask, has_request_context
from markupsafe import Markup, escape

from .utils.formatting import ddmmyyyy, format_kina

# Application version
APP_VERSION = "0.5.0"


def format_date(value, empty=""):
    """dd/mm/yyyy, the way every CPPS screen shows dates."""
    return ddmmyyyy(value, empty=empty)


def _normalize_multiline_text(value) -> str:
    """Turn stored <br> fragments (raw or escaped) and CRLFs into plain newlines."""
    if value is None:
        return ""
    s = str(value).replace("\r\n", "\n").replace("\r", "\n")
    s = s.replace("&amp;lt;", "&lt;").replace("&amp;gt;", "&gt;")
    s = re.sub(r"(?i)&lt;br\s*/?&gt;", "\n", s)
    s = re.sub(r"(?i)<br\s*/?>", "\n", s)
    return s


def nl2br(value):
    """Render decision reasons with their line breaks; content is escaped first."""
    s = _normalize_multiline_text(value)
    if not s:
        return Markup("")
    return Markup(str(escape(s)).replace("\n", "<br>\n"))


def create_app(config_object=None):
    """Application factory for CPPS Claims.

    `config_object` defaults to cpps.config.Config (environment driven); the
    test suite passes TestConfig.
    """
    app = Flask(__name__)

    if config_object is None:
        from .config import Config as config_object
    app.config.from_object(config_object)
    app.config.setdefault("APP_VERSION", APP_VERSION)

    # Postgres via DATABASE_URL; fail loudly if missing
    if not app.config.get("SQLALCHEMY_DATABASE_URI"):
        raise RuntimeError("DATABASE_URL is not set. Refusing to start without a database.")

    app.jinja_env.filters["format_date"] = format_date
    app.jinja_env.filters["format_kina"] = format_kina
    app.jinja_env.filters["nl2br"] = nl2br

    from .extensions import db

    db.init_app(app)

    from .routes import bp as main_bp

    app.register_blueprint(main_bp)

    @app.context_processor
    def inject_staff():
        from .auth import current_staff

        # PDFs are also rendered outside a request (after a decision commits)
        staff = current_staff() if has_request_context() else None
        return {"staff": staff, "app_version": app.config["APP_VERSION"]}

    if app.config.get("CPPS_CREATE_TABLES"):
        with app.app_context():
            from . import models  # noqa: F401  ensure models are registered

            db.create_all()
            app.logger.info("Created missing tables from models")

    return app

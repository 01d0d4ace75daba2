"""Tests for display helpers, template filters and the app factory."""

from datetime import date, datetime

import pytest

from cpps import create_app, format_date, nl2br
from cpps.config import Config
from cpps.utils import formatting
from cpps.utils.validation import is_valid_phone, parse_form_date, safe_filename, to_number


class TestFormatting:
    def test_ddmmyyyy(self):
        assert formatting.ddmmyyyy(date(2024, 3, 1)) == "01/03/2024"
        assert formatting.ddmmyyyy("2024-03-01T10:15:00") == "01/03/2024"
        assert formatting.ddmmyyyy(None) == ""
        assert formatting.ddmmyyyy("garbage", empty="--") == "--"

    @pytest.mark.parametrize("n, expected", [
        (1, "1st"), (2, "2nd"), (3, "3rd"), (4, "4th"), (11, "11th"),
        (12, "12th"), (13, "13th"), (21, "21st"), (22, "22nd"), (101, "101st"),
    ])
    def test_ordinal(self, n, expected):
        assert formatting.ordinal(n) == expected

    @pytest.mark.parametrize("value, expected", [
        (1225, "K1,225"),
        ("10.5", "K10.5"),
        (1234567.891, "K1,234,567.89"),
        (None, "K0"),
        ("junk", "K0"),
    ])
    def test_format_kina(self, value, expected):
        assert formatting.format_kina(value) == expected

    def test_long_date(self):
        assert formatting.long_date(datetime(2024, 3, 22, 9, 0)) == "22nd March 2024"

    def test_or_missing(self):
        assert formatting.or_missing("  ") == "--"
        assert formatting.or_missing(0) == 0


class TestValidationHelpers:
    @pytest.mark.parametrize("value, ok", [
        ("", True), (None, True), ("3211234", True), ("7123 4567", True),
        ("+675 7123 4567", True), ("12345", False), ("123456789012", False),
    ])
    def test_phone(self, value, ok):
        assert is_valid_phone(value) is ok

    def test_form_dates(self):
        assert parse_form_date("2024-03-01") == date(2024, 3, 1)
        assert parse_form_date("01/03/2024") == date(2024, 3, 1)
        assert parse_form_date("yesterday") is None

    def test_to_number(self):
        assert to_number("350") == 350
        assert to_number("12.5") == 12.5
        assert to_number("", default="") == ""
        assert to_number("abc") == 0

    def test_safe_filename(self):
        assert safe_filename("../Lucy Pato photo.JPG") == "Lucy_Pato_photo.JPG"
        assert safe_filename("...") == "file"


class TestTemplateFilters:
    def test_format_date_filter(self):
        assert format_date("2024-12-31") == "31/12/2024"

    def test_nl2br_escapes_then_breaks(self):
        assert str(nl2br("a<b>\r\nline two")) == "a&lt;b&gt;<br>\nline two"

    def test_nl2br_turns_stored_breaks_into_newlines(self):
        assert str(nl2br("one<br/>two&lt;br&gt;three")) == "one<br>\ntwo<br>\nthree"

    def test_nl2br_empty(self):
        assert str(nl2br(None)) == ""


class TestCreateApp:
    def test_refuses_to_start_without_database(self):
        class NoDatabase(Config):
            SQLALCHEMY_DATABASE_URI = None

        with pytest.raises(RuntimeError):
            create_app(NoDatabase)

    def test_filters_are_registered(self, app):
        assert app.jinja_env.filters["format_kina"] is formatting.format_kina
        assert "nl2br" in app.jinja_env.filters

    def test_landing_page(self, client):
        resp = client.get("/")

        assert resp.status_code == 200

"""
Tests for backend/strata_reports/services/report_generator_service/formatting.py

Covers date coercion and formatting fallbacks, currency and percent
formatting, PDF text sanitization, and download filename sanitization.
"""

from datetime import date, datetime, timezone

import pytest

from strata_reports.services.report_generator_service.formatting import (
    format_axis_currency,
    format_currency,
    format_date,
    format_percent,
    hex_to_rgb,
    month_key,
    sanitize_filename,
    sanitize_for_pdf,
    to_datetime,
    to_number,
)


class TestFormatDate:
    """Tests for format_date()"""

    def test_none_is_na(self):
        assert format_date(None) == "N/A"

    def test_empty_string_is_na(self):
        assert format_date("") == "N/A"

    def test_garbage_is_invalid_date(self):
        assert format_date("not-a-date") == "Invalid Date"

    def test_iso_string(self):
        assert format_date("2024-03-05") == "March 5, 2024"

    def test_iso_datetime_string(self):
        assert format_date("2024-12-31T23:00:00Z") == "December 31, 2024"

    def test_datetime_object(self):
        assert format_date(datetime(2023, 1, 9, 8, 30)) == "January 9, 2023"

    def test_date_object(self):
        assert format_date(date(2022, 7, 4)) == "July 4, 2022"

    def test_firestore_timestamp(self):
        # 2024-01-01T00:00:00Z
        assert format_date({"_seconds": 1704067200}) == "January 1, 2024"

    def test_epoch_milliseconds(self):
        assert format_date(1704067200000) == "January 1, 2024"

    def test_unknown_object_is_invalid_date(self):
        assert format_date({"nanos": 5}) == "Invalid Date"

    @pytest.mark.parametrize("value", [1e20, float("inf"), float("nan"), {"_seconds": 1e18}])
    def test_out_of_range_timestamp_is_invalid_date(self, value):
        assert format_date(value) == "Invalid Date"


class TestToDatetime:
    """Tests for to_datetime()"""

    def test_none_returns_none(self):
        assert to_datetime(None) is None

    def test_timestamp_is_utc(self):
        dt = to_datetime({"_seconds": 0})
        assert dt == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_bool_rejected(self):
        with pytest.raises(ValueError):
            to_datetime(True)

    def test_unparseable_raises(self):
        with pytest.raises(ValueError):
            to_datetime("definitely not a date")

    def test_out_of_range_epoch_raises_value_error(self):
        """Platform time_t overflow surfaces as ValueError, not OSError."""
        with pytest.raises(ValueError):
            to_datetime(1e20)
        with pytest.raises(ValueError):
            to_datetime({"_seconds": 10 ** 400})


class TestMonthKey:
    """Tests for month_key()"""

    def test_short_month_and_year(self):
        assert month_key("2024-03-18") == "Mar 2024"

    def test_invalid_returns_none(self):
        assert month_key("nope") is None

    def test_missing_returns_none(self):
        assert month_key(None) is None


class TestFormatCurrency:
    """Tests for format_currency()"""

    def test_thousands_and_cents(self):
        assert format_currency(1234.5) == "$1,234.50"

    def test_zero(self):
        assert format_currency(0) == "$0.00"

    def test_numeric_string(self):
        assert format_currency("125000.00") == "$125,000.00"

    def test_missing_is_zero(self):
        assert format_currency(None) == "$0.00"

    def test_negative_keeps_sign_after_symbol(self):
        assert format_currency(-1800) == "$-1,800.00"


class TestToNumber:
    """Tests for to_number()"""

    def test_string(self):
        assert to_number("12.5") == 12.5

    def test_garbage_uses_default(self):
        assert to_number("abc", default=3.0) == 3.0

    def test_bool_is_not_a_number(self):
        assert to_number(True) == 0.0


class TestFormatPercent:
    """Tests for format_percent()"""

    def test_one_decimal(self):
        assert format_percent(25, 200) == "12.5"

    def test_zero_denominator(self):
        assert format_percent(5, 0) == "0"

    def test_no_decimals(self):
        assert format_percent(2, 3, 0) == "67"


class TestFormatAxisCurrency:
    """Tests for format_axis_currency()"""

    def test_whole_value(self):
        assert format_axis_currency(1500) == "$1,500"

    def test_fractional_value(self):
        assert format_axis_currency(0.5) == "$0.50"


class TestSanitizeForPdf:
    """Tests for sanitize_for_pdf()"""

    def test_smart_quotes_and_dashes(self):
        assert sanitize_for_pdf("“Hi” – it’s") == '"Hi" - it\'s'

    def test_status_glyphs_mapped_before_emoji_strip(self):
        assert sanitize_for_pdf("✓ completed") == "OK completed"
        assert sanitize_for_pdf("→ in-progress") == "-> in-progress"
        assert sanitize_for_pdf("⏳ pending") == ".. pending"

    def test_emoji_stripped(self):
        assert sanitize_for_pdf("Done \U0001F389") == "Done "

    def test_latin1_kept(self):
        assert sanitize_for_pdf("Café ©") == "Café ©"

    def test_other_unicode_replaced(self):
        assert sanitize_for_pdf("Erdős") == "Erd?s"

    def test_none_is_empty(self):
        assert sanitize_for_pdf(None) == ""


class TestSanitizeFilename:
    """Tests for sanitize_filename()"""

    def test_non_alphanumerics_become_underscores(self):
        assert sanitize_filename("Q1 Financial Report (2024)") == "Q1_Financial_Report__2024_.pdf"

    def test_empty_title(self):
        assert sanitize_filename("") == "report.pdf"


class TestHexToRgb:
    """Tests for hex_to_rgb()"""

    def test_six_digits(self):
        assert hex_to_rgb("#0891b2") == (8, 145, 178)

    def test_three_digits(self):
        assert hex_to_rgb("#fff") == (255, 255, 255)

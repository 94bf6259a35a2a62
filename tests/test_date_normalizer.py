"""
Tests for the DateNormalizer module.
"""

import logging
from datetime import date

import pytest

from clinical_dates.normalization.date_normalizer import (
    DateNormalizer,
    ImputationRule,
    date_imputation_flag,
    extract_date_tokens,
    normalize_date,
)
from clinical_dates.normalization.diagnostics import Severity
from clinical_dates.validation.parameter_validator import ParameterError


class TestDateNormalizer:
    """Test suite for DateNormalizer"""

    @pytest.fixture
    def normalizer(self):
        """Create a DateNormalizer that only returns diagnostics"""
        return DateNormalizer(log_sink=None)

    @pytest.mark.parametrize("input_date,expected", [
        ("01JAN2022", date(2022, 1, 1)),
        ("1JAN2022", date(2022, 1, 1)),
        ("01jan2022", date(2022, 1, 1)),
        ("15-Mar-2021", date(2021, 3, 15)),
        ("15/MAR/2021", date(2021, 3, 15)),
        ("15 MAR 2021", date(2021, 3, 15)),
        ("15@MAR#2021", date(2021, 3, 15)),
        ("29FEB2020", date(2020, 2, 29)),
        ("31DEC1999 23:59", date(1999, 12, 31)),
        ("Visit on 07AUG2019 at 10:00", date(2019, 8, 7)),
    ])
    def test_normalize_complete_dates(self, normalizer, input_date, expected):
        """Complete dates parse regardless of case, delimiter or trailing text"""
        assert normalizer.normalize_date(input_date) == (expected, None)

    @pytest.mark.parametrize("input_date,rule,expected", [
        ("UNUNK2020", "min", date(2020, 1, 1)),
        ("UNUNK2020", "max", date(2020, 12, 31)),
        ("UN FEB2021", "max", date(2021, 2, 28)),
        ("UNFEB2020", "max", date(2020, 2, 29)),
        ("UNFEB2020", "min", date(2020, 2, 1)),
        ("UKJUN2020", "max", date(2020, 6, 30)),
        ("uk-apr-2023", "max", date(2023, 4, 30)),
        ("15UNK2020", "min", date(2020, 1, 15)),
        ("15UNK2020", "max", date(2020, 12, 15)),
    ])
    def test_partial_date_imputation(self, input_date, rule, expected):
        """Unknown day/month tokens are filled by the imputation rule"""
        result, diagnostic = normalize_date(input_date, rule=rule, log_sink=None)
        assert result == expected
        assert diagnostic is None

    @pytest.mark.parametrize("input_date", [
        "NOTADATE",
        "30FEB2021",
        "31APR2020",
        "00JAN2020",
        "01XYZ2020",
        "ABJAN2020",
        "01.JAN.2020",
        "2020-01-01",
    ])
    def test_invalid_dates(self, normalizer, input_date):
        """Invalid dates resolve to missing with a warning"""
        result, diagnostic = normalizer.normalize_date(input_date)
        assert result is None
        assert diagnostic.severity is Severity.WARNING
        assert diagnostic.message == f"WARNING: Input date is not valid: {input_date}"

    @pytest.mark.parametrize("input_date", [None, "", "   ", float("nan")])
    def test_missing_input(self, normalizer, input_date):
        """Missing input is missing output without a diagnostic"""
        assert normalizer.normalize_date(input_date) == (None, None)

    def test_no_warn_downgrades_to_info(self):
        """warn=False reports invalid input at INFO"""
        result, diagnostic = normalize_date("NOTADATE", warn=False, log_sink=None)
        assert result is None
        assert diagnostic.severity is Severity.INFO
        assert diagnostic.message == "INFO: Input date is not valid: NOTADATE"

    def test_diagnostic_logged_to_sink(self, caplog):
        """Diagnostics go to the module logger by default"""
        with caplog.at_level(logging.INFO):
            normalize_date("NOTADATE")
            normalize_date("ALSOBAD", warn=False)

        messages = [(r.levelno, r.getMessage()) for r in caplog.records]
        assert (logging.WARNING, "WARNING: Input date is not valid: NOTADATE") in messages
        assert (logging.INFO, "INFO: Input date is not valid: ALSOBAD") in messages

    def test_custom_and_silent_sinks(self, caplog):
        """A caller-provided logger receives diagnostics; None suppresses them"""
        sink = logging.getLogger("tests.date_sink")
        with caplog.at_level(logging.INFO):
            normalize_date("NOTADATE", log_sink=sink)
            normalize_date("SILENT", log_sink=None)

        assert [r.name for r in caplog.records] == ["tests.date_sink"]

    def test_idempotent_on_canonical_text(self, normalizer):
        """Re-normalizing a canonical DDMMMYYYY string gives the same date"""
        first, _ = normalizer.normalize_date("UNMAR2021")
        canonical = f"{first.day:02d}{first.strftime('%b').upper()}{first.year}"
        assert normalizer.normalize_date(canonical) == (first, None)

    def test_rule_accepts_enum_and_any_case(self):
        """Rules can be given as enum members or case-insensitive text"""
        assert normalize_date("UNUNK2020", rule=ImputationRule.MAX, log_sink=None)[0] == date(2020, 12, 31)
        assert normalize_date("UNUNK2020", rule="MAX", log_sink=None)[0] == date(2020, 12, 31)

    def test_invalid_rule_fails_fast(self):
        """A rule other than min/max is a configuration error"""
        with pytest.raises(ParameterError) as exc_info:
            normalize_date("01JAN2020", rule="mid")
        assert exc_info.value.code == "invalid_choice"
        assert exc_info.value.parameter == "rule"

    def test_invalid_rule_fails_before_missing_check(self):
        """An invalid rule is reported even when the text is missing"""
        with pytest.raises(ParameterError) as exc_info:
            normalize_date(None, rule="mid")
        assert exc_info.value.code == "invalid_choice"

    def test_omitted_text_fails_fast(self, normalizer):
        """Omitting the text entirely is a configuration error, not a missing value"""
        with pytest.raises(ParameterError) as exc_info:
            normalize_date()
        assert exc_info.value.code == "missing_parameter"

        with pytest.raises(ParameterError):
            normalizer.normalize_date()


class TestDateHelpers:
    """Tests for token extraction and imputation flags"""

    @pytest.mark.parametrize("text,expected", [
        ("1JAN2022", ("01", "JAN", "2022")),
        ("un-unk-2020 12:00", ("UN", "UNK", "2020")),
        ("01JAN20201", ("01", "JAN", "2020")),
        ("no date here", None),
    ])
    def test_extract_date_tokens(self, text, expected):
        assert extract_date_tokens(text) == expected

    @pytest.mark.parametrize("text,expected", [
        ("01JAN2020", None),
        ("UNJAN2020", "D"),
        ("UKJAN2020", "D"),
        ("15UNK2020", "M"),
        ("UNUNK2020", "M"),
        ("NOTADATE", None),
        (None, None),
    ])
    def test_date_imputation_flag(self, text, expected):
        assert date_imputation_flag(text) == expected


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

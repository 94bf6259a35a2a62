"""
Tests for the TimeNormalizer module.
"""

import logging
from datetime import time

import pytest

from clinical_dates.normalization.diagnostics import Severity
from clinical_dates.normalization.time_normalizer import (
    TimeNormalizer,
    extract_time_token,
    normalize_time,
)
from clinical_dates.validation.parameter_validator import ParameterError


class TestTimeNormalizer:
    """Test suite for TimeNormalizer"""

    @pytest.fixture
    def normalizer(self):
        """Create a TimeNormalizer that only returns diagnostics"""
        return TimeNormalizer(log_sink=None)

    @pytest.mark.parametrize("input_time,expected", [
        ("9:05", time(9, 5)),
        ("09:05", time(9, 5)),
        ("14:05:30", time(14, 5, 30)),
        ("00:00", time(0, 0)),
        ("23:59:59", time(23, 59, 59)),
        ("15JAN2020 14:05", time(14, 5)),
        ("  7:45  ", time(7, 45)),
        ("14:05xyz", time(14, 5)),
        ("T08:30", time(8, 30)),
    ])
    def test_normalize_times(self, normalizer, input_time, expected):
        """Valid clock readings parse, with leading date text and trailing garbage dropped"""
        assert normalizer.normalize_time(input_time) == (expected, None)

    @pytest.mark.parametrize("input_time", [
        "01:62",
        "24:00",
        "25:10",
        "12:60:00",
        "noon",
        "14:05 extra",
        "1405",
    ])
    def test_invalid_times(self, normalizer, input_time):
        """Out-of-range or unrecognized times resolve to missing with a warning"""
        result, diagnostic = normalizer.normalize_time(input_time)
        assert result is None
        assert diagnostic.severity is Severity.WARNING
        assert diagnostic.message == f"WARNING: Input time is not valid: {input_time}"

    @pytest.mark.parametrize("input_time", [None, "", "  ", float("nan")])
    def test_missing_input(self, normalizer, input_time):
        """Missing input is missing output without a diagnostic"""
        assert normalizer.normalize_time(input_time) == (None, None)

    def test_no_warn_downgrades_to_info(self, caplog):
        """warn=False reports invalid input at INFO"""
        with caplog.at_level(logging.INFO):
            result, diagnostic = normalize_time("01:62", warn=False)

        assert result is None
        assert diagnostic.severity is Severity.INFO
        assert [(r.levelno, r.getMessage()) for r in caplog.records] == [
            (logging.INFO, "INFO: Input time is not valid: 01:62")
        ]

    def test_idempotent_on_canonical_text(self, normalizer):
        """Re-normalizing HH:MM:SS output gives the same time"""
        first, _ = normalizer.normalize_time("9:05:07")
        assert normalizer.normalize_time(first.isoformat()) == (first, None)

    def test_omitted_text_fails_fast(self, normalizer):
        """Omitting the text entirely is a configuration error"""
        with pytest.raises(ParameterError) as exc_info:
            normalize_time()
        assert exc_info.value.code == "missing_parameter"

        with pytest.raises(ParameterError):
            normalizer.normalize_time()


class TestExtractTimeToken:
    """Tests for the time token extraction step"""

    @pytest.mark.parametrize("text,expected", [
        ("9:05", "09:05"),
        ("10:00:15", "10:00:15"),
        ("01JAN2020 8:00", "08:00"),
        ("8:00 01JAN2020", None),
        ("", None),
    ])
    def test_extract_time_token(self, text, expected):
        assert extract_time_token(text) == expected


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""
Date normalization module for case report form dates.

Normalizes DDMMMYYYY-style text (e.g. "01JAN2020", "UN-FEB-2021",
"15 unk 2019 14:30") into calendar dates, imputing unknown day and month
tokens by rule.
"""

import calendar
import logging
import re
from datetime import date
from enum import Enum
from typing import Any, Optional, Tuple

import ciso8601

from clinical_dates.config import Config
from clinical_dates.normalization.diagnostics import Diagnostic, emit, invalid_input
from clinical_dates.validation.parameter_validator import (
    OMITTED,
    is_missing,
    require_parameter,
    validate_choice,
)

logger = logging.getLogger(__name__)

# day (digits or a 2-letter placeholder), month, 4-digit year; each separated by
# at most one character that is not a letter, digit or period
DATE_TOKEN_PATTERN = re.compile(
    r"([0-9]{1,2}|[A-Z]{2})[^A-Z0-9.]?([A-Z]{3})[^A-Z0-9.]?([0-9]{4})"
)


class ImputationRule(str, Enum):
    """How unknown day/month tokens are filled"""
    MIN = "min"
    MAX = "max"

    @classmethod
    def from_value(cls, value: Any) -> "ImputationRule":
        """Parse "min"/"max" (any case); raises ParameterError otherwise"""
        return cls(validate_choice("rule", value, [member.value for member in cls]))


def extract_date_tokens(text: str) -> Optional[Tuple[str, str, str]]:
    """
    Pull the first day/month/year group out of free text.

    Anything after the year (typically a time of day) is dropped, and a
    single-digit day is zero padded.

    Returns:
        (day, month, year) upper-cased, or None if nothing date-like was found
    """
    match = DATE_TOKEN_PATTERN.search(text.upper())
    if not match:
        return None

    day, month, year = match.groups()
    if len(day) == 1:
        day = "0" + day
    return day, month, year


def date_imputation_flag(text: Any) -> Optional[str]:
    """
    SDTM-style date imputation flag for a partial date.

    Returns:
        "M" if the month (and possibly day) is unknown, "D" if only the day is
        unknown, None for complete or unparseable dates
    """
    if is_missing(text):
        return None

    tokens = extract_date_tokens(str(text))
    if tokens is None:
        return None

    day, month, _ = tokens
    if month == Config.UNKNOWN_MONTH_TOKEN:
        return "M"
    if day in Config.UNKNOWN_DAY_TOKENS:
        return "D"
    return None


def _parse_ddmmmyyyy(day: str, month: str, year: str) -> Optional[date]:
    """Strict calendar parse; None instead of raising for invalid dates (e.g. 30FEB2021)"""
    month_number = Config.MONTH_ABBREVIATIONS.get(month)
    if month_number is None:
        return None

    try:
        return ciso8601.parse_datetime(f"{year}-{month_number:02d}-{day}").date()
    except ValueError:
        return None


class DateNormalizer:
    """Normalizes partial CRF dates to calendar dates"""

    def __init__(
        self,
        rule: Any = ImputationRule.MIN,
        warn: bool = True,
        log_sink: Optional[logging.Logger] = logger,
    ):
        """
        Args:
            rule: "min" imputes the earliest possible date, "max" the latest
            warn: False reports unparseable input at INFO instead of WARNING
            log_sink: Logger receiving diagnostics; None to only return them

        Raises:
            ParameterError: if rule is not "min" or "max"
        """
        self.rule = ImputationRule.from_value(rule)
        self.warn = warn
        self.log_sink = log_sink

    def normalize_date(self, text: Any = OMITTED) -> Tuple[Optional[date], Optional[Diagnostic]]:
        """
        Normalize one date text.

        Args:
            text: Free text such as "1JAN2022", "UNUNK2020" or "15-Mar-2021 08:00"

        Returns:
            Tuple of (date or None, diagnostic or None). Missing input gives
            (None, None); unparseable input gives (None, diagnostic).

        Raises:
            ParameterError: if text was not supplied at all
        """
        require_parameter("text", text)

        if is_missing(text):
            return (None, None)

        result = self._impute_and_parse(str(text))
        if result is not None:
            return (result, None)

        diagnostic = invalid_input("date", str(text), self.warn)
        emit(diagnostic, self.log_sink)
        return (None, diagnostic)

    def _impute_and_parse(self, text: str) -> Optional[date]:
        tokens = extract_date_tokens(text)
        if tokens is None:
            return None

        day, month, year = tokens

        if month == Config.UNKNOWN_MONTH_TOKEN:
            month = "JAN" if self.rule is ImputationRule.MIN else "DEC"

        day_unknown = day in Config.UNKNOWN_DAY_TOKENS
        if day_unknown:
            day = "01"

        parsed = _parse_ddmmmyyyy(day, month, year)
        if parsed is None:
            logger.debug(f"Could not parse {day}{month}{year} from {text!r}")
            return None

        # last day of the month is only known once the month is
        if day_unknown and self.rule is ImputationRule.MAX:
            parsed = parsed.replace(day=calendar.monthrange(parsed.year, parsed.month)[1])

        return parsed


def normalize_date(
    text: Any = OMITTED,
    rule: Any = ImputationRule.MIN,
    warn: bool = True,
    log_sink: Optional[logging.Logger] = logger,
) -> Tuple[Optional[date], Optional[Diagnostic]]:
    """
    Normalize a partial date text to a calendar date.

    Example:
        >>> normalize_date("UNFEB2020", rule="max")
        (datetime.date(2020, 2, 29), None)
    """
    require_parameter("text", text)
    return DateNormalizer(rule=rule, warn=warn, log_sink=log_sink).normalize_date(text)

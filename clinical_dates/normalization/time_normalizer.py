"""
Time normalization module for case report form times.

Normalizes H[H]:MM[:SS] text, optionally preceded by a date portion
("15JAN2020 14:05"), into a time of day. Values that a parser would only
accept by rolling them over (minute 62, hour 24) are rejected.
"""

import logging
import re
from datetime import time
from typing import Any, Optional, Tuple

import ciso8601

from clinical_dates.normalization.diagnostics import Diagnostic, emit, invalid_input
from clinical_dates.validation.parameter_validator import OMITTED, is_missing, require_parameter

logger = logging.getLogger(__name__)

TIME_TOKEN_PATTERN = re.compile(r"[0-9]+:[0-9]{2}(?::[0-9]{2})?")

# parsed times are anchored to an arbitrary day so the ISO parser can be reused
_ANCHOR_DATE = "1970-01-01"


def extract_time_token(text: str) -> Optional[str]:
    """
    Get the H[H]:MM[:SS] fragment from the last whitespace-delimited token.

    Returns:
        Token with a zero-padded hour (e.g. "09:05"), or None
    """
    tokens = text.split()
    if not tokens:
        return None

    match = TIME_TOKEN_PATTERN.search(tokens[-1])
    if not match:
        return None

    token = match.group(0)
    if token.index(":") == 1:
        token = "0" + token
    return token


class TimeNormalizer:
    """Normalizes CRF time text to a time of day"""

    def __init__(self, warn: bool = True, log_sink: Optional[logging.Logger] = logger):
        self.warn = warn
        self.log_sink = log_sink

    def normalize_time(self, text: Any = OMITTED) -> Tuple[Optional[time], Optional[Diagnostic]]:
        """
        Normalize one time text.

        Args:
            text: Free text such as "9:05", "14:05:30" or "15JAN2020 14:05"

        Returns:
            Tuple of (time or None, diagnostic or None)

        Raises:
            ParameterError: if text was not supplied at all
        """
        require_parameter("text", text)

        if is_missing(text):
            return (None, None)

        result = self._parse(str(text))
        if result is not None:
            return (result, None)

        diagnostic = invalid_input("time", str(text), self.warn)
        emit(diagnostic, self.log_sink)
        return (None, diagnostic)

    def _parse(self, text: str) -> Optional[time]:
        token = extract_time_token(text)
        if token is None:
            return None

        try:
            parsed = ciso8601.parse_datetime(f"{_ANCHOR_DATE}T{token}")
        except ValueError:
            return None

        # the parser may roll out-of-range fields into the next unit; only
        # literally valid clock readings survive this comparison
        hour, minute = (int(part) for part in token.split(":")[:2])
        if parsed.hour != hour or parsed.minute != minute:
            logger.debug(f"Rejected rolled-over time {token!r} (parsed as {parsed.time()})")
            return None

        return parsed.time()


def normalize_time(
    text: Any = OMITTED,
    warn: bool = True,
    log_sink: Optional[logging.Logger] = logger,
) -> Tuple[Optional[time], Optional[Diagnostic]]:
    """
    Normalize a time text to a time of day.

    Example:
        >>> normalize_time("9:05")
        (datetime.time(9, 5), None)
    """
    require_parameter("text", text)
    return TimeNormalizer(warn=warn, log_sink=log_sink).normalize_time(text)

"""
Combines a normalized date and a normalized time into one datetime.

Omitting the time and passing a missing time behave the same: the
missing-time policy decides between midnight and a missing result.
"""

import logging
from datetime import datetime, time
from typing import Any, Optional

from clinical_dates.validation.parameter_validator import (
    OMITTED,
    is_missing,
    is_yes,
    require_parameter,
)

logger = logging.getLogger(__name__)

MIDNIGHT = time(0, 0, 0)


class DatetimeCombiner:
    """Merges date and time values under a missing-time policy"""

    def __init__(self, missing_time_allowed: Any = "yes"):
        """
        Args:
            missing_time_allowed: "yes" (any case) or True fills a missing time
                with 00:00:00; any other value leaves the datetime missing
        """
        self.missing_time_allowed = is_yes(missing_time_allowed)

    def combine(self, date_value: Any = OMITTED, time_value: Any = OMITTED) -> Optional[datetime]:
        """
        Combine a date and an optional time.

        Args:
            date_value: datetime.date (or None/NaT when missing)
            time_value: datetime.time, missing, or not passed at all

        Returns:
            datetime, or None when the date is missing or the time is
            missing and not allowed to be

        Raises:
            ParameterError: if date_value was not supplied at all
        """
        require_parameter("date", date_value)

        if is_missing(date_value):
            return None

        # pandas Timestamps and datetimes carry a time we do not want here
        if isinstance(date_value, datetime):
            date_value = date_value.date()

        if time_value is OMITTED or is_missing(time_value):
            if not self.missing_time_allowed:
                return None
            time_value = MIDNIGHT
        elif isinstance(time_value, datetime):
            time_value = time_value.time()

        return datetime.combine(date_value, time_value)


def combine(
    date: Any = OMITTED,
    time: Any = OMITTED,
    missing_time_allowed: Any = "yes",
) -> Optional[datetime]:
    """
    Combine a normalized date and time into a datetime.

    Example:
        >>> combine(datetime(2022, 1, 1).date())
        datetime.datetime(2022, 1, 1, 0, 0)
        >>> combine(datetime(2022, 1, 1).date(), None, missing_time_allowed="no") is None
        True
    """
    require_parameter("date", date)
    return DatetimeCombiner(missing_time_allowed).combine(date, time)

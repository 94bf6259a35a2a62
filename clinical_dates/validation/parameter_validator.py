"""
Parameter validation for the normalization entry points.

Configuration errors (a mandatory argument that was never passed, or a knob
outside its legal values) are programmer mistakes, not data quality issues.
They stop the call before any computation by raising ParameterError.

Missing *values* (None, blank strings, pandas NaN/NaT) are not errors; see
is_missing().
"""

import logging
from typing import Any, Iterable, Optional

import pandas as pd

logger = logging.getLogger(__name__)


class _Omitted:
    """Marker type for a parameter that was not supplied at all"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "OMITTED"

    def __bool__(self) -> bool:
        return False


# Default for mandatory parameters; distinguishes "not passed" from "passed None"
OMITTED = _Omitted()


class ParameterError(ValueError):
    """
    Raised when a call is misconfigured.

    Attributes:
        code: short diagnostic code ("missing_parameter" or "invalid_choice")
        parameter: name of the offending parameter
    """

    def __init__(self, code: str, parameter: str, message: str):
        super().__init__(message)
        self.code = code
        self.parameter = parameter


def require_parameter(name: str, value: Any) -> None:
    """
    Fail fast if a mandatory parameter was omitted entirely.

    Args:
        name: Parameter name used in the error message
        value: The received value (OMITTED when the caller did not pass it)

    Raises:
        ParameterError: with code "missing_parameter"
    """
    if value is OMITTED:
        logger.error(f"Required parameter '{name}' was not supplied")
        raise ParameterError(
            "missing_parameter", name, f"Required parameter '{name}' was not supplied"
        )


def validate_choice(name: str, value: Any, choices: Iterable[str]) -> str:
    """
    Check that a text knob holds one of its legal values (case-insensitive).

    Returns:
        The lower-cased value

    Raises:
        ParameterError: with code "invalid_choice"
    """
    choices = tuple(choices)
    # str-based enums compare by their value
    normalized = getattr(value, "value", value)
    if isinstance(normalized, str) and normalized.strip().lower() in choices:
        return normalized.strip().lower()

    logger.error(f"Invalid value {value!r} for '{name}'; expected one of {choices}")
    raise ParameterError(
        "invalid_choice",
        name,
        f"Invalid value {value!r} for '{name}': expected one of {', '.join(choices)}",
    )


def is_yes(value: Any) -> bool:
    """
    Interpret a yes/no knob. Only "yes" (any case) or True means yes;
    every other value means no.
    """
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.strip().lower() == "yes"


def is_missing(value: Optional[Any]) -> bool:
    """
    True for None, blank strings and pandas missing values (NaN, NaT, NA).
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        # array-likes have no single truth value; they are not scalar missing values
        return False

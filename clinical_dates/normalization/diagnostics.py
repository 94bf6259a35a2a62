"""
Diagnostics for data quality failures.

The normalizers decide severity and message text; where the message ends up
is up to the caller's log sink (any logging.Logger).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Severity(str, Enum):
    """Severity of a data quality diagnostic"""
    WARNING = "WARNING"
    INFO = "INFO"

    @property
    def log_level(self) -> int:
        return logging.WARNING if self is Severity.WARNING else logging.INFO


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal message describing an input that could not be normalized"""
    severity: Severity
    message: str


def invalid_input(kind: str, text: str, warn: bool = True) -> Diagnostic:
    """
    Build the diagnostic for an unparseable date or time.

    Args:
        kind: "date" or "time"
        text: The original input text, reported verbatim
        warn: False downgrades the severity to INFO

    Returns:
        Diagnostic whose message reads "<SEVERITY>: Input <kind> is not valid: <text>"
    """
    severity = Severity.WARNING if warn else Severity.INFO
    return Diagnostic(
        severity=severity,
        message=f"{severity.value}: Input {kind} is not valid: {text}",
    )


def emit(diagnostic: Optional[Diagnostic], log_sink: Optional[logging.Logger]) -> None:
    """Write a diagnostic to the log sink; no-op without either"""
    if diagnostic is None or log_sink is None:
        return
    log_sink.log(diagnostic.severity.log_level, diagnostic.message)

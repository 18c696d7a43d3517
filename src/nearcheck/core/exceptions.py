"""Exception classes for near checks.

A failing comparison is reported through ``NearMismatchError``, which is an
``AssertionError`` so test runners count it as a test failure. Malformed
input is rejected with ``InvalidShapeError`` or
``UnsupportedElementKindError`` when input validation is enabled.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nearcheck.core.report import NearReport


class NearCheckError(Exception):
    """Base class for all near-check errors.

    Attributes:
        message: The error message describing what went wrong.
        context: Optional dictionary with the offending parameters.
    """

    def __init__(self, message: str, context: dict | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class InvalidShapeError(NearCheckError, ValueError):
    """Raised when shape parameters or buffers cannot describe a valid comparison.

    Example:
        raise InvalidShapeError(
            "Fewer reference buffers than batches",
            context={"batch_count": 4, "buffers": 3},
        )
    """


class UnsupportedElementKindError(NearCheckError, TypeError):
    """Raised when an array's dtype is not one of the supported element kinds."""


class NearMismatchError(NearCheckError, AssertionError):
    """Raised when at least one element pair differs by more than the bound.

    Attributes:
        report: The full ``NearReport`` of the failing check.
    """

    def __init__(self, report: NearReport):
        super().__init__(report.summary())
        self.report = report

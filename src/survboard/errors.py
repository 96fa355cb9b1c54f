# Copyright (c) Syntropy Systems
"""Error taxonomy for survboard."""
from __future__ import annotations

from collections.abc import Sequence

ACCEPTED_SUFFIXES: tuple[str, ...] = (".csv", ".xlsx", ".xls")


class SurvboardError(Exception):
    """Base class for survboard errors."""


class UnsupportedFormat(SurvboardError):
    """Raised when an upload has a suffix no reader handles."""

    def __init__(
        self,
        filename: str,
        accepted: Sequence[str] = ACCEPTED_SUFFIXES,
    ) -> None:
        self.filename = filename
        self.accepted = tuple(accepted)
        super().__init__(
            f"Unsupported file type: {filename!r}. "
            f"Please upload one of: {', '.join(self.accepted)}"
        )


class EmptyDataset(SurvboardError):
    """Raised when an operation needs at least one row and got none."""

    def __init__(self, message: str = "No patient rows loaded") -> None:
        super().__init__(message)


class BundleError(SurvboardError):
    """Raised when a model bundle cannot be read."""


class StalePrediction(SurvboardError):
    """Raised when a prediction run finishes after its dataset or bundle was replaced."""


class MissingRiskReference(UserWarning):
    """Risk bands requested without usable q33/q66 thresholds."""


class MalformedRow(UserWarning):
    """A delimited row whose field count disagrees with the header.

    Rows are repaired (padded or truncated) rather than rejected, so this is
    recorded on the dataset instead of raised.
    """

    def __init__(self, line_number: int, expected: int, found: int) -> None:
        self.line_number = line_number
        self.expected = expected
        self.found = found
        super().__init__(
            f"line {line_number}: expected {expected} fields, found {found}"
        )

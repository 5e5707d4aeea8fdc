"""Error taxonomy shared by the aggregation pipeline and its boundary."""

from __future__ import annotations


class AnalyticsError(Exception):
    """Base exception for booking analytics failures."""


class MalformedDateError(AnalyticsError, ValueError):
    """Raised when a booking date matches neither DDMMYYYY nor YYYY-MM-DD."""


class InvalidTimeRangeError(AnalyticsError, ValueError):
    """Raised when a report time range is not week, month, quarter or year."""


class ReportGenerationError(AnalyticsError):
    """Raised when the record store cannot deliver the data for a report."""


class UnresolvedReferenceWarning(UserWarning):
    """Category for hall/user references that resolved to placeholders.

    Reported through logging and resolution results; never raised.
    """

"""
Exceptions for DWLR telemetry processing and access.
"""

from typing import Optional


class DWLRError(Exception):
    """Base exception for DWLR-related errors."""

    pass


class MalformedRecordError(DWLRError):
    """A single raw telemetry record could not be parsed.

    Raised by the record adapters and absorbed by the normalizer, which skips
    the record and keeps going with the rest of the batch.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        index: Optional[int] = None,
    ):
        self.field = field
        self.index = index
        super().__init__(message)

    def __str__(self) -> str:
        message = super().__str__()
        if self.index is not None:
            return f"record {self.index}: {message}"
        return message


class DWLRConnectionError(DWLRError):
    """Error connecting to the telemetry API."""

    pass


class DWLRQueryError(DWLRError):
    """Error in a telemetry request or response parsing."""

    pass

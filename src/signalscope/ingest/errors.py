"""Failures raised while fetching and decoding sensor payloads.

All of them are recoverable: the ingestion controller turns them into a
failed refresh outcome and the last good dataset stays on screen.
"""

from __future__ import annotations

from typing import Optional


class IngestError(Exception):
    """Base class for refresh failures."""


class TransportError(IngestError):
    """Network failure or non-success HTTP status."""

    def __init__(self, message: str, *, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


class UnexpectedResponseFormat(IngestError):
    """The response body does not match any known payload shape."""


class NoDataForDate(IngestError):
    """Well-formed response without data for the requested date."""

    def __init__(self, message: str, *, date: Optional[str] = None):
        self.date = date
        super().__init__(message)


class MalformedPayload(IngestError):
    """A chunk inside an otherwise recognised payload cannot be decoded."""

    def __init__(self, message: str, *, chunk: int):
        self.chunk = chunk
        super().__init__(f"chunk {chunk}: {message}")

"""Fetching and decoding sensor payloads."""

from .client import SourceClient
from .controller import IngestionController, LivePoller, Mode, RefreshOutcome
from .errors import IngestError, MalformedPayload, NoDataForDate, TransportError, UnexpectedResponseFormat
from .payload import EnvelopeShape, LegacyNestedShape, classify_response, parse_chunks, parse_payload

__all__ = [
    "SourceClient",
    "IngestionController",
    "LivePoller",
    "Mode",
    "RefreshOutcome",
    "IngestError",
    "MalformedPayload",
    "NoDataForDate",
    "TransportError",
    "UnexpectedResponseFormat",
    "EnvelopeShape",
    "LegacyNestedShape",
    "classify_response",
    "parse_chunks",
    "parse_payload",
]

# src/signalscope/ingest/payload.py
"""Decoder for sensor payloads returned by the data source.

Two response shapes are understood and told apart once, at the boundary:

A) Envelope:
   {"status": "success", "data": [{"t": <ms-or-ISO>, "values": [...]}, ...]}

B) Legacy nested map:
   {<sourceId>: {<YYYY-MM-DD>: [<chunk>, ...]}}
   where each chunk is either an object or a JSON string holding one.

Every chunk carries an array of raw values.  Sample times are rebuilt from the
first chunk's ``t`` plus a fixed per-sample interval over the flattened index,
so per-chunk clock skew in the source never reorders samples.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar

from ..types import EMPTY, Dataset, Timestamp
from ..utils.timeparse import format_clock, parse_anchor
from .errors import MalformedPayload, NoDataForDate, UnexpectedResponseFormat

TIME_FORMATS = {"auto", "epoch", "clock"}


# Shape registry ------------------------------------------------------------

T = TypeVar("T", bound=Type["ResponseShape"])
_registry: Dict[str, Type["ResponseShape"]] = {}


def register(name: str) -> Callable[[T], T]:
    """Class decorator adding a response shape to the classifier."""

    def decorator(cls: T) -> T:
        for attr in ("matches", "select"):
            if not hasattr(cls, attr):
                raise TypeError(f"Response shape missing required attribute: {attr}")
        cls.name = name
        _registry[name] = cls
        return cls

    return decorator


def available_shapes() -> List[str]:
    return list(_registry)


class ResponseShape:
    """A decoded response body that knows where its chunks live."""

    name = "shape"
    default_time_format = "epoch"

    @classmethod
    def matches(cls, body: Any) -> bool:  # pragma: no cover - overridden
        raise NotImplementedError

    def select(self, *, date: Optional[str] = None, source_id: Optional[str] = None) -> List[Any]:  # pragma: no cover
        raise NotImplementedError


@register("envelope")
@dataclass(frozen=True)
class EnvelopeShape(ResponseShape):
    body: Mapping[str, Any]

    @classmethod
    def matches(cls, body: Any) -> bool:
        return isinstance(body, Mapping) and "status" in body

    def select(self, *, date: Optional[str] = None, source_id: Optional[str] = None) -> List[Any]:
        status = self.body.get("status")
        if status != "success":
            raise UnexpectedResponseFormat(f"Unexpected server response status: {status!r}")
        data = self.body.get("data")
        if data is None:
            raise NoDataForDate(f"No data for {date or 'latest'}", date=date)
        if not isinstance(data, list):
            raise UnexpectedResponseFormat("Envelope 'data' must be a list of chunks")
        return data


@register("legacy_nested")
@dataclass(frozen=True)
class LegacyNestedShape(ResponseShape):
    body: Mapping[str, Any]

    default_time_format = "clock"

    @classmethod
    def matches(cls, body: Any) -> bool:
        if not isinstance(body, Mapping) or not body:
            return False
        return all(isinstance(dates, Mapping) for dates in body.values())

    def select(self, *, date: Optional[str] = None, source_id: Optional[str] = None) -> List[Any]:
        if source_id is not None:
            if source_id not in self.body:
                raise NoDataForDate(f"No data for source {source_id!r}", date=date)
            dates = self.body[source_id]
        else:
            dates = next(iter(self.body.values()))

        if date is None:
            if not dates:
                raise NoDataForDate("No data available", date=None)
            date = max(dates)
        if date not in dates:
            raise NoDataForDate(f"No data for {date}", date=date)

        chunks = dates[date]
        if isinstance(chunks, Mapping):
            # Push-key maps sort in insertion order.
            return [chunks[key] for key in sorted(chunks)]
        if not isinstance(chunks, list):
            raise UnexpectedResponseFormat(f"Chunks for {date} must be a list")
        return chunks


def classify_response(body: Any) -> ResponseShape:
    """Return the registered shape matching ``body``."""

    for cls in _registry.values():
        if cls.matches(body):
            return cls(body)
    raise UnexpectedResponseFormat(
        f"Unexpected server response format (expected one of: {', '.join(available_shapes())})"
    )


# Chunk decoding ------------------------------------------------------------


def _coerce_value(raw: Any, *, chunk: int) -> float:
    if raw is None:
        return 0.0
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise MalformedPayload(f"non-numeric value {raw!r}", chunk=chunk)
    value = float(raw)
    if math.isnan(value):
        return 0.0
    if math.isinf(value):
        raise MalformedPayload(f"non-finite value {raw!r}", chunk=chunk)
    return value


def decode_chunk(raw: Any, *, chunk: int) -> Tuple[Any, List[float]]:
    """Return ``(t, values)`` for one chunk."""

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MalformedPayload(f"undecodable chunk string: {exc}", chunk=chunk) from exc
    if not isinstance(raw, Mapping):
        raise MalformedPayload(f"chunk must be an object, got {type(raw).__name__}", chunk=chunk)
    values = raw.get("values")
    if not isinstance(values, (list, tuple)):
        raise MalformedPayload("missing 'values' array", chunk=chunk)
    return raw.get("t"), [_coerce_value(v, chunk=chunk) for v in values]


def parse_chunks(
    chunks: Sequence[Any],
    *,
    interval_ms: float = 2.0,
    time_format: str = "epoch",
    tz_offset_hours: float = 0.0,
) -> Dataset:
    """Flatten ``chunks`` into a :class:`Dataset`.

    The first chunk's ``t`` anchors the whole payload; the sample at
    flattened index ``i`` is stamped ``t0 + i * interval_ms``.  With
    ``time_format="clock"`` the stamp is rendered as ``HH:MM:SS.mmm`` in the
    ``tz_offset_hours`` zone.
    """

    if time_format not in {"epoch", "clock"}:
        raise ValueError(f"time_format must be 'epoch' or 'clock', got {time_format!r}")

    decoded = [decode_chunk(raw, chunk=i) for i, raw in enumerate(chunks)]
    values = [v for _, chunk_values in decoded for v in chunk_values]
    if not values:
        return EMPTY

    try:
        t0 = parse_anchor(decoded[0][0])
    except ValueError as exc:
        raise MalformedPayload(str(exc), chunk=0) from exc

    step: float = int(interval_ms) if float(interval_ms).is_integer() else interval_ms
    times: List[Timestamp]
    if time_format == "epoch":
        times = [t0 + i * step for i in range(len(values))]
    else:
        times = [format_clock(t0 + i * step, tz_offset_hours) for i in range(len(values))]
    return Dataset(times, values)


def parse_payload(
    body: Any,
    *,
    date: Optional[str] = None,
    source_id: Optional[str] = None,
    interval_ms: float = 2.0,
    time_format: str = "auto",
    tz_offset_hours: float = 7.0,
) -> Dataset:
    """Decode a response ``body`` into a :class:`Dataset`.

    ``time_format="auto"`` uses epoch milliseconds for the envelope shape and
    wall-clock labels for the legacy nested shape.
    """

    if time_format not in TIME_FORMATS:
        raise ValueError(f"time_format must be one of {sorted(TIME_FORMATS)}")
    shape = classify_response(body)
    chunks = shape.select(date=date, source_id=source_id)
    fmt = shape.default_time_format if time_format == "auto" else time_format
    return parse_chunks(chunks, interval_ms=interval_ms, time_format=fmt, tz_offset_hours=tz_offset_hours)

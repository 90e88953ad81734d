"""Fetch policy for live and replay modes, and the live polling timer."""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Callable, List, Optional

import requests

from ..config import Settings
from ..types import Dataset
from ..utils.timeparse import today_utc
from .client import SourceClient
from .errors import IngestError
from .payload import parse_payload

logger = logging.getLogger(__name__)

Fetcher = Callable[[Optional[str]], Any]


class Mode(str, Enum):
    LIVE = "live"
    REPLAY = "replay"


@dataclass(frozen=True)
class RefreshOutcome:
    """Result of one refresh request.

    Exactly one of ``dataset`` and ``error`` is set.  ``stale`` marks a
    response that arrived after a newer request was issued and was therefore
    not published.
    """

    seq: int
    mode: Mode
    date: Optional[str]
    dataset: Optional[Dataset] = None
    error: Optional[IngestError] = None
    stale: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.stale

    @property
    def message(self) -> str:
        return str(self.error) if self.error is not None else ""


class IngestionController:
    """Turn refresh requests into published datasets.

    ``fetch`` is called with the date to request (``None`` for the source's
    most recent data) and must return the decoded JSON body or raise an
    :class:`~signalscope.ingest.errors.IngestError`.

    Every request is tagged with a sequence number.  With
    ``discard_stale=False`` (the default) the last response to arrive wins,
    whatever order the requests were issued in.
    """

    def __init__(
        self,
        fetch: Fetcher,
        *,
        settings: Optional[Settings] = None,
        discard_stale: Optional[bool] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings if settings is not None else Settings()
        self._fetch = fetch
        self.discard_stale = self.settings.live.discard_stale if discard_stale is None else discard_stale
        self._now = now
        self._seq = itertools.count(1)
        self._latest = 0
        self._lock = threading.Lock()
        self._dataset: Optional[Dataset] = None
        self._error = ""
        self._subscribers: List[Callable[[RefreshOutcome], None]] = []

    @classmethod
    def from_settings(cls, settings: Settings, session: Optional[requests.Session] = None, **kwargs) -> "IngestionController":
        client = SourceClient(settings.source, session=session)
        return cls(client.fetch, settings=settings, **kwargs)

    @property
    def dataset(self) -> Optional[Dataset]:
        """Most recently published dataset, ``None`` before the first success."""
        return self._dataset

    @property
    def error(self) -> str:
        return self._error

    @property
    def latest_seq(self) -> int:
        return self._latest

    def subscribe(self, callback: Callable[[RefreshOutcome], None]) -> Callable[[], None]:
        """Call ``callback`` with every published outcome; returns an unsubscriber."""

        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def request_date(self, mode: Mode, date: Optional[str] = None) -> Optional[str]:
        if mode is Mode.LIVE:
            return today_utc(self._now) if self.settings.live.send_date else None
        return date

    def refresh(self, mode: Mode | str, date: Optional[str] = None) -> Optional[RefreshOutcome]:
        """Fetch once for ``mode``.

        Replay without a chosen ``date`` is a no-op and returns ``None``.
        Failures never raise; they come back on the outcome and are kept in
        :attr:`error` while the previous dataset stays published.
        """

        mode = Mode(mode)
        if mode is Mode.REPLAY and not date:
            logger.debug("replay refresh skipped: no date selected")
            return None

        request_date = self.request_date(mode, date)
        with self._lock:
            seq = next(self._seq)
            self._latest = seq

        sampling = self.settings.sampling
        try:
            body = self._fetch(request_date)
            dataset = parse_payload(
                body,
                date=request_date,
                source_id=self.settings.source.source_id,
                interval_ms=sampling.interval_ms,
                time_format=sampling.time_format,
                tz_offset_hours=sampling.tz_offset_hours,
            )
        except IngestError as exc:
            logger.warning("refresh #%d (%s, %s) failed: %s", seq, mode.value, request_date, exc)
            outcome = RefreshOutcome(seq, mode, request_date, error=exc)
        else:
            logger.info("refresh #%d (%s, %s): %d samples", seq, mode.value, request_date, len(dataset))
            outcome = RefreshOutcome(seq, mode, request_date, dataset=dataset)

        with self._lock:
            if self.discard_stale and seq != self._latest:
                logger.info("discarding stale response #%d (latest is #%d)", seq, self._latest)
                return replace(outcome, stale=True)
            if outcome.error is None:
                self._dataset = outcome.dataset
                self._error = ""
            else:
                self._error = outcome.message
            subscribers = list(self._subscribers)

        for callback in subscribers:
            callback(outcome)
        return outcome


class LivePoller:
    """Cancellable repeating timer driving live refreshes.

    :meth:`start` runs ``tick`` immediately and then every ``interval``
    seconds on a daemon thread until :meth:`stop`.  Only one timer runs per
    poller; once :meth:`stop` returns no further tick fires.
    """

    def __init__(self, tick: Callable[[], Any], interval: float, *, name: str = "signalscope-live"):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._tick = tick
        self.interval = interval
        self.name = name
        self.ticks = 0
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            raise RuntimeError("live poller is already running")
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, args=(self._stop_event,), name=self.name, daemon=True)
        self._thread.start()
        logger.debug("live poller started (every %.1fs)", self.interval)

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                self._tick()
            except Exception:
                logger.exception("live tick failed")
            self.ticks += 1
            if stop_event.wait(self.interval):
                break

    def stop(self, timeout: Optional[float] = None) -> None:
        """Cancel the timer and wait for an in-flight tick to finish."""

        thread = self._thread
        self._stop_event.set()
        if thread is None:
            return
        if thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        logger.debug("live poller stopped after %d ticks", self.ticks)

    def __enter__(self) -> "LivePoller":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

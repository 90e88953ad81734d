"""Outer controller tying ingestion, smoothing and navigation together.

:class:`ScopeSession` holds the explicit state a viewer needs (raw and
smoothed datasets, filter tuning, the visible window, both pointers, the mode
and the selected date) and exposes one method per operator command.  Each
command replaces snapshots under a lock, so a live poll landing in the middle
of a pan never sees a half-updated dataset.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from .config import Settings
from .core.kalman import smooth
from .core.pointers import PointerTracker
from .core.window import WindowNavigator
from .export.csv_export import ExportUnavailable, export_filename, write_csv
from .ingest.controller import IngestionController, LivePoller, Mode, RefreshOutcome
from .types import EMPTY, Dataset, FilterParams, Measurement, Timestamp, Window
from .utils.timeparse import check_date

logger = logging.getLogger(__name__)


class ScopeSession:
    def __init__(
        self,
        controller: IngestionController,
        *,
        settings: Optional[Settings] = None,
        mode: Mode | str = Mode.REPLAY,
    ):
        self.settings = settings if settings is not None else controller.settings
        self.controller = controller
        self._lock = threading.RLock()
        self._poller: Optional[LivePoller] = None

        self.mode = Mode.REPLAY
        self.selected_date: Optional[str] = None
        self.raw: Dataset = EMPTY
        self.smoothed: Dataset = EMPTY
        self.params: FilterParams = self.settings.filter.to_params()
        self.navigator = WindowNavigator.create(self.settings.window.size, 0)
        self.pointers = PointerTracker.create(self.settings.pointers.p1, self.settings.pointers.p2, 0)
        self.error = ""

        if Mode(mode) is Mode.LIVE:
            self.set_mode(Mode.LIVE)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def __enter__(self) -> "ScopeSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Release the live timer; safe to call more than once."""

        self._stop_poller()

    @property
    def live(self) -> bool:
        return self._poller is not None and self._poller.running

    def _stop_poller(self) -> None:
        with self._lock:
            poller, self._poller = self._poller, None
        # Joined outside the lock: an in-flight tick may be waiting on it.
        if poller is not None:
            poller.stop()

    def set_mode(self, mode: Mode | str) -> None:
        """Switch between live polling and replay.

        Entering live mode starts the timer, which refreshes immediately.
        Leaving it cancels the timer before returning.
        """

        mode = Mode(mode)
        with self._lock:
            previous, self.mode = self.mode, mode
        if mode is previous and (mode is Mode.REPLAY or self.live):
            return
        self._stop_poller()
        if mode is Mode.LIVE:
            poller = LivePoller(self.refresh, self.settings.live.poll_interval)
            with self._lock:
                self._poller = poller
            poller.start()
        elif self.selected_date:
            self.refresh()

    def select_date(self, date: str) -> Optional[RefreshOutcome]:
        """Choose the replay date; in replay mode this fetches it."""

        check_date(date)
        with self._lock:
            self.selected_date = date
            mode = self.mode
        if mode is Mode.REPLAY:
            return self.refresh()
        return None

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    @property
    def dataset_len(self) -> int:
        return len(self.smoothed)

    def refresh(self) -> Optional[RefreshOutcome]:
        with self._lock:
            mode, date = self.mode, self.selected_date
        outcome = self.controller.refresh(mode, date)
        if outcome is not None:
            self.apply(outcome)
        return outcome

    def apply(self, outcome: RefreshOutcome) -> bool:
        """Apply a refresh outcome; returns True when the dataset changed."""

        with self._lock:
            if outcome.stale:
                return False
            if outcome.mode is not self.mode:
                logger.info("ignoring %s response #%d after switching to %s", outcome.mode.value, outcome.seq, self.mode.value)
                return False
            if outcome.error is not None:
                self.error = outcome.message
                return False
            self._replace_dataset(outcome.dataset, follow_latest=outcome.mode is Mode.LIVE)
            return True

    def load(self, dataset: Dataset) -> None:
        """Show an already decoded dataset, e.g. one read from CSV."""

        with self._lock:
            self._replace_dataset(dataset, follow_latest=False)

    def _replace_dataset(self, raw: Dataset, *, follow_latest: bool) -> None:
        n = len(raw)
        if follow_latest:
            navigator = self.navigator.jump_to_end(n)
        else:
            navigator = self.navigator.on_dataset_length_changed(n)
        if self.raw:
            pointers = self.pointers.on_dataset_changed(n)
        else:
            cfg = self.settings.pointers
            pointers = PointerTracker.create(cfg.p1, cfg.p2, n).select_active(self.pointers.active)

        self.raw = raw
        self.smoothed = smooth(raw, self.params)
        self.navigator = navigator
        self.pointers = pointers
        self.error = ""

    def set_filter(self, params: FilterParams) -> None:
        with self._lock:
            self.params = params

    def apply_filter(self, params: Optional[FilterParams] = None, *, on_smoothed: bool = False) -> Dataset:
        """Re-run the smoother with ``params`` (or the current ones).

        ``on_smoothed=True`` filters the already smoothed series again
        instead of the raw one.
        """

        with self._lock:
            if params is not None:
                self.params = params
            source = self.smoothed if on_smoothed else self.raw
            self.smoothed = smooth(source, self.params)
            return self.smoothed

    def visible(self) -> Dataset:
        with self._lock:
            return self.smoothed.slice(self.navigator.window)

    # ------------------------------------------------------------------
    # Window commands
    # ------------------------------------------------------------------

    @property
    def window(self) -> Window:
        return self.navigator.window

    def set_window_size(self, size: int) -> Window:
        size = min(size, self.settings.window.max_size)
        with self._lock:
            self.navigator = self.navigator.set_window_size(size, self.dataset_len)
            return self.navigator.window

    def pan_by(self, delta: int) -> Window:
        with self._lock:
            self.navigator = self.navigator.pan_by(delta, self.dataset_len)
            return self.navigator.window

    def next_page(self) -> Window:
        with self._lock:
            self.navigator = self.navigator.next_page(self.dataset_len)
            return self.navigator.window

    def prev_page(self) -> Window:
        with self._lock:
            self.navigator = self.navigator.prev_page(self.dataset_len)
            return self.navigator.window

    def scroll(self, direction: int) -> Window:
        cfg = self.settings.window
        with self._lock:
            self.navigator = self.navigator.scroll(
                direction, self.dataset_len, min_step=cfg.scroll_min_step, divisor=cfg.scroll_divisor
            )
            return self.navigator.window

    def jump_to_start(self) -> Window:
        with self._lock:
            self.navigator = self.navigator.jump_to_start(self.dataset_len)
            return self.navigator.window

    def jump_to_end(self) -> Window:
        with self._lock:
            self.navigator = self.navigator.jump_to_end(self.dataset_len)
            return self.navigator.window

    def scrub(self, start: int) -> Window:
        with self._lock:
            self.navigator = self.navigator.set_start(start, self.dataset_len)
            return self.navigator.window

    # ------------------------------------------------------------------
    # Pointer commands
    # ------------------------------------------------------------------

    def select_pointer(self, which: int) -> None:
        with self._lock:
            self.pointers = self.pointers.select_active(which)

    def click(self, index: int) -> PointerTracker:
        with self._lock:
            self.pointers = self.pointers.move_active_to(index, self.dataset_len)
            return self.pointers

    def click_time(self, time: Timestamp) -> Optional[PointerTracker]:
        """Move the active pointer to the sample stamped ``time``, if any."""

        with self._lock:
            index = self.smoothed.index_of_time(time)
            if index < 0:
                return None
            return self.click(index)

    def reset_pointers(self) -> PointerTracker:
        with self._lock:
            self.pointers = self.pointers.reset_around_window(
                self.navigator.window, self.settings.pointers.reset_offset
            )
            return self.pointers

    def measure(self) -> Measurement:
        return self.pointers.measure(self.settings.sampling.interval_ms)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_csv(self, directory: str | Path | None = None) -> Path:
        """Write the raw dataset to ``data_<date>.csv`` (replay mode only)."""

        with self._lock:
            if self.mode is not Mode.REPLAY or not self.selected_date:
                raise ExportUnavailable("export needs replay mode with a selected date")
            if not self.raw:
                raise ExportUnavailable("nothing to export: dataset is empty")
            raw, date = self.raw, self.selected_date
        target = Path(directory if directory is not None else self.settings.export.directory)
        path = write_csv(raw, target / export_filename(date))
        logger.info("exported %d samples to %s", len(raw), path)
        return path

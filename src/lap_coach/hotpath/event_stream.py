"""Background sample polling for a live coaching session.

A sim adapter exposes ``read_sample()``; :class:`TelemetryEventStream` calls
it on a daemon thread at a fixed rate and keeps only the newest
``queue_maxsize`` samples for the session to pull.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass

from lap_coach.telemetry.models import TelemetrySample

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TelemetryEvent:
    sample: TelemetrySample
    timestamp: float
    """``time.monotonic()`` at the moment the sample was read."""


@dataclass
class StreamStats:
    """Counters since the stream was created."""

    read: int = 0
    """Samples returned by the source."""

    dropped: int = 0
    """Samples evicted unread because the buffer was full."""

    errors: int = 0
    """``read_sample()`` calls that raised."""


class TelemetryEventStream:
    """Polls ``source.read_sample()`` at *target_hz* into a bounded buffer.

    When the buffer is full the oldest sample is evicted, so a slow consumer
    always works on the freshest telemetry.  A source that raises is logged
    and polled again on the next tick; a source that returns ``None`` (no
    new data) is skipped.
    """

    def __init__(self, source, target_hz: float = 60.0, queue_maxsize: int = 120) -> None:
        if target_hz <= 0:
            raise ValueError(f"target_hz must be > 0, got {target_hz}")
        if queue_maxsize < 1:
            raise ValueError(f"queue_maxsize must be >= 1, got {queue_maxsize}")
        self._source = source
        self._period = 1.0 / target_hz
        self._buffer: deque[TelemetryEvent] = deque(maxlen=queue_maxsize)
        self._ready = threading.Condition()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.stats = StreamStats()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._poll, daemon=True, name="SamplePoller")
        self._thread.start()
        _logger.info("Sample polling started at %.0f Hz", 1.0 / self._period)

    def stop(self) -> None:
        self._stop_event.set()
        with self._ready:
            self._ready.notify_all()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
        _logger.info(
            "Sample polling stopped: %d read, %d dropped, %d errors",
            self.stats.read,
            self.stats.dropped,
            self.stats.errors,
        )

    def get_event(self, timeout: float = 0.1) -> TelemetryEvent | None:
        """Pop the oldest buffered event, waiting up to *timeout* s for one."""
        with self._ready:
            if not self._buffer:
                self._ready.wait_for(lambda: bool(self._buffer), timeout=timeout)
            return self._buffer.popleft() if self._buffer else None

    def queue_size(self) -> int:
        with self._ready:
            return len(self._buffer)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _poll(self) -> None:
        deadline = time.monotonic()
        while not self._stop_event.is_set():
            now = time.monotonic()
            try:
                sample = self._source.read_sample()
            except Exception:
                self.stats.errors += 1
                _logger.warning("Sample source read failed", exc_info=True)
            else:
                if sample is not None:
                    self._push(TelemetryEvent(sample, now))

            deadline += self._period
            if deadline < now:
                # fell behind; resync instead of bursting
                deadline = now
            self._stop_event.wait(max(0.0, deadline - time.monotonic()))

    def _push(self, event: TelemetryEvent) -> None:
        with self._ready:
            if len(self._buffer) == self._buffer.maxlen:
                self.stats.dropped += 1
            self._buffer.append(event)
            self.stats.read += 1
            self._ready.notify()

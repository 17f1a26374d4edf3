"""EventBus: topic-based callbacks between the engines and their consumers."""

from __future__ import annotations

import contextlib
import logging
import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

_logger = logging.getLogger(__name__)

COMPARISON_PRODUCED = "comparison_produced"
METRICS_UPDATED = "metrics_updated"
CORNER_COMPLETED = "corner_completed"
COACHING_FEEDBACK = "coaching_feedback"
LAP_COMPLETED = "lap_completed"

Callback = Callable[[Any], None]


class EventBus:
    """Synchronous publish/subscribe registry.

    Callbacks run on the publishing thread in subscription order.  A callback
    that raises is logged and skipped; the publisher never sees the error.
    Consumers that do slow work should subscribe a :class:`QueueSubscriber`.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Callback]] = {}
        self._lock = threading.Lock()

    def subscribe(self, topic: str, callback: Callback) -> Callable[[], None]:
        """Register *callback* for *topic*; return a function that unsubscribes it."""
        with self._lock:
            self._subscribers.setdefault(topic, []).append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(topic, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return _unsubscribe

    def has_subscribers(self, topic: str) -> bool:
        with self._lock:
            return bool(self._subscribers.get(topic))

    def publish(self, topic: str, payload: Any) -> int:
        """Deliver *payload* to every subscriber of *topic*.

        Returns:
            The number of callbacks that completed without raising.
        """
        with self._lock:
            callbacks = list(self._subscribers.get(topic, ()))

        delivered = 0
        for callback in callbacks:
            try:
                callback(payload)
            except Exception:
                _logger.warning("Subscriber %r failed on topic %s", callback, topic, exc_info=True)
            else:
                delivered += 1
        return delivered


@dataclass
class BusMessage:
    """A payload captured by :class:`QueueSubscriber`."""

    topic: str
    payload: Any


class QueueSubscriber:
    """Bounded hand-off from the publishing thread to a consumer thread.

    When the queue is full the *oldest* message is discarded so that the
    consumer always sees the most recent events and the publisher never blocks.
    """

    def __init__(self, maxsize: int = 256) -> None:
        self._queue: queue.Queue[BusMessage] = queue.Queue(maxsize=maxsize)

    def attach(self, bus: EventBus, *topics: str) -> list[Callable[[], None]]:
        """Subscribe to each of *topics*; return the unsubscribe handles."""
        return [bus.subscribe(topic, self._handler(topic)) for topic in topics]

    def get(self, timeout: float = 0.1) -> BusMessage | None:
        """Return the next message, or None if none arrives within *timeout* s."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def qsize(self) -> int:
        return self._queue.qsize()

    def _handler(self, topic: str) -> Callback:
        def _put(payload: Any) -> None:
            self._enqueue(BusMessage(topic=topic, payload=payload))

        return _put

    def _enqueue(self, message: BusMessage) -> None:
        try:
            self._queue.put_nowait(message)
        except queue.Full:
            with contextlib.suppress(queue.Empty):
                self._queue.get_nowait()
            with contextlib.suppress(queue.Full):
                self._queue.put_nowait(message)

"""Cancel-and-reschedule timer used to coalesce map events."""

import asyncio
import time
from collections.abc import Callable
from typing import Generic, TypeVar

from src.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class Debouncer(Generic[T]):
    """Run ``callback`` once per burst of triggers, with the latest payload.

    Triggers within ``delay_ms`` of each other are merged with ``merge``,
    called as ``merge(older, newer)`` by event timestamp (default: the newer
    payload wins). Every trigger carries an event timestamp; a payload older
    than the last one applied is dropped, so a superseded pass can never land
    after a newer one.

    With ``delay_ms == 0`` or no running event loop the callback runs inline.
    """

    def __init__(
        self,
        callback: Callable[[T], None],
        delay_ms: int,
        merge: Callable[[T, T], T] | None = None,
        clock: Callable[[], float] = time.monotonic,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self._callback = callback
        self._delay = max(0, delay_ms) / 1000.0
        self._merge = merge or (lambda _old, new: new)
        self._clock = clock
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None
        self._pending: tuple[T, float] | None = None
        self._last_applied = float("-inf")

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    @property
    def last_applied(self) -> float:
        return self._last_applied

    def _get_loop(self) -> asyncio.AbstractEventLoop | None:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def trigger(self, payload: T, timestamp: float | None = None) -> None:
        timestamp = self._clock() if timestamp is None else timestamp
        if timestamp < self._last_applied:
            logger.debug(
                "Dropping stale map event",
                event_time=timestamp,
                last_applied=self._last_applied,
            )
            return

        if self._pending is not None:
            pending_payload, pending_ts = self._pending
            if timestamp < pending_ts:
                # Arrived late but happened earlier: the pending payload is newer
                payload = self._merge(payload, pending_payload)
            else:
                payload = self._merge(pending_payload, payload)
            timestamp = max(timestamp, pending_ts)
        self._pending = (payload, timestamp)

        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

        loop = self._get_loop()
        if self._delay == 0 or loop is None:
            self.flush()
            return
        self._handle = loop.call_later(self._delay, self.flush)

    def flush(self) -> bool:
        """Run the pending callback now. Returns False when nothing ran."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._pending is None:
            return False

        payload, timestamp = self._pending
        self._pending = None
        if timestamp < self._last_applied:
            return False

        self._last_applied = timestamp
        self._callback(payload)
        return True

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending = None

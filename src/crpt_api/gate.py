"""Client-side admission gate with a leaky drip refill.

The gate starts full: ``capacity`` callers pass immediately. After that a
background thread returns one permit every ``interval`` (window / capacity),
so admitted load is spread evenly across the window instead of arriving in a
burst at each window boundary. Permits taken by callers are never handed back
by them; only the refill thread replenishes the pool.

Blocked callers are served strictly in arrival order. A caller that arrives
while others are queued waits behind them even if a permit is momentarily
available.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from types import TracebackType

from crpt_api.cancellation import CancelToken
from crpt_api.errors import GateClosed, Interrupted
from crpt_api.logging_config import get_logger
from crpt_api.time_window import TimeUnit, refill_interval_ns, validate_limit

_NANOS_PER_SECOND = 1_000_000_000
_JOIN_TIMEOUT_S = 1.0


class AdmissionGate:
    """Fixed-capacity permit pool refilled one unit per interval."""

    def __init__(
        self,
        time_unit: TimeUnit | str,
        request_limit: int,
        *,
        name: str = "crpt-api-rate-limiter",
    ) -> None:
        self._capacity = validate_limit(request_limit)
        self._time_unit = TimeUnit.parse(time_unit)
        self._interval_ns = refill_interval_ns(self._time_unit, self._capacity)
        lock = threading.Lock()
        self._cond = threading.Condition(lock)
        # signalled when a full pool loses a permit; the refill timer parks on it
        self._drained = threading.Condition(lock)
        self._available = self._capacity
        self._waiters: deque[object] = deque()
        self._shutdown = False
        self._stop = threading.Event()
        self._logger = get_logger("crpt_api.gate")
        self._timer = threading.Thread(target=self._run_timer, name=name, daemon=True)
        self._timer.start()
        self._logger.debug(
            "gate started",
            capacity=self._capacity,
            time_unit=self._time_unit.name.lower(),
            interval_ns=self._interval_ns,
        )

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def time_unit(self) -> TimeUnit:
        return self._time_unit

    @property
    def interval_ns(self) -> int:
        return self._interval_ns

    @property
    def interval(self) -> float:
        """Refill interval in seconds."""
        return self._interval_ns / _NANOS_PER_SECOND

    @property
    def available(self) -> int:
        with self._cond:
            return self._available

    @property
    def waiting(self) -> int:
        with self._cond:
            return len(self._waiters)

    @property
    def is_shutdown(self) -> bool:
        with self._cond:
            return self._shutdown

    def acquire(self, cancel: CancelToken | None = None) -> None:
        """Block until a permit is granted.

        Raises ``GateClosed`` if the gate is (or becomes) shut down and
        ``Interrupted`` if ``cancel`` fires first. Neither outcome consumes a
        permit.
        """
        if cancel is not None:
            cancel.add_callback(self._wake_waiters)
        try:
            with self._cond:
                self._check_open(cancel)
                if not self._waiters and self._available > 0:
                    self._take()
                    return
                self._wait_in_line(cancel)
        finally:
            if cancel is not None:
                cancel.remove_callback(self._wake_waiters)

    def _wait_in_line(self, cancel: CancelToken | None) -> None:
        # caller holds self._cond
        ticket = object()
        self._waiters.append(ticket)
        try:
            while True:
                self._check_open(cancel)
                if self._waiters[0] is ticket and self._available > 0:
                    self._waiters.popleft()
                    self._take()
                    if self._waiters and self._available > 0:
                        self._cond.notify_all()
                    return
                self._cond.wait()
        except BaseException:
            self._waiters.remove(ticket)
            self._cond.notify_all()
            raise

    def _take(self) -> None:
        # caller holds self._cond
        if self._available == self._capacity:
            self._drained.notify()
        self._available -= 1

    def _check_open(self, cancel: CancelToken | None) -> None:
        if self._shutdown:
            raise GateClosed()
        if cancel is not None and cancel.cancelled:
            raise Interrupted()

    def _wake_waiters(self) -> None:
        with self._cond:
            self._cond.notify_all()

    def replenish(self, count: int = 1) -> int:
        """Return up to ``count`` permits to the pool in one step.

        Never fills past capacity and does nothing after shutdown. Returns the
        number of permits actually added.
        """
        with self._cond:
            if self._shutdown:
                return 0
            added = min(count, self._capacity - self._available)
            if added <= 0:
                return 0
            self._available += added
            self._cond.notify_all()
            return added

    def _tick(self, due: int) -> None:
        try:
            self.replenish(due)
        except Exception:
            self._logger.exception("replenish tick failed")

    def _run_timer(self) -> None:
        interval = self._interval_ns
        deadline = time.monotonic_ns() + interval
        while not self._stop.is_set():
            delay = deadline - time.monotonic_ns()
            if delay > 0 and self._stop.wait(delay / _NANOS_PER_SECOND):
                return
            # fixed-rate: every tick that came due adds one permit, capped by capacity
            due = (time.monotonic_ns() - deadline) // interval + 1
            self._tick(due)
            deadline += due * interval
            if self._park_while_full():
                deadline = time.monotonic_ns() + interval

    def _park_while_full(self) -> bool:
        """Sleep until a permit is taken from a full pool; True if it slept."""
        with self._cond:
            if self._shutdown or self._available < self._capacity:
                return False
            self._drained.wait_for(
                lambda: self._shutdown or self._available < self._capacity
            )
            return True

    def shutdown(self) -> None:
        """Stop refilling and release every blocked caller with ``GateClosed``."""
        with self._cond:
            if self._shutdown:
                return
            self._shutdown = True
            self._cond.notify_all()
            self._drained.notify_all()
        self._stop.set()
        if threading.current_thread() is not self._timer:
            self._timer.join(_JOIN_TIMEOUT_S)
        self._logger.debug("gate stopped", capacity=self._capacity)

    def __enter__(self) -> AdmissionGate:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.shutdown()

    def __repr__(self) -> str:
        return (
            f"AdmissionGate(capacity={self._capacity}, interval_ns={self._interval_ns}, "
            f"shutdown={self._shutdown})"
        )

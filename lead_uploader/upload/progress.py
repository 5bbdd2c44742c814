"""Synthetic progress feedback for uploads that report no progress of their own."""
from __future__ import annotations

import heapq
import itertools
import logging
import random
import threading
from enum import Enum
from typing import Callable, List, Optional, Protocol, Tuple

LOGGER = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None:  # pragma: no cover - runtime protocol
        """Stop the callback from running if it has not run yet."""


class Scheduler(Protocol):
    """Something that can run a callback after a delay on the caller's event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:  # pragma: no cover - runtime protocol
        """Schedule ``callback`` to run once after ``delay`` seconds."""


class ThreadingScheduler:
    """Runs callbacks on daemon :class:`threading.Timer` threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class _ManualHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler driven by :meth:`advance`, for tests and replays."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: List[Tuple[float, int, _ManualHandle, Callable[[], None]]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = _ManualHandle()
        heapq.heappush(self._queue, (self.now + delay, next(self._counter), handle, callback))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            self.now = due
            if not handle.cancelled:
                callback()
        self.now = target


class ProgressPhase(str, Enum):
    IDLE = "idle"
    RISING = "rising"
    FINALIZING = "finalizing"


class ProgressSource(Protocol):
    """Progress reported to the user while a commit is in flight."""

    @property
    def value(self) -> float:  # pragma: no cover - runtime protocol
        ...

    @property
    def phase(self) -> ProgressPhase:  # pragma: no cover - runtime protocol
        ...

    def start(self) -> None:  # pragma: no cover - runtime protocol
        ...

    def finish(self) -> None:  # pragma: no cover - runtime protocol
        ...

    def reset(self) -> None:  # pragma: no cover - runtime protocol
        ...

    def subscribe(self, callback: Callable[[float, ProgressPhase], None]) -> None:  # pragma: no cover - runtime protocol
        ...


class SyntheticProgress:
    """Time-based estimate: rise in random steps below a ceiling, then jump to 100 and reset.

    Idle (0) -> start() -> Rising (+min_step..max_step every tick, capped at
    ``ceiling``) -> finish() -> Finalizing (100 for ``hold_seconds``) -> Idle.
    """

    def __init__(
        self,
        scheduler: Optional[Scheduler] = None,
        *,
        tick_seconds: float = 0.5,
        min_step: float = 3.0,
        max_step: float = 6.0,
        ceiling: float = 92.0,
        hold_seconds: float = 0.8,
        floor: float = 5.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        if min_step > max_step:
            raise ValueError("min_step must not exceed max_step")
        if not 0 < ceiling < 100:
            raise ValueError("ceiling must be between 0 and 100")
        self._scheduler = scheduler or ThreadingScheduler()
        self._tick_seconds = tick_seconds
        self._min_step = min_step
        self._max_step = max_step
        self._ceiling = ceiling
        self._hold_seconds = hold_seconds
        self._floor = min(floor, ceiling)
        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        self._value = 0.0
        self._phase = ProgressPhase.IDLE
        self._tick_handle: Optional[TimerHandle] = None
        self._hold_handle: Optional[TimerHandle] = None
        self._listeners: List[Callable[[float, ProgressPhase], None]] = []

    @property
    def value(self) -> float:
        return self._value

    @property
    def phase(self) -> ProgressPhase:
        return self._phase

    @property
    def percent(self) -> int:
        return int(round(self._value))

    def subscribe(self, callback: Callable[[float, ProgressPhase], None]) -> None:
        self._listeners.append(callback)

    def start(self) -> None:
        with self._lock:
            self._cancel_hold()
            self._cancel_tick()
            self._phase = ProgressPhase.RISING
            self._value = max(self._value if self._value < 100 else 0.0, self._floor)
            self._schedule_tick()
        self._notify()

    def finish(self) -> None:
        with self._lock:
            self._cancel_tick()
            if self._phase is ProgressPhase.IDLE and self._value == 0:
                return
            self._phase = ProgressPhase.FINALIZING
            self._value = 100.0
            self._cancel_hold()
            self._hold_handle = self._scheduler.call_later(self._hold_seconds, self._on_hold_elapsed)
        self._notify()

    def reset(self) -> None:
        with self._lock:
            self._cancel_tick()
            self._cancel_hold()
            changed = self._phase is not ProgressPhase.IDLE or self._value != 0
            self._phase = ProgressPhase.IDLE
            self._value = 0.0
        if changed:
            self._notify()

    close = reset

    # ------------------------------------------------------------------
    def _schedule_tick(self) -> None:
        self._tick_handle = self._scheduler.call_later(self._tick_seconds, self._on_tick)

    def _on_tick(self) -> None:
        with self._lock:
            if self._phase is not ProgressPhase.RISING:
                return
            if self._value < self._ceiling:
                step = self._rng.uniform(self._min_step, self._max_step)
                self._value = min(self._value + step, self._ceiling)
            self._schedule_tick()
        self._notify()

    def _on_hold_elapsed(self) -> None:
        with self._lock:
            if self._phase is not ProgressPhase.FINALIZING:
                return
            self._hold_handle = None
            self._phase = ProgressPhase.IDLE
            self._value = 0.0
        self._notify()

    def _cancel_tick(self) -> None:
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None

    def _cancel_hold(self) -> None:
        if self._hold_handle is not None:
            self._hold_handle.cancel()
            self._hold_handle = None

    def _notify(self) -> None:
        value, phase = self._value, self._phase
        for callback in list(self._listeners):
            try:
                callback(value, phase)
            except Exception:  # pragma: no cover - listener errors are logged
                LOGGER.exception("Progress listener failed")


__all__ = [
    "ManualScheduler",
    "ProgressPhase",
    "ProgressSource",
    "Scheduler",
    "SyntheticProgress",
    "ThreadingScheduler",
    "TimerHandle",
]

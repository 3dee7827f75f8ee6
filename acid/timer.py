"""Millisecond timers ordered by deadline."""

from __future__ import annotations

import bisect
import itertools
import threading
import time
from typing import Any, Callable, Iterator

_sequence: Iterator[int] = itertools.count()


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


def _order(timer: "Timer") -> tuple[int, int]:
    return timer._deadline, timer._seq


class Timer:
    """A one-shot or recurring timer owned by a :class:`TimerManager`."""

    def __init__(self, ms: int, callback: Callable[[], Any] | None, recurring: bool,
                 manager: "TimerManager") -> None:
        self._ms = ms
        self._callback = callback
        self._recurring = recurring
        self._manager = manager
        self._seq = next(_sequence)
        self._deadline = manager._now() + ms

    @property
    def ms(self) -> int:
        return self._ms

    @property
    def deadline(self) -> int:
        return self._deadline

    @property
    def recurring(self) -> bool:
        return self._recurring

    @property
    def callback(self) -> Callable[[], Any] | None:
        return self._callback

    def cancel(self) -> bool:
        """Remove the timer from its manager."""
        manager = self._manager
        with manager._lock:
            if self._callback is None:
                return False
            manager._discard(self)
            return True

    def refresh(self) -> bool:
        """Restart the interval from now; return whether the timer was pending."""
        manager = self._manager
        with manager._lock:
            if self._callback is None or not manager._discard(self):
                return False
            self._deadline = manager._now() + self._ms
            bisect.insort(manager._timers, self, key=_order)
        return True

    def reset(self, ms: int, from_now: bool = False) -> bool:
        """Change the interval and (re)arm the timer.

        With ``from_now`` the interval starts now; otherwise it keeps the
        original start time.
        """
        if ms == self._ms and not from_now:
            return True
        manager = self._manager
        with manager._lock:
            if self._callback is None:
                return False
            manager._discard(self)
            start = manager._now() if from_now else self._deadline - self._ms
            self._ms = ms
            self._deadline = start + ms
            at_front = manager._insert(self)
        if at_front:
            manager.on_insert_at_front()
        return True


class TimerManager:
    """Keeps timers sorted by deadline and hands out expired callbacks."""

    def __init__(self, clock: Callable[[], int] | None = None) -> None:
        self._clock = clock or _monotonic_ms
        self._timers: list[Timer] = []
        self._lock = threading.RLock()
        self._tickled = False
        self._wakeup = threading.Event()

    @property
    def wakeup(self) -> threading.Event:
        """Event set whenever a new timer becomes the earliest one."""
        return self._wakeup

    def _now(self) -> int:
        return self._clock()

    def _discard(self, timer: Timer) -> bool:
        if timer in self._timers:
            self._timers.remove(timer)
            return True
        return False

    def _insert(self, timer: Timer) -> bool:
        """Insert under the lock; return whether the front hook must run."""
        bisect.insort(self._timers, timer, key=_order)
        at_front = self._timers[0] is timer and not self._tickled
        if at_front:
            self._tickled = True
        return at_front

    def add_timer(self, ms: int, callback: Callable[[], Any],
                  recurring: bool = False) -> Timer:
        """Schedule ``callback`` after ``ms`` milliseconds."""
        timer = Timer(ms, callback, recurring, self)
        with self._lock:
            at_front = self._insert(timer)
        if at_front:
            self.on_insert_at_front()
        return timer

    def add_condition_timer(self, ms: int, callback: Callable[[], Any],
                            condition: Callable[[], Any], recurring: bool = False) -> Timer:
        """Like :meth:`add_timer`, but only fire while ``condition()`` is not None.

        ``condition`` is typically a ``weakref.ref`` to an owning object.
        """
        def guarded() -> None:
            if condition() is not None:
                callback()

        return self.add_timer(ms, guarded, recurring)

    def next_timeout(self) -> int | None:
        """Milliseconds until the earliest deadline, or ``None`` with no timers."""
        with self._lock:
            if not self._timers:
                return None
            self._tickled = False
            remaining = self._timers[0]._deadline - self._now()
            return max(0, remaining)

    def expired_callbacks(self) -> list[Callable[[], Any]]:
        """Remove due timers and return their callbacks in deadline order.

        Recurring timers are rescheduled one interval after now.
        """
        now = self._now()
        with self._lock:
            if not self._timers:
                return []
            split = bisect.bisect_right(self._timers, now, key=lambda t: t._deadline)
            expired = self._timers[:split]
            del self._timers[:split]
            callbacks = []
            for timer in expired:
                callbacks.append(timer._callback)
                if timer._recurring:
                    timer._deadline = now + timer._ms
                    bisect.insort(self._timers, timer, key=_order)
            return callbacks

    def has_timer(self) -> bool:
        with self._lock:
            return bool(self._timers)

    def on_insert_at_front(self) -> None:
        """Wake anyone waiting on :attr:`wakeup`: the earliest deadline moved."""
        self._wakeup.set()
"""Hierarchical time wheels holding timers in slots."""

from __future__ import annotations

import datetime as _dt
import logging
import threading

from zinx.timer import Timer, unix_milli

logger = logging.getLogger(__name__)


def _duration_ms(duration: float | _dt.timedelta) -> int:
    if isinstance(duration, _dt.timedelta):
        micros = (duration.days * 86400 + duration.seconds) * 1_000_000 + duration.microseconds
        return int(micros / 1000)
    return int(duration * 1000)


class TimeWheel:
    """A ring of ``scales`` slots, each ``interval`` milliseconds wide.

    Timers too close for this wheel are handed to the next, finer wheel;
    the finest wheel keeps them in its current slot until they are taken.
    """

    def __init__(self, name: str, interval: int, scales: int, max_cap: int) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        if scales <= 0:
            raise ValueError("scales must be positive")
        self.name = name
        self.interval = interval
        self.scales = scales
        self.max_cap = max_cap
        self.next_wheel: TimeWheel | None = None
        self._cur_index = 0
        self._slots: list[dict[int, Timer]] = [{} for _ in range(scales)]
        self._lock = threading.RLock()
        self._stop: threading.Event | None = None
        self._thread: threading.Thread | None = None
        logger.info("Init timerWheel name = %s is Done!", name)

    @property
    def cur_index(self) -> int:
        return self._cur_index

    def _add_timer(self, timer_id: int, timer: Timer, force_next: bool) -> None:
        delay = timer.unix_ms - unix_milli()
        if delay >= self.interval:
            slot = (self._cur_index + delay // self.interval) % self.scales
            self._slots[slot][timer_id] = timer
        elif self.next_wheel is None:
            # On the finest wheel a timer moved by rotation goes to the next
            # slot, otherwise it would be skipped once the pointer has passed.
            slot = (self._cur_index + 1) % self.scales if force_next else self._cur_index
            self._slots[slot][timer_id] = timer
        else:
            self.next_wheel.add_timer(timer_id, timer)

    def add_timer(self, timer_id: int, timer: Timer) -> None:
        """Place ``timer`` under ``timer_id`` in this wheel or a finer one."""
        with self._lock:
            self._add_timer(timer_id, timer, False)

    def remove_timer(self, timer_id: int) -> None:
        """Remove the timer with ``timer_id`` from every slot of this wheel."""
        with self._lock:
            for slot in self._slots:
                slot.pop(timer_id, None)

    def add_time_wheel(self, next_wheel: TimeWheel) -> None:
        """Attach a finer wheel below this one."""
        self.next_wheel = next_wheel
        logger.info("Add timerWheel[%s]'s next [%s] is succ!", self.name, next_wheel.name)

    def tick(self) -> None:
        """Advance the pointer one slot, re-placing the timers it passes."""
        with self._lock:
            current = self._slots[self._cur_index]
            self._slots[self._cur_index] = {}
            for timer_id, timer in current.items():
                self._add_timer(timer_id, timer, True)

            following = (self._cur_index + 1) % self.scales
            upcoming = self._slots[following]
            self._slots[following] = {}
            for timer_id, timer in upcoming.items():
                self._add_timer(timer_id, timer, True)

            self._cur_index = following

    def run(self) -> None:
        """Turn the wheel on a background thread, one tick per interval."""
        if self._thread is not None and self._thread.is_alive():
            return
        stop = threading.Event()
        self._stop = stop

        def loop() -> None:
            while not stop.wait(self.interval / 1000):
                self.tick()

        self._thread = threading.Thread(target=loop, daemon=True, name=f"timewheel-{self.name}")
        self._thread.start()
        logger.info("timerwheel name = %s is running...", self.name)

    def stop(self) -> None:
        """Stop the background rotation started by :meth:`run`."""
        if self._stop is not None:
            self._stop.set()

    def get_timers_within(self, duration: float | _dt.timedelta) -> dict[int, Timer]:
        """Take the timers due within ``duration`` from the finest wheel's current slot."""
        leaf = self
        while leaf.next_wheel is not None:
            leaf = leaf.next_wheel
        limit = _duration_ms(duration)
        with leaf._lock:
            now = unix_milli()
            slot = leaf._slots[leaf._cur_index]
            due = {tid: timer for tid, timer in slot.items() if timer.unix_ms - now < limit}
            for timer_id in due:
                del slot[timer_id]
            return due
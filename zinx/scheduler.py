"""A scheduler that runs delayed calls on hour, minute and second time wheels."""

from __future__ import annotations

import datetime as _dt
import logging
import queue
import threading

from zinx.delayfunc import DelayFunc
from zinx.timer import (
    HOUR_INTERVAL,
    HOUR_NAME,
    HOUR_SCALES,
    MINUTE_INTERVAL,
    MINUTE_NAME,
    MINUTE_SCALES,
    SECOND_INTERVAL,
    SECOND_NAME,
    SECOND_SCALES,
    TIMERS_MAX_CAP,
    new_timer_after,
    new_timer_at,
    unix_milli,
)
from zinx.timewheel import TimeWheel

logger = logging.getLogger(__name__)

MAX_CHAN_BUFF = 2048
MAX_TIME_DELAY = 100  # milliseconds


class TimerScheduler:
    """Keeps timers on layered time wheels and emits their calls when due.

    The wheels start turning when the scheduler is created; :meth:`start`
    begins moving due calls onto :attr:`trigger_queue`.
    """

    def __init__(self) -> None:
        second = TimeWheel(SECOND_NAME, SECOND_INTERVAL, SECOND_SCALES, TIMERS_MAX_CAP)
        minute = TimeWheel(MINUTE_NAME, MINUTE_INTERVAL, MINUTE_SCALES, TIMERS_MAX_CAP)
        hour = TimeWheel(HOUR_NAME, HOUR_INTERVAL, HOUR_SCALES, TIMERS_MAX_CAP)
        hour.add_time_wheel(minute)
        minute.add_time_wheel(second)
        self._wheels = (second, minute, hour)
        for wheel in self._wheels:
            wheel.run()
        self._wheel = hour
        self._id_gen = 0
        self._trigger_queue: queue.Queue[DelayFunc] = queue.Queue(maxsize=MAX_CHAN_BUFF)
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def trigger_queue(self) -> queue.Queue[DelayFunc]:
        """The queue receiving the calls of timers that have come due."""
        return self._trigger_queue

    @property
    def stopped(self) -> threading.Event:
        return self._stop

    def create_timer_at(self, delay_func: DelayFunc, unix_nano: int) -> int:
        """Schedule ``delay_func`` at ``unix_nano`` and return the timer id."""
        with self._lock:
            self._id_gen += 1
            self._wheel.add_timer(self._id_gen, new_timer_at(delay_func, unix_nano))
            return self._id_gen

    def create_timer_after(
        self, delay_func: DelayFunc, duration: float | _dt.timedelta
    ) -> int:
        """Schedule ``delay_func`` after ``duration`` and return the timer id."""
        with self._lock:
            self._id_gen += 1
            self._wheel.add_timer(self._id_gen, new_timer_after(delay_func, duration))
            return self._id_gen

    def cancel_timer(self, timer_id: int) -> None:
        """Remove the timer with ``timer_id`` from every wheel."""
        with self._lock:
            wheel: TimeWheel | None = self._wheel
            while wheel is not None:
                wheel.remove_timer(timer_id)
                wheel = wheel.next_wheel

    def start(self) -> None:
        """Begin collecting due timers on a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._poll, daemon=True, name="timer-scheduler")
        self._thread.start()

    def stop(self) -> None:
        """Stop collecting timers and stop the wheels."""
        self._stop.set()
        for wheel in self._wheels:
            wheel.stop()

    def _poll(self) -> None:
        while not self._stop.is_set():
            now = unix_milli()
            due = self._wheel.get_timers_within(MAX_TIME_DELAY / 1000)
            for timer in due.values():
                if abs(now - timer.unix_ms) > MAX_TIME_DELAY:
                    logger.error(
                        "want call at %d; real call at %d; delay %d",
                        timer.unix_ms,
                        now,
                        now - timer.unix_ms,
                    )
                self._trigger_queue.put(timer.delay_func)
            self._stop.wait(MAX_TIME_DELAY / 2 / 1000)


def new_auto_exec_timer_scheduler() -> TimerScheduler:
    """Return a started scheduler that calls every due function by itself."""
    scheduler = TimerScheduler()
    scheduler.start()

    def consume() -> None:
        while not scheduler.stopped.is_set():
            try:
                delay_func = scheduler.trigger_queue.get(timeout=MAX_TIME_DELAY / 2 / 1000)
            except queue.Empty:
                continue
            threading.Thread(target=delay_func.call, daemon=True).start()

    threading.Thread(target=consume, daemon=True, name="timer-exec").start()
    return scheduler
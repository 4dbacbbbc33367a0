"""One-shot timers with millisecond precision."""

from __future__ import annotations

import datetime as _dt
import threading
import time
from dataclasses import dataclass

from zinx.delayfunc import DelayFunc

HOUR_NAME = "HOUR"
HOUR_INTERVAL = 60 * 60 * 1000
HOUR_SCALES = 12

MINUTE_NAME = "MINUTE"
MINUTE_INTERVAL = 60 * 1000
MINUTE_SCALES = 60

SECOND_NAME = "SECOND"
SECOND_INTERVAL = 1000
SECOND_SCALES = 60

TIMERS_MAX_CAP = 2048

_NANOS_PER_MILLI = 1_000_000


def unix_milli() -> int:
    """Return the milliseconds elapsed since the Unix epoch."""
    return time.time_ns() // _NANOS_PER_MILLI


def _to_nanos(duration: float | _dt.timedelta) -> int:
    if isinstance(duration, _dt.timedelta):
        micros = (duration.days * 86400 + duration.seconds) * 1_000_000 + duration.microseconds
        return micros * 1000
    return int(round(duration * 1_000_000_000))


def _nanos_to_millis(nanos: int) -> int:
    millis = abs(nanos) // _NANOS_PER_MILLI
    return millis if nanos >= 0 else -millis


@dataclass
class Timer:
    """A delayed call due at ``unix_ms`` milliseconds since the epoch."""

    delay_func: DelayFunc
    unix_ms: int

    def run(self) -> threading.Thread:
        """Call the function on a background thread once the time is reached."""

        def wait_and_call() -> None:
            now = unix_milli()
            if self.unix_ms > now:
                time.sleep((self.unix_ms - now) / 1000)
            self.delay_func.call()

        thread = threading.Thread(target=wait_and_call, daemon=True)
        thread.start()
        return thread


def new_timer_at(delay_func: DelayFunc, unix_nano: int) -> Timer:
    """Create a timer due at ``unix_nano`` nanoseconds since the epoch."""
    return Timer(delay_func, _nanos_to_millis(unix_nano))


def new_timer_after(delay_func: DelayFunc, duration: float | _dt.timedelta) -> Timer:
    """Create a timer due ``duration`` (seconds or a timedelta) from now."""
    return new_timer_at(delay_func, time.time_ns() + _to_nanos(duration))
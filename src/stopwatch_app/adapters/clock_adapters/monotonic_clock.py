import time

from stopwatch_app.core.ports.clock_port import ClockSource


class MonotonicClock(ClockSource):
    """Host monotonic clock; unaffected by wall-clock adjustments."""

    def now_ms(self) -> int:
        return time.monotonic_ns() // 1_000_000

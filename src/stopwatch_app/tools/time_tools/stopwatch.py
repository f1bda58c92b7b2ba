import asyncio
from typing import Callable, Optional

from stopwatch_app.adapters.clock_adapters.monotonic_clock import MonotonicClock
from stopwatch_app.core.ports.clock_port import ClockSource
from stopwatch_app.core.status import TimerPhase
from stopwatch_app.utils import Event
from stopwatch_app.utils.logging_handler import setup_logger
from stopwatch_app.utils.time_conversions import format_duration

logger = setup_logger(__name__)

DEFAULT_TICK_INTERVAL = 0.01


class StopwatchEngine:
    """
    Elapsed-time tracker driving a single display.

    Elapsed time is always derived as ``clock.now_ms() - anchor``, never by
    summing tick deltas, so slow or missed ticks cannot accumulate drift.
    On resume the anchor is moved forward by the paused interval
    (``now - elapsed``), which keeps pauses out of the count.

    The engine lives on one asyncio event loop. The periodic tick is an
    ``asyncio.Task`` owned by the engine and only ``stop()`` and ``close()``
    cancel it.
    """

    def __init__(
        self,
        clock: Optional[ClockSource] = None,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        display: Optional[Callable[[int], None]] = None,
    ):
        if tick_interval <= 0:
            raise ValueError("tick_interval must be positive")
        self._clock = clock or MonotonicClock()
        self._tick_interval = tick_interval
        self._phase = TimerPhase.IDLE
        self._anchor_ms: Optional[int] = None
        self._elapsed_ms = 0
        self._tick_task: Optional[asyncio.Task] = None

        self.on_tick = Event()
        self.on_start = Event()
        self.on_stop = Event()
        self.on_reset = Event()
        if display is not None:
            self.set_display(display)

    @property
    def phase(self) -> TimerPhase:
        return self._phase

    @property
    def is_running(self) -> bool:
        return self._phase == TimerPhase.RUNNING

    @property
    def elapsed_ms(self) -> int:
        """Last computed elapsed value; frozen unless running."""
        return self._elapsed_ms

    def set_display(self, display: Optional[Callable[[int], None]]):
        """Install the one tick subscriber, replacing any previous one."""
        self.on_tick.set_listener(display)

    def start(self):
        if self._phase == TimerPhase.RUNNING:
            logger.warning("Stopwatch is already running.")
            return

        loop = asyncio.get_running_loop()
        resumed = self._phase == TimerPhase.STOPPED
        self._anchor_ms = self._clock.now_ms() - self._elapsed_ms
        self._phase = TimerPhase.RUNNING
        self._tick_task = loop.create_task(self._run())
        self.on_start.emit(elapsed_ms=self._elapsed_ms)
        logger.info(f"Stopwatch {'resumed' if resumed else 'started'} at {format_duration(self._elapsed_ms)}.")

    def stop(self):
        if self._phase != TimerPhase.RUNNING:
            logger.debug("Stopwatch is not running, ignoring stop.")
            return

        self._cancel_tick()
        self._recompute()
        self._anchor_ms = None
        self._phase = TimerPhase.STOPPED
        self._publish()
        self.on_stop.emit(elapsed_ms=self._elapsed_ms)
        logger.info(f"Stopwatch stopped at {format_duration(self._elapsed_ms)}.")

    def reset(self):
        if self._phase == TimerPhase.RUNNING:
            logger.warning("Stopwatch is running, stop it before resetting.")
            return
        if self._phase == TimerPhase.IDLE:
            return

        self._elapsed_ms = 0
        self._anchor_ms = None
        self._phase = TimerPhase.IDLE
        self._publish()
        self.on_reset.emit(elapsed_ms=0)
        logger.info("Stopwatch reset.")

    def close(self):
        """Tear down the engine; cancels a live tick without changing state."""
        if self._cancel_tick():
            logger.debug("Stopwatch closed while running; tick cancelled.")

    def get_status(self) -> dict:
        return {
            "phase": self._phase.value,
            "elapsed_ms": self._elapsed_ms,
            "elapsed_formatted": format_duration(self._elapsed_ms),
        }

    def _cancel_tick(self) -> bool:
        task, self._tick_task = self._tick_task, None
        if task is None or task.done():
            return False
        task.cancel()
        return True

    def _recompute(self):
        now = self._clock.now_ms()
        # never publish a smaller value than one already shown
        self._elapsed_ms = max(self._elapsed_ms, now - self._anchor_ms)

    def _publish(self):
        self.on_tick.emit(self._elapsed_ms)

    async def _run(self):
        while self._phase == TimerPhase.RUNNING:
            await asyncio.sleep(self._tick_interval)
            if self._phase != TimerPhase.RUNNING:
                break
            self._recompute()
            self._publish()

from abc import ABC, abstractmethod


class ClockSource(ABC):
    """Port for the host clock read by the stopwatch engine."""

    @abstractmethod
    def now_ms(self) -> int:
        """Current instant in integer milliseconds. Must never go backwards."""
        pass

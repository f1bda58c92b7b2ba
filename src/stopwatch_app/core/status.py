# stopwatch_app/core/status.py
from enum import Enum


class TimerPhase(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"

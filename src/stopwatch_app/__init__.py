"""
stopwatch-app: browser stopwatch with saved timing records.

Two pieces carry the weight:
    1. StopwatchEngine - drift-free elapsed-time tracking on an asyncio loop
    2. StoreRouter - record persistence that falls back to memory whenever
       the database is unreachable
"""

__version__ = "1.0.0"

import asyncio
import inspect
from stopwatch_app.utils import setup_logger

logger = setup_logger(__name__)


class Event:
    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._listeners = []
        self.loop = loop
        # strong references to running listener tasks
        self._tasks = set()

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def add_listener(self, listener):
        if not callable(listener):
            raise ValueError("Listener must be callable")
        self._listeners.append(listener)

    def set_listener(self, listener):
        """Replace every registered listener with ``listener`` (or none)."""
        if listener is not None and not callable(listener):
            raise ValueError("Listener must be callable")
        self._listeners = [listener] if listener is not None else []

    def remove_listener(self, listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, *args, **kwargs):
        for listener in list(self._listeners):
            try:
                result = listener(*args, **kwargs)

                # coroutine listeners are scheduled on the owning loop
                if inspect.iscoroutine(result):
                    loop = self.loop or self._running_loop()
                    if loop is None:
                        result.close()
                        raise RuntimeError("Async listener requires event loop")

                    loop.call_soon_threadsafe(self._schedule, result)

            except Exception:
                logger.exception("Error in event listener")

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    def _schedule(self, coro):
        task = asyncio.ensure_future(self._safe_task(coro))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @staticmethod
    def _running_loop():
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    async def _safe_task(self, coro):
        try:
            await coro
        except Exception:
            logger.exception("Unhandled exception in async event listener")

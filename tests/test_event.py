"""Tests for the Event listener helper."""

import asyncio

from stopwatch_app.utils.event import Event


def run(coro):
    return asyncio.run(coro)


class TestEvent:
    """Sync and async listener dispatch."""

    def test_sync_listeners_receive_arguments(self) -> None:
        event = Event()
        seen = []
        event.add_listener(lambda value, unit: seen.append((value, unit)))

        event.emit(5, unit="ms")

        assert seen == [(5, "ms")]

    def test_failing_listener_does_not_stop_the_others(self) -> None:
        event = Event()
        seen = []

        def broken(value):
            raise ValueError("boom")

        event.add_listener(broken)
        event.add_listener(seen.append)
        event.emit(1)

        assert seen == [1]

    def test_async_listener_task_is_kept_until_done(self) -> None:
        seen = []

        async def listener(value):
            await asyncio.sleep(0)
            seen.append(value)

        async def scenario():
            event = Event()
            event.add_listener(listener)
            event.emit(7)
            await asyncio.sleep(0)
            while_running = event.pending_tasks
            for _ in range(5):
                await asyncio.sleep(0)
            return while_running, event.pending_tasks

        while_running, after = run(scenario())
        assert while_running == 1
        assert after == 0
        assert seen == [7]

    def test_failing_async_listener_is_released(self) -> None:
        async def listener():
            raise RuntimeError("boom")

        async def scenario():
            event = Event()
            event.add_listener(listener)
            event.emit()
            for _ in range(5):
                await asyncio.sleep(0)
            return event.pending_tasks

        assert run(scenario()) == 0

    def test_set_listener_replaces_all(self) -> None:
        event = Event()
        event.add_listener(print)
        event.add_listener(repr)
        event.set_listener(None)
        assert event.listener_count == 0

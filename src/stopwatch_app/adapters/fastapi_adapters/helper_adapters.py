import asyncio
import json
from typing import Any, Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect

from stopwatch_app.core.ports.clock_port import ClockSource
from stopwatch_app.core.ports.record_store_port import RecordStorePort
from stopwatch_app.core.records import NewTimingRecord
from stopwatch_app.core.status import TimerPhase
from stopwatch_app.tools.time_tools.stopwatch import DEFAULT_TICK_INTERVAL, StopwatchEngine
from stopwatch_app.utils import custom_exception as ce
from stopwatch_app.utils.logging_handler import setup_logger
from stopwatch_app.utils.time_conversions import format_duration

logger = setup_logger(__name__)


def default_title(duration_ms: int) -> str:
    """Label used for a saved record when the user gave none."""
    return format_duration(duration_ms)


# --- STOPWATCH SESSION ---
class StopwatchSession:
    """
    One websocket client driving its own StopwatchEngine.

    Outgoing messages go through a queue drained by a single sender task so
    ticks, state changes and save results reach the client in order.
    Closing the socket tears the engine down.
    """

    def __init__(
        self,
        websocket: WebSocket,
        store: RecordStorePort,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        clock: Optional[ClockSource] = None,
    ):
        self.websocket = websocket
        self.store = store
        self.engine = StopwatchEngine(clock=clock, tick_interval=tick_interval, display=self._show_tick)
        self._outbox: asyncio.Queue = asyncio.Queue()
        self._sender: Optional[asyncio.Task] = None

        self.engine.on_start.add_listener(self._show_state)
        self.engine.on_stop.add_listener(self._show_state)
        self.engine.on_reset.add_listener(self._show_state)

    async def run(self):
        await self.websocket.accept()
        self._sender = asyncio.create_task(self._drain())
        self._show_state()
        try:
            while True:
                data = await self.websocket.receive_text()
                try:
                    msg = json.loads(data)
                except json.JSONDecodeError:
                    self._send_error("Invalid JSON message")
                    continue
                await self.handle(msg)
        except WebSocketDisconnect:
            logger.info("Stopwatch client disconnected.")
        finally:
            await self.close()

    async def handle(self, msg: Any):
        msg_type = msg.get("type") if isinstance(msg, dict) else None
        commands = {
            "start": self.engine.start,
            "stop": self.engine.stop,
            "reset": self.engine.reset,
        }

        if msg_type in commands:
            before = self.engine.phase
            commands[msg_type]()
            if self.engine.phase == before:
                # ignored transition; echo the unchanged state back
                self._show_state()
        elif msg_type == "status":
            self._show_state()
        elif msg_type == "save":
            await self.save(title=msg.get("title"), user_id=msg.get("userId"))
        else:
            self._send_error(f"Unknown message type: {msg_type!r}")

    async def save(self, title: Optional[str] = None, user_id: Optional[int] = None):
        elapsed = self.engine.elapsed_ms
        if self.engine.phase != TimerPhase.STOPPED or elapsed <= 0:
            self._send_error("Stop the stopwatch before saving.")
            return

        if isinstance(title, str):
            title = title.strip()
        new_record = NewTimingRecord(duration_ms=elapsed, user_id=user_id, title=title or default_title(elapsed))
        try:
            record = await self.store.create(new_record)
        except ce.RecordValidationError as e:
            self._send_error(str(e), details=e.details)
            return
        except Exception:
            logger.exception("Error saving stopwatch record")
            self._send_error("Failed to save stopwatch record")
            return

        logger.info(f"Saved stopwatch record {record.id} ({record.title}).")
        self._queue({"type": "saved", "record": record.to_dict()})

    async def close(self):
        self.engine.close()
        if self._sender is not None:
            self._sender.cancel()
            try:
                await self._sender
            except asyncio.CancelledError:
                pass
            self._sender = None

    def _show_tick(self, elapsed_ms: int):
        self._queue({"type": "tick", "elapsed": elapsed_ms, "formatted": format_duration(elapsed_ms)})

    def _show_state(self, **_):
        status = self.engine.get_status()
        self._queue({
            "type": "state",
            "phase": status["phase"],
            "elapsed": status["elapsed_ms"],
            "formatted": status["elapsed_formatted"],
        })

    def _send_error(self, error: str, details: Optional[Dict[str, Any]] = None):
        payload = {"type": "error", "error": error}
        if details:
            payload["details"] = details
        self._queue(payload)

    def _queue(self, payload: Dict[str, Any]):
        self._outbox.put_nowait(payload)

    async def _drain(self):
        while True:
            payload = await self._outbox.get()
            try:
                await self.websocket.send_text(json.dumps(payload))
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.debug(f"Dropping outgoing stopwatch message: {e}")
                return

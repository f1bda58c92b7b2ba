import asyncio
import time
from typing import Awaitable, Callable, List, Optional, TypeVar

from stopwatch_app.core.ports.record_store_port import RecordStorePort
from stopwatch_app.core.records import NewTimingRecord, TimingRecord, validate_new_record
from stopwatch_app.utils import custom_exception as ce
from stopwatch_app.utils.logging_handler import setup_logger

logger = setup_logger(__name__)

T = TypeVar("T")

TRANSPORT_ERRORS = (ce.StoreUnavailableError, asyncio.TimeoutError, OSError)


class StoreRouter(RecordStorePort):
    """
    Routes every record call to the primary store when it is connected and
    healthy, and to the in-process fallback store otherwise.

    A transport failure on the primary is logged and the same call is
    replayed against the fallback; the caller never sees the error.
    Validation errors are raised before any routing happens.

    Records written to the fallback during an outage keep their own id range
    and stay reachable after the primary recovers: get and delete look in the
    fallback first, and list merges both stores.

    The primary is never disabled for good. After a failure it is left alone
    for ``cooldown`` seconds, then the next call tries to reconnect
    (``cooldown=0`` retries on every call).
    """

    def __init__(
        self,
        primary: Optional[RecordStorePort],
        fallback: RecordStorePort,
        connect_retries: int = 3,
        retry_delay: float = 1.0,
        call_timeout: float = 5.0,
        cooldown: float = 5.0,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.primary = primary
        self.fallback = fallback
        self.connect_retries = max(connect_retries, 1)
        self.retry_delay = retry_delay
        self.call_timeout = call_timeout
        self.cooldown = cooldown
        self._monotonic = monotonic
        self._connect_task: Optional[asyncio.Task] = None
        self._last_failure: Optional[float] = None
        self._degraded = False

    @property
    def is_connected(self) -> bool:
        """True when calls are currently going to the primary store."""
        return self.primary is not None and self.primary.is_connected

    @property
    def is_connecting(self) -> bool:
        return self._connect_task is not None and not self._connect_task.done()

    # --- lifecycle ---

    def start(self) -> Optional[asyncio.Task]:
        """Schedule the primary connection attempt without waiting for it."""
        if self.primary is None:
            logger.warning("No database configured; records are kept in memory only.")
            return None
        if not self.is_connecting:
            self._connect_task = asyncio.get_running_loop().create_task(self.connect())
            self._connect_task.add_done_callback(self._log_connect_outcome)
        return self._connect_task

    async def connect(self) -> bool:
        """Try to connect the primary, retrying with a linearly growing delay."""
        if self.primary is None:
            return False

        for attempt in range(1, self.connect_retries + 1):
            try:
                await asyncio.wait_for(self.primary.connect(), timeout=self.call_timeout)
            except TRANSPORT_ERRORS as e:
                logger.warning(f"Primary store connection attempt {attempt}/{self.connect_retries} failed: {e}")
                if attempt < self.connect_retries:
                    await asyncio.sleep(self.retry_delay * attempt)
                continue
            self._mark_healthy()
            return True

        self._mark_failed()
        logger.error("Primary store unreachable; serving records from memory until it recovers.")
        return False

    @staticmethod
    def _log_connect_outcome(task: asyncio.Task):
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Primary store connection task failed: {error!r}", exc_info=error)

    async def close(self) -> None:
        if self.is_connecting:
            self._connect_task.cancel()
            try:
                await self._connect_task
            except asyncio.CancelledError:
                pass
        self._connect_task = None
        if self.primary is not None:
            await self.primary.close()
        await self.fallback.close()

    # --- record operations ---

    async def list(self, user_id: Optional[int] = None) -> List[TimingRecord]:
        records = {record.id: record for record in await self._dispatch("list", lambda store: store.list(user_id))}
        # records kept in memory during an outage stay listed after recovery
        for record in await self.fallback.list(user_id):
            records.setdefault(record.id, record)
        return sorted(records.values(), key=lambda record: record.id)

    async def get(self, record_id: int) -> Optional[TimingRecord]:
        held = await self.fallback.get(record_id)
        if held is not None:
            return held
        return await self._dispatch("get", lambda store: store.get(record_id))

    async def create(self, new_record: NewTimingRecord) -> TimingRecord:
        # malformed input fails the same way on every store, so never fall back for it
        validate_new_record(new_record)
        return await self._dispatch("create", lambda store: store.create(new_record))

    async def delete(self, record_id: int) -> bool:
        if await self.fallback.get(record_id) is not None:
            return await self.fallback.delete(record_id)
        return await self._dispatch("delete", lambda store: store.delete(record_id))

    # --- routing ---

    async def _dispatch(self, operation: str, call: Callable[[RecordStorePort], Awaitable[T]]) -> T:
        if await self._primary_available():
            try:
                return await asyncio.wait_for(call(self.primary), timeout=self.call_timeout)
            except TRANSPORT_ERRORS as e:
                self._mark_failed()
                logger.warning(f"Primary store failed during {operation} ({type(e).__name__}: {e}); using fallback.")
        else:
            logger.debug(f"Primary store unavailable; serving {operation} from fallback.")
        return await call(self.fallback)

    async def _primary_available(self) -> bool:
        if self.primary is None:
            return False
        if self.primary.is_connected:
            return True
        # the startup connection attempt is still running; don't wait on it
        if self.is_connecting:
            return False
        if self._last_failure is not None and self._monotonic() - self._last_failure < self.cooldown:
            return False
        return await self._reconnect()

    async def _reconnect(self) -> bool:
        try:
            await asyncio.wait_for(self.primary.connect(), timeout=self.call_timeout)
        except TRANSPORT_ERRORS as e:
            self._mark_failed()
            logger.debug(f"Primary store reconnect failed: {e}")
            return False
        self._mark_healthy()
        return True

    def _mark_healthy(self):
        self._last_failure = None
        if self._degraded:
            logger.info("Primary store recovered; routing records to the database again.")
        else:
            logger.info("Primary store connected.")
        self._degraded = False

    def _mark_failed(self):
        self._last_failure = self._monotonic()
        if self.primary is not None:
            self.primary.mark_disconnected()
        if not self._degraded:
            logger.warning("Record storage degraded to in-memory fallback.")
        self._degraded = True

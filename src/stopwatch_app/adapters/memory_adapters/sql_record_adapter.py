import asyncio
from datetime import timezone
from typing import List, Optional

from sqlalchemy import Column, DateTime, Integer, MetaData, Table, Text, create_engine, delete, insert, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from stopwatch_app.core.ports.record_store_port import RecordStorePort
from stopwatch_app.core.records import NewTimingRecord, TimingRecord, utc_now, validate_new_record
from stopwatch_app.utils import custom_exception as ce
from stopwatch_app.utils.logging_handler import setup_logger

metadata = MetaData()

stopwatch_records = Table(
    "stopwatch_records",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    # owning user; users are managed elsewhere so no foreign key is declared
    Column("user_id", Integer, nullable=True, index=True),
    Column("title", Text, nullable=True),
    Column("duration", Integer, nullable=False),  # milliseconds
    Column("created_at", DateTime(timezone=True), nullable=False),
)


def _row_to_record(row) -> TimingRecord:
    created_at = row.created_at
    # sqlite hands back naive datetimes; everything is stored in UTC
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return TimingRecord(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        duration_ms=row.duration,
        created_at=created_at,
    )


class SqlRecordAdapter(RecordStorePort):
    """
    Record store backed by a relational database reached through a SQLAlchemy URL
    (``postgresql+psycopg://...`` in production, ``sqlite:///...`` locally).

    Blocking driver calls run in worker threads. Every database failure is
    re-raised as StoreUnavailableError so callers can fall back.
    """

    def __init__(self, database_url: str, connect_timeout: Optional[float] = None, engine: Optional[Engine] = None):
        self.logger = setup_logger(__name__)
        self.database_url = database_url
        self.connect_timeout = connect_timeout
        self._engine: Optional[Engine] = engine
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        await asyncio.to_thread(self._connect_sync)

    async def close(self) -> None:
        await asyncio.to_thread(self._close_sync)

    def mark_disconnected(self):
        self._connected = False

    async def list(self, user_id: Optional[int] = None) -> List[TimingRecord]:
        return await self._run("list", self._list_sync, user_id)

    async def get(self, record_id: int) -> Optional[TimingRecord]:
        return await self._run("get", self._get_sync, record_id)

    async def create(self, new_record: NewTimingRecord) -> TimingRecord:
        validate_new_record(new_record)
        return await self._run("create", self._create_sync, new_record)

    async def delete(self, record_id: int) -> bool:
        return await self._run("delete", self._delete_sync, record_id)

    async def _run(self, operation: str, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except SQLAlchemyError as e:
            self._connected = False
            self.logger.error(f"Database error in {operation}: {e}")
            raise ce.StoreUnavailableError(f"Database error in {operation}") from e

    def _build_engine(self) -> Engine:
        connect_args = {}
        if self.connect_timeout is not None and not self.database_url.startswith("sqlite"):
            connect_args["connect_timeout"] = int(self.connect_timeout)
        return create_engine(self.database_url, pool_pre_ping=True, connect_args=connect_args)

    def _connect_sync(self):
        try:
            if self._engine is None:
                self._engine = self._build_engine()
            with self._engine.begin() as conn:
                conn.execute(text("SELECT 1"))
                metadata.create_all(conn)
        # a missing DBAPI driver surfaces as ImportError from create_engine
        except (SQLAlchemyError, ImportError) as e:
            self._connected = False
            raise ce.StoreUnavailableError(f"Could not connect to database: {e}") from e
        self._connected = True
        self.logger.info(f"Connected to database ({self._engine.url.get_backend_name()}).")

    def _close_sync(self):
        if self._engine is not None:
            self._engine.dispose()
        self._connected = False

    def _require_engine(self) -> Engine:
        if self._engine is None:
            raise ce.StoreUnavailableError("Database connection has not been established.")
        return self._engine

    def _list_sync(self, user_id: Optional[int]) -> List[TimingRecord]:
        query = select(stopwatch_records).order_by(stopwatch_records.c.id)
        if user_id is not None:
            query = query.where(stopwatch_records.c.user_id == user_id)
        with self._require_engine().connect() as conn:
            return [_row_to_record(row) for row in conn.execute(query)]

    def _get_sync(self, record_id: int) -> Optional[TimingRecord]:
        query = select(stopwatch_records).where(stopwatch_records.c.id == record_id)
        with self._require_engine().connect() as conn:
            row = conn.execute(query).first()
        return _row_to_record(row) if row is not None else None

    def _create_sync(self, new_record: NewTimingRecord) -> TimingRecord:
        created_at = utc_now()
        with self._require_engine().begin() as conn:
            result = conn.execute(
                insert(stopwatch_records).values(
                    user_id=new_record.user_id,
                    title=new_record.title,
                    duration=new_record.duration_ms,
                    created_at=created_at,
                )
            )
            record_id = result.inserted_primary_key[0]
        return TimingRecord(
            id=record_id,
            user_id=new_record.user_id,
            title=new_record.title,
            duration_ms=new_record.duration_ms,
            created_at=created_at,
        )

    def _delete_sync(self, record_id: int) -> bool:
        with self._require_engine().begin() as conn:
            result = conn.execute(delete(stopwatch_records).where(stopwatch_records.c.id == record_id))
        return result.rowcount > 0

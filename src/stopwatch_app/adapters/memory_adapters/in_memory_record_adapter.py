import asyncio
from typing import Dict, List, Optional

from stopwatch_app.core.ports.record_store_port import RecordStorePort
from stopwatch_app.core.records import NewTimingRecord, TimingRecord, utc_now, validate_new_record
from stopwatch_app.utils.logging_handler import setup_logger

logger = setup_logger(__name__)

# first id handed out while standing in for a database; keeps the two id ranges apart
FALLBACK_FIRST_ID = 1_000_000_000


class InMemoryRecordAdapter(RecordStorePort):
    """
    Process-local record store used while the database is unavailable.

    Ids start at ``first_id`` and are handed out under a lock together with
    the insert, so concurrent creates always receive unique, increasing ids.
    Contents are lost when the process exits.
    """

    def __init__(self, first_id: int = 1):
        self._records: Dict[int, TimingRecord] = {}
        self._next_id = first_id
        self._lock = asyncio.Lock()

    def __len__(self):
        return len(self._records)

    async def list(self, user_id: Optional[int] = None) -> List[TimingRecord]:
        records = sorted(self._records.values(), key=lambda record: record.id)
        if user_id is not None:
            return [record for record in records if record.user_id == user_id]
        return records

    async def get(self, record_id: int) -> Optional[TimingRecord]:
        return self._records.get(record_id)

    async def create(self, new_record: NewTimingRecord) -> TimingRecord:
        validate_new_record(new_record)
        async with self._lock:
            record = TimingRecord(
                id=self._next_id,
                user_id=new_record.user_id,
                title=new_record.title,
                duration_ms=new_record.duration_ms,
                created_at=utc_now(),
            )
            self._records[record.id] = record
            self._next_id += 1
        logger.debug(f"In-memory record {record.id} created ({record.duration_ms} ms).")
        return record

    async def delete(self, record_id: int) -> bool:
        async with self._lock:
            return self._records.pop(record_id, None) is not None

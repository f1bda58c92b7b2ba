from abc import ABC, abstractmethod
from typing import Optional, Sequence

from stopwatch_app.core.records import NewTimingRecord, TimingRecord


class RecordStorePort(ABC):
    """
    Contract shared by every timing record store.

    All operations are coroutines so that a database-backed store and the
    in-process store can be swapped per call without the caller noticing.
    """

    @property
    def is_connected(self) -> bool:
        """True when the store can currently serve calls."""
        return True

    async def connect(self) -> None:
        """Establish the backing connection. In-process stores have none."""
        pass

    async def close(self) -> None:
        """Release the backing connection."""
        pass

    def mark_disconnected(self) -> None:
        """Forget a connection that has just failed so it is connected again."""
        pass

    @abstractmethod
    async def list(self, user_id: Optional[int] = None) -> Sequence[TimingRecord]:
        """All records, or only those owned by ``user_id`` when it is not None."""
        pass

    @abstractmethod
    async def get(self, record_id: int) -> Optional[TimingRecord]:
        """The record with ``record_id``, or None when there is none."""
        pass

    @abstractmethod
    async def create(self, new_record: NewTimingRecord) -> TimingRecord:
        """Validate and insert a record, assigning ``id`` and ``created_at``."""
        pass

    @abstractmethod
    async def delete(self, record_id: int) -> bool:
        """True if a record was removed, False if none existed."""
        pass

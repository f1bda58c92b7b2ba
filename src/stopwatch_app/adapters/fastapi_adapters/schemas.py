from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from stopwatch_app.core.records import NewTimingRecord


class StopwatchRecordIn(BaseModel):
    """Body of POST /api/stopwatch-records."""
    model_config = ConfigDict(extra="ignore")

    userId: Optional[StrictInt] = None
    title: Optional[str] = None
    duration: StrictInt = Field(ge=0, description="Elapsed time in milliseconds")

    def to_new_record(self) -> NewTimingRecord:
        return NewTimingRecord(duration_ms=self.duration, user_id=self.userId, title=self.title)

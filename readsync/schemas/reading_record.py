"""
ReadSync Backend — Reading Record Schemas
==========================================

What:  Pydantic models defining the reading-records API contract.
How:   FastAPI validates request bodies against these models and serializes
       responses from them. Field names are snake_case in Python and
       camelCase on the wire.

Input rules:
    - Every `record` field is optional. Omitted (or null) fields are NOT
      carried over from the stored row: `to_columns()` resets them to
      their defaults, because a sync replaces the whole row.
    - Unknown keys are rejected, and integers/booleans are strict, so a
      malformed client payload fails with 400 instead of being coerced.
    - `lastModified` (alias `lastRead`) accepts ISO-8601 strings or epoch
      milliseconds. Naive timestamps are taken as UTC.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, ConfigDict, Field, StrictBool, StrictInt, StrictStr

from readsync.schemas.common import CamelModel

DEFAULT_CURRENT_PAGE = 1
DEFAULT_TOTAL_PAGES = 0


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ReadingRecordPayload(CamelModel):
    """The `record` object of a sync request."""

    model_config = ConfigDict(extra="forbid")

    file_name: Optional[StrictStr] = Field(default=None, max_length=1024)
    current_page: Optional[StrictInt] = Field(default=None, ge=1)
    total_pages: Optional[StrictInt] = Field(default=None, ge=0)
    read_pages: Optional[List[StrictInt]] = None
    reading_mode: Optional[StrictBool] = None
    device_id: Optional[StrictStr] = Field(default=None, max_length=255)
    last_modified: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("lastModified", "lastRead", "last_modified"),
    )

    def to_columns(self, now: datetime) -> Dict[str, Any]:
        """
        Build the full set of client-owned columns, defaults applied.

        `now` is the server write time, used when the client sent no
        lastModified.
        """
        last_read = self.last_modified or now
        if last_read.tzinfo is None:
            last_read = last_read.replace(tzinfo=timezone.utc)
        else:
            last_read = last_read.astimezone(timezone.utc)
        return {
            "file_name": self.file_name or "",
            "current_page": self.current_page or DEFAULT_CURRENT_PAGE,
            "total_pages": self.total_pages or DEFAULT_TOTAL_PAGES,
            "read_pages": list(self.read_pages or []),
            "reading_mode": bool(self.reading_mode),
            "device_id": self.device_id or "",
            "last_read": last_read,
        }


class SyncRequest(CamelModel):
    """Body of POST /reading-records."""

    model_config = ConfigDict(extra="forbid")

    file_id: StrictStr = Field(min_length=1, max_length=255)
    record: ReadingRecordPayload


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class SyncData(CamelModel):
    last_synced: datetime


class RecordDetail(CamelModel):
    """A stored record in the shape the reader client keeps locally."""

    file_name: str
    current_page: int
    total_pages: int
    read_pages: List[int]
    reading_mode: bool
    last_modified: datetime
    device_id: str


class RecordDetailData(CamelModel):
    record: RecordDetail
    last_synced: datetime = Field(description="Server time of the last persisted write")


class RecordListItem(CamelModel):
    file_id: str
    file_name: str
    current_page: int
    total_pages: int
    read_progress: float = Field(description="len(readPages) / totalPages, or 0 when totalPages is 0")
    last_read: datetime


class RecordListData(CamelModel):
    records: List[RecordListItem]
    total: int = Field(description="All records owned by the caller, ignoring pagination")
    limit: int
    offset: int

"""
ReadSync Backend — Reading Record Service (Sync Logic)
=======================================================

What:  Upsert, point lookup, delete and paginated listing of a user's
       reading records.
Who:   Called by the /reading-records route handlers after the auth guard
       has resolved the caller.
How:   Every statement is filtered by the caller's user_id, so one user can
       never read or write another user's rows.

Sync Semantics:
    Upsert is a single INSERT ... ON CONFLICT (user_id, file_id) DO UPDATE.
    The update sets every client-owned column from the incoming payload,
    defaults applied, so a sync REPLACES the stored row:

        first sync   {fileName: "a.pdf", currentPage: 7, readingMode: true}
        second sync  {currentPage: 9}
        stored row   {fileName: "", currentPage: 9, readingMode: false, ...}

    Concurrent syncs for the same key race in the database; the last one
    to commit wins. There is no version check.

Design Decision:
    ReadingRecordService is stateless. It receives the db session and the
    caller's user id on each call, which keeps it trivially testable
    against an in-memory database.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import asc, delete, desc, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from readsync.config import settings
from readsync.exceptions import DatabaseError, NotFoundError, ValidationError
from readsync.models.reading_record import ReadingRecord
from readsync.schemas.reading_record import (
    ReadingRecordPayload,
    RecordDetail,
    RecordDetailData,
    RecordListData,
    RecordListItem,
    SyncData,
)

logger = logging.getLogger(__name__)

# Sort keys clients may pass, mapped to columns. Anything else is rejected.
SORTABLE_COLUMNS = {
    "last_read": ReadingRecord.last_read,
    "updated_at": ReadingRecord.updated_at,
    "created_at": ReadingRecord.created_at,
    "file_name": ReadingRecord.file_name,
    "current_page": ReadingRecord.current_page,
    "total_pages": ReadingRecord.total_pages,
}
SORT_ORDERS = {"asc": asc, "desc": desc}

# Dialect-specific INSERT constructs that support ON CONFLICT
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

# Columns the sync payload owns; replaced on every upsert
_CLIENT_COLUMNS = (
    "file_name",
    "current_page",
    "total_pages",
    "read_pages",
    "reading_mode",
    "device_id",
    "last_read",
)


def _require_file_id(file_id: Optional[str]) -> str:
    if not file_id or not file_id.strip():
        raise ValidationError(message="fileId is required", field="fileId")
    return file_id


class ReadingRecordService:
    """
    Business logic for reading-record synchronization.

    Responsibilities:
        - upsert(): full-row insert-or-replace keyed on (user_id, file_id)
        - get(): single record, NotFoundError when absent
        - delete(): idempotent removal
        - list(): ordered, offset-paginated listing with an exact total

    Error Handling Strategy:
        Input problems raise ValidationError before any statement runs.
        SQLAlchemy failures are logged with their detail and re-raised as
        DatabaseError (generic 500 for the client).
    """

    async def upsert(
        self,
        db: AsyncSession,
        user_id: str,
        file_id: str,
        record: Optional[ReadingRecordPayload],
    ) -> SyncData:
        """
        Insert the record for (user_id, file_id), or replace it wholesale.

        Returns:
            SyncData whose last_synced is the server time at response
            creation, not necessarily the stored updated_at.

        Raises:
            ValidationError: fileId or record missing
            DatabaseError: The write failed
        """
        file_id = _require_file_id(file_id)
        if record is None:
            raise ValidationError(message="record is required", field="record")

        now = datetime.now(timezone.utc)
        columns = record.to_columns(now)

        try:
            dialect = db.get_bind().dialect.name
            insert = _UPSERT_INSERTS.get(dialect)
            if insert is None:
                raise DatabaseError(
                    message="Record store does not support upserts",
                    context={"dialect": dialect},
                )

            stmt = insert(ReadingRecord).values(
                id=uuid.uuid4(),
                user_id=user_id,
                file_id=file_id,
                created_at=now,
                updated_at=now,
                **columns,
            )
            replaced = {name: stmt.excluded[name] for name in _CLIENT_COLUMNS}
            replaced["updated_at"] = stmt.excluded.updated_at
            stmt = stmt.on_conflict_do_update(
                index_elements=["user_id", "file_id"],
                set_=replaced,
            )

            await db.execute(stmt)
            await db.commit()

        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                "Upsert failed for file %s (user %s): %s", file_id, user_id, str(e),
                exc_info=True,
            )
            raise DatabaseError(
                message="Failed to save the reading record",
                context={"file_id": file_id, "error_type": type(e).__name__},
            )

        logger.info(
            "Synced record file=%s page=%d/%d device=%s",
            file_id, columns["current_page"], columns["total_pages"],
            columns["device_id"] or "-",
        )
        return SyncData(last_synced=datetime.now(timezone.utc))

    async def get(self, db: AsyncSession, user_id: str, file_id: str) -> RecordDetailData:
        """
        Fetch the caller's record for one file.

        Raises:
            ValidationError: fileId missing
            NotFoundError: The caller has no record for this file (→ 404)
            DatabaseError: Query execution failed
        """
        file_id = _require_file_id(file_id)
        try:
            result = await db.execute(
                select(ReadingRecord).where(
                    ReadingRecord.user_id == user_id,
                    ReadingRecord.file_id == file_id,
                )
            )
            record = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching record %s: %s", file_id, str(e))
            raise DatabaseError(
                message="Failed to fetch the reading record",
                context={"file_id": file_id, "error_type": type(e).__name__},
            )

        if record is None:
            raise NotFoundError(
                message="Reading record not found",
                resource="reading_record",
                resource_id=file_id,
            )

        return RecordDetailData(
            record=RecordDetail(
                file_name=record.file_name,
                current_page=record.current_page,
                total_pages=record.total_pages,
                read_pages=list(record.read_pages or []),
                reading_mode=record.reading_mode,
                last_modified=record.last_read,
                device_id=record.device_id,
            ),
            last_synced=record.updated_at,
        )

    async def delete(self, db: AsyncSession, user_id: str, file_id: str) -> None:
        """
        Delete the caller's record for one file. Deleting nothing is not an error.

        Raises:
            ValidationError: fileId missing
            DatabaseError: The delete failed
        """
        file_id = _require_file_id(file_id)
        try:
            result = await db.execute(
                delete(ReadingRecord).where(
                    ReadingRecord.user_id == user_id,
                    ReadingRecord.file_id == file_id,
                )
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Delete failed for file %s: %s", file_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to delete the reading record",
                context={"file_id": file_id, "error_type": type(e).__name__},
            )

        logger.info("Deleted record file=%s (rows=%s)", file_id, result.rowcount)

    async def list(
        self,
        db: AsyncSession,
        user_id: str,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        sort: Optional[str] = None,
        order: Optional[str] = None,
    ) -> RecordListData:
        """
        List the caller's records, one page at a time.

        Args:
            limit: Page size, 1..list_max_limit (default list_default_limit)
            offset: Rows to skip, >= 0 (default 0)
            sort: One of SORTABLE_COLUMNS (default last_read)
            order: asc or desc, case-insensitive (default desc)

        Returns:
            RecordListData with the page, the caller's total record count
            (independent of the page window) and the effective limit/offset.

        Raises:
            ValidationError: Bad paging or sort parameters
            DatabaseError: Query execution failed
        """
        limit = settings.list_default_limit if limit is None else limit
        offset = 0 if offset is None else offset
        sort = sort or "last_read"
        order = (order or "desc").lower()

        if not 1 <= limit <= settings.list_max_limit:
            raise ValidationError(
                message=f"limit must be between 1 and {settings.list_max_limit}",
                field="limit",
            )
        if offset < 0:
            raise ValidationError(message="offset must not be negative", field="offset")
        sort_column = SORTABLE_COLUMNS.get(sort)
        if sort_column is None:
            raise ValidationError(
                message=f"Cannot sort by '{sort}'. Allowed: {', '.join(SORTABLE_COLUMNS)}",
                field="sort",
            )
        direction = SORT_ORDERS.get(order)
        if direction is None:
            raise ValidationError(message="order must be 'asc' or 'desc'", field="order")

        try:
            result = await db.execute(
                select(ReadingRecord)
                .where(ReadingRecord.user_id == user_id)
                .order_by(direction(sort_column), ReadingRecord.file_id.asc())
                .offset(offset)
                .limit(limit)
            )
            records = list(result.scalars().all())

            count_result = await db.execute(
                select(func.count())
                .select_from(ReadingRecord)
                .where(ReadingRecord.user_id == user_id)
            )
            total = count_result.scalar() or 0

        except SQLAlchemyError as e:
            logger.error("Database error listing records: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to list reading records",
                context={"error_type": type(e).__name__},
            )

        items = [
            RecordListItem(
                file_id=record.file_id,
                file_name=record.file_name,
                current_page=record.current_page,
                total_pages=record.total_pages,
                read_progress=record.read_progress,
                last_read=record.last_read,
            )
            for record in records
        ]
        return RecordListData(records=items, total=total, limit=limit, offset=offset)


reading_record_service = ReadingRecordService()

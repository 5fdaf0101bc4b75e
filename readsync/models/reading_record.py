"""
ReadSync Backend — ReadingRecord SQLAlchemy Model
==================================================

What:  ORM model representing the `reading_records` table.
How:   Inherits from DeclarativeBase; Alembic reads this for migrations.
Who:   Used by ReadingRecordService for upsert/get/delete/list.

Table Design:
    - id: surrogate UUID primary key
    - (user_id, file_id): the real identity of a row; one record per user
      per document, enforced by a unique constraint that the upsert
      targets with ON CONFLICT
    - user_id: the identity provider's user id (opaque string)
    - read_pages: ordered list of page numbers, JSONB on Postgres and JSON
      elsewhere; duplicates are stored as sent
    - last_read: client-supplied (or server-defaulted) time of last reading
    - updated_at: server time of the last persisted write (sync watermark)

Index on (user_id, last_read):
    The list endpoint filters by user and sorts by last_read DESC by default.
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from readsync.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReadingRecord(Base):
    """
    One user's reading state for one document.

    Lifecycle:
        1. Created on the first successful sync for a (user, file) pair
        2. Replaced wholesale by every later sync for the same pair
        3. Deleted only when the owning user asks for it
    """

    __tablename__ = "reading_records"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # ── Ownership & Identity ──────────────────────────────────────────────
    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Identity provider user id of the owner",
    )
    file_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Client-supplied document identifier",
    )

    # ── Client-owned State (replaced on every sync) ──────────────────────
    file_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    current_page: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    total_pages: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    read_pages: Mapped[List[int]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=list,
    )
    reading_mode: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    device_id: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    last_read: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    # ── Server-maintained Timestamps ──────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "file_id", name="uq_reading_records_user_file"),
        Index("idx_reading_records_user_last_read", "user_id", "last_read"),
    )

    @property
    def read_progress(self) -> float:
        """Fraction of the document read; 0 when the page count is unknown."""
        if self.total_pages > 0:
            return len(self.read_pages or []) / self.total_pages
        return 0.0

    def __repr__(self) -> str:
        return (
            f"<ReadingRecord(user_id='{self.user_id}', file_id='{self.file_id}', "
            f"current_page={self.current_page}/{self.total_pages})>"
        )

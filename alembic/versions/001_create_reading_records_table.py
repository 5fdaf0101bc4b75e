"""Create reading_records table

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Creates `reading_records`, one row per (user, document).
How:   UUID surrogate key, unique (user_id, file_id) as the upsert conflict
       target, JSONB page list on PostgreSQL.

Rollback: downgrade() drops the table (all synced progress is lost).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "reading_records",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "user_id",
            sa.String(255),
            nullable=False,
            comment="Identity provider user id of the owner",
        ),
        sa.Column(
            "file_id",
            sa.String(255),
            nullable=False,
            comment="Client-supplied document identifier",
        ),
        sa.Column("file_name", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("current_page", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("total_pages", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "read_pages",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
            server_default=sa.text("'[]'"),
        ),
        sa.Column("reading_mode", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("device_id", sa.String(255), nullable=False, server_default=sa.text("''")),
        sa.Column(
            "last_read",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
            comment="Server time of the last persisted write (sync watermark)",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "file_id", name="uq_reading_records_user_file"),
    )

    # List endpoint: WHERE user_id = ? ORDER BY last_read DESC
    op.create_index(
        "idx_reading_records_user_last_read",
        "reading_records",
        ["user_id", "last_read"],
    )


def downgrade() -> None:
    op.drop_index("idx_reading_records_user_last_read", table_name="reading_records")
    op.drop_table("reading_records")

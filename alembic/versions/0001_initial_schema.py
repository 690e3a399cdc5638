"""Initial schema for raw, processed and failed events and the idempotency registry."""

from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the four ingestion tables and their lookup indexes."""
    raw_event_status = sa.Enum(
        "pending",
        "processing",
        "success",
        "failed",
        "duplicate",
        name="raw_event_status",
        native_enum=False,
    )

    op.create_table(
        "raw_events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("received_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("raw_data", sa.Text(), nullable=False),
        sa.Column("source", sa.String(length=128), nullable=False),
        sa.Column("processing_status", raw_event_status, nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_raw_events")),
    )
    op.create_index("ix_raw_events_source", "raw_events", ["source"], unique=False)

    op.create_table(
        "processed_events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("client_id", sa.String(length=128), nullable=False),
        sa.Column("metric", sa.String(length=128), nullable=True),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("timestamp", sa.String(length=32), nullable=False),
        sa.Column("idempotency_key", sa.String(length=255), nullable=False),
        sa.Column("raw_event_id", sa.Integer(), nullable=True),
        sa.Column("processed_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.ForeignKeyConstraint(["raw_event_id"], ["raw_events.id"], name=op.f("fk_processed_events_raw_event_id_raw_events")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_processed_events")),
        sa.UniqueConstraint("idempotency_key", name=op.f("uq_processed_events_idempotency_key")),
    )
    op.create_index("ix_processed_events_client_time", "processed_events", ["client_id", "timestamp"], unique=False)

    op.create_table(
        "idempotency_keys",
        sa.Column("idempotency_key", sa.String(length=255), nullable=False),
        sa.Column("processed_event_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.ForeignKeyConstraint(
            ["processed_event_id"],
            ["processed_events.id"],
            name=op.f("fk_idempotency_keys_processed_event_id_processed_events"),
        ),
        sa.PrimaryKeyConstraint("idempotency_key", name=op.f("pk_idempotency_keys")),
    )

    op.create_table(
        "failed_events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("raw_event_id", sa.Integer(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("raw_data", sa.Text(), nullable=True),
        sa.Column("failed_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.ForeignKeyConstraint(["raw_event_id"], ["raw_events.id"], name=op.f("fk_failed_events_raw_event_id_raw_events")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_failed_events")),
    )


def downgrade() -> None:
    """Drop ingestion tables in dependency order."""
    op.drop_table("failed_events")
    op.drop_table("idempotency_keys")
    op.drop_index("ix_processed_events_client_time", table_name="processed_events")
    op.drop_table("processed_events")
    op.drop_index("ix_raw_events_source", table_name="raw_events")
    op.drop_table("raw_events")

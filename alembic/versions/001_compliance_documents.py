"""Initial schema - compliance_document and audit_record.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "compliance_document",
        sa.Column("number", sa.String(64), primary_key=True),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status_changed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("payload", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column(
            "vehicle_history", JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")
        ),
        sa.Column("valid_until", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_compliance_document_status", "compliance_document", ["kind", "status"])

    # append-only; no foreign key so denied generation attempts can be recorded too
    op.create_table(
        "audit_record",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("document_number", sa.String(64), nullable=False),
        sa.Column("transition", sa.String(30), nullable=False),
        sa.Column("outcome", sa.String(30), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("rule", sa.String(50), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("correlation_id", sa.String(100), nullable=True),
        sa.Column("actor", sa.String(255), nullable=True),
    )
    op.create_index(
        "ix_audit_record_document", "audit_record", ["document_number", "created_at"]
    )


def downgrade() -> None:
    op.drop_index("ix_audit_record_document", table_name="audit_record")
    op.drop_table("audit_record")
    op.drop_index("ix_compliance_document_status", table_name="compliance_document")
    op.drop_table("compliance_document")

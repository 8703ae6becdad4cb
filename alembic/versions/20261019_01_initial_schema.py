"""Characters and aspect ratio jobs."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "characters",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("aspect_ratio_status", sa.String(length=32)),
        sa.Column("aspect_ratio_error", sa.Text()),
        sa.Column("aspect_ratio_1x1_url", sa.String(length=1024)),
        sa.Column("aspect_ratio_16x9_url", sa.String(length=1024)),
        sa.Column("aspect_ratio_9x16_url", sa.String(length=1024)),
        sa.Column("original_aspect_ratio", sa.String(length=16)),
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
        ),
    )

    op.create_table(
        "aspect_ratio_jobs",
        sa.Column("job_id", sa.String(length=64), primary_key=True),
        sa.Column("character_id", sa.String(length=64), nullable=False),
        sa.Column("image_url", sa.String(length=2048), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("failure_reason", sa.String(length=64)),
        sa.Column("error_message", sa.Text()),
        sa.Column("detected_class", sa.String(length=16)),
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
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
    )
    op.create_index(
        "ix_aspect_ratio_jobs_character_id", "aspect_ratio_jobs", ["character_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_aspect_ratio_jobs_character_id", table_name="aspect_ratio_jobs")
    op.drop_table("aspect_ratio_jobs")
    op.drop_table("characters")

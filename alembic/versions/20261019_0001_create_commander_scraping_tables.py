"""create commander scraping tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "commanders",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False, comment="Upsert identity key"),
        sa.Column("rank", sa.Integer(), nullable=False),
        sa.Column("source_url", sa.String(length=1024), nullable=False),
        sa.Column(
            "last_scraped_at",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="Set only by a successful decklist scrape",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_commanders"),
        sa.UniqueConstraint("name", name="uq_commanders_name"),
    )
    op.create_index("ix_commanders_rank", "commanders", ["rank"], unique=False)

    op.create_table(
        "decklists",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("commander_id", sa.Integer(), nullable=False),
        sa.Column(
            "contents",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            comment="Ordered card entries: card_name, category, is_commander, external_card_id",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["commander_id"],
            ["commanders.id"],
            name="fk_decklists_commander_id_commanders",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_decklists"),
        sa.UniqueConstraint("commander_id", name="uq_decklists_commander_id"),
    )

    op.create_table(
        "scraper_executions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "status",
            sa.String(length=32),
            nullable=False,
            comment="pending, success, partial_success, failure",
        ),
        sa.Column("commanders_attempted", sa.Integer(), nullable=False),
        sa.Column("commanders_succeeded", sa.Integer(), nullable=False),
        sa.Column("commanders_failed", sa.Integer(), nullable=False),
        sa.Column("error_summary", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_scraper_executions"),
    )
    op.create_index("ix_scraper_executions_started_at", "scraper_executions", ["started_at"], unique=False)
    op.create_index("ix_scraper_executions_status", "scraper_executions", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_scraper_executions_status", table_name="scraper_executions")
    op.drop_index("ix_scraper_executions_started_at", table_name="scraper_executions")
    op.drop_table("scraper_executions")
    op.drop_table("decklists")
    op.drop_index("ix_commanders_rank", table_name="commanders")
    op.drop_table("commanders")

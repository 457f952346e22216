"""
db/models/commander.py

Ranked commanders discovered from the source and their scraped decklists.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, JSONDocument, TimestampMixin


class Commander(Base, TimestampMixin):
    __tablename__ = "commanders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Upsert identity key",
    )
    rank: Mapped[int] = mapped_column(Integer, nullable=False)
    source_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    last_scraped_at: Mapped[datetime | None] = mapped_column(
        nullable=True,
        comment="Set only by a successful decklist scrape",
    )

    decklist: Mapped[Decklist | None] = relationship(
        back_populates="commander",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("ix_commanders_rank", "rank"),)

    @property
    def card_count(self) -> int:
        if self.decklist is None:
            return 0
        return len(self.decklist.contents or [])


class Decklist(Base, TimestampMixin):
    __tablename__ = "decklists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    commander_id: Mapped[int] = mapped_column(
        ForeignKey("commanders.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    contents: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONDocument,
        nullable=False,
        default=list,
        comment="Ordered card entries: card_name, category, is_commander, external_card_id",
    )

    commander: Mapped[Commander] = relationship(back_populates="decklist")

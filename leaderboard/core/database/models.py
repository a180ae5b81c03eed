"""
ScoreEntry: one submitted score.
Schema only.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, Index, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class ScoreEntry(Base):
    """
    An append-only score submission.

    ``id`` comes from SQLite AUTOINCREMENT, so values are never reused and
    grow in insertion order. Ties on ``score`` are presented by ascending id.
    """

    __tablename__ = "scores"
    __table_args__ = (
        Index("ix_scores_score", "score"),
        {"sqlite_autoincrement": True},
    )

    # Integer (not BigInteger) so SQLite maps it to the INTEGER PRIMARY KEY rowid alias
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    score: Mapped[int] = mapped_column(BigInteger, nullable=False)

    def __repr__(self) -> str:
        return f"ScoreEntry(id={self.id!r}, name={self.name!r}, score={self.score!r})"

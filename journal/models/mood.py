from datetime import datetime
from sqlalchemy import Integer, String, Text, DateTime, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from journal.db.base import Base


class Mood(Base):
    """One mood per calendar date; a second insert for the same date merges."""

    __tablename__ = "moods"
    __table_args__ = (
        CheckConstraint(
            "mood_score >= 1 AND mood_score <= 10", name="ck_moods_score_range"
        ),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    mood_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    mood_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    triggers: Mapped[str | None] = mapped_column(Text, nullable=True)
    weather: Mapped[str | None] = mapped_column(String(64), nullable=True)
    location: Mapped[str | None] = mapped_column(String(128), nullable=True)
    # Free text as produced upstream; usually an ISO date.
    date: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

from datetime import datetime
from sqlalchemy import Integer, String, Text, DateTime, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from journal.db.base import Base


class Preference(Base):
    """
    A like/dislike statement about an item within a category.

    At most one current row per (category, item): a new statement about
    the same pair overwrites the previous one regardless of polarity.
    """

    __tablename__ = "preferences"
    __table_args__ = (
        CheckConstraint(
            "preference_type IN ('like', 'dislike')", name="ck_preferences_type"
        ),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    category: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    item: Mapped[str | None] = mapped_column(String(256), nullable=True)
    preference_type: Mapped[str | None] = mapped_column(String(16), nullable=True)
    intensity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

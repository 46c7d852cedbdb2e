from datetime import datetime
from sqlalchemy import Integer, String, Text, Float, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from journal.db.base import Base


class PersonalInfo(Base):
    """The single logical subject of the journal. Inserts after the first merge into it."""

    __tablename__ = "personal_info"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(32), nullable=True)
    occupation: Mapped[str | None] = mapped_column(String(128), nullable=True)
    health_status: Mapped[str | None] = mapped_column(Text, nullable=True)
    chronic_diseases: Mapped[str | None] = mapped_column(Text, nullable=True)
    medical_history: Mapped[str | None] = mapped_column(Text, nullable=True)
    family_medical_history: Mapped[str | None] = mapped_column(Text, nullable=True)
    height: Mapped[float | None] = mapped_column(Float, nullable=True)
    weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    bmi: Mapped[float | None] = mapped_column(Float, nullable=True)
    blood_pressure: Mapped[str | None] = mapped_column(String(32), nullable=True)
    heart_rate: Mapped[int | None] = mapped_column(Integer, nullable=True)
    blood_sugar: Mapped[str | None] = mapped_column(String(32), nullable=True)
    blood_type: Mapped[str | None] = mapped_column(String(16), nullable=True)
    vision: Mapped[str | None] = mapped_column(Text, nullable=True)
    hearing: Mapped[str | None] = mapped_column(Text, nullable=True)
    allergies: Mapped[str | None] = mapped_column(Text, nullable=True)
    medications: Mapped[str | None] = mapped_column(Text, nullable=True)
    supplements: Mapped[str | None] = mapped_column(Text, nullable=True)
    exercise_habits: Mapped[str | None] = mapped_column(Text, nullable=True)
    sleep_pattern: Mapped[str | None] = mapped_column(Text, nullable=True)
    smoking_status: Mapped[str | None] = mapped_column(Text, nullable=True)
    drinking_habits: Mapped[str | None] = mapped_column(Text, nullable=True)
    diet_restrictions: Mapped[str | None] = mapped_column(Text, nullable=True)
    mental_health: Mapped[str | None] = mapped_column(Text, nullable=True)
    stress_level: Mapped[str | None] = mapped_column(Text, nullable=True)
    education: Mapped[str | None] = mapped_column(Text, nullable=True)
    relationship_status: Mapped[str | None] = mapped_column(Text, nullable=True)
    family_info: Mapped[str | None] = mapped_column(Text, nullable=True)
    contact_info: Mapped[str | None] = mapped_column(Text, nullable=True)
    emergency_contact: Mapped[str | None] = mapped_column(Text, nullable=True)
    insurance_info: Mapped[str | None] = mapped_column(Text, nullable=True)
    doctor_info: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns() -> list:
    return [
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
    ]


def _timestamps(updated: bool = True) -> list:
    cols = [sa.Column("created_at", sa.DateTime(), nullable=False)]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime(), nullable=True))
    return cols


def _text(*names: str) -> list:
    return [sa.Column(n, sa.Text(), nullable=True) for n in names]


def upgrade() -> None:
    # --- personal_info ---
    op.create_table(
        "personal_info",
        *_base_columns(),
        sa.Column("name", sa.String(128), nullable=True),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("gender", sa.String(32), nullable=True),
        sa.Column("occupation", sa.String(128), nullable=True),
        *_text("health_status", "chronic_diseases", "medical_history", "family_medical_history"),
        sa.Column("height", sa.Float(), nullable=True),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("bmi", sa.Float(), nullable=True),
        sa.Column("blood_pressure", sa.String(32), nullable=True),
        sa.Column("heart_rate", sa.Integer(), nullable=True),
        sa.Column("blood_sugar", sa.String(32), nullable=True),
        sa.Column("blood_type", sa.String(16), nullable=True),
        *_text(
            "vision", "hearing", "allergies", "medications", "supplements",
            "exercise_habits", "sleep_pattern", "smoking_status", "drinking_habits",
            "diet_restrictions", "mental_health", "stress_level", "education",
            "relationship_status", "family_info", "contact_info", "emergency_contact",
            "insurance_info", "doctor_info",
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_personal_info_created_at", "personal_info", ["created_at"])

    # --- preferences ---
    op.create_table(
        "preferences",
        *_base_columns(),
        sa.Column("category", sa.String(64), nullable=True),
        sa.Column("item", sa.String(256), nullable=True),
        sa.Column("preference_type", sa.String(16), nullable=True),
        sa.Column("intensity", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("preference_type IN ('like', 'dislike')", name="ck_preferences_type"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_preferences_category", "preferences", ["category"])
    op.create_index("ix_preferences_created_at", "preferences", ["created_at"])

    # --- milestones ---
    op.create_table(
        "milestones",
        *_base_columns(),
        sa.Column("title", sa.String(256), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(64), nullable=True),
        sa.Column("status", sa.String(16), nullable=True),
        sa.Column("target_date", sa.String(32), nullable=True),
        sa.Column("completed_date", sa.String(32), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('planned', 'in_progress', 'completed', 'cancelled')",
            name="ck_milestones_status",
        ),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_milestones_created_at", "milestones", ["created_at"])

    # --- moods ---
    op.create_table(
        "moods",
        *_base_columns(),
        sa.Column("mood_score", sa.Integer(), nullable=True),
        sa.Column("mood_type", sa.String(64), nullable=True),
        *_text("description", "triggers"),
        sa.Column("weather", sa.String(64), nullable=True),
        sa.Column("location", sa.String(128), nullable=True),
        sa.Column("date", sa.String(32), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("mood_score >= 1 AND mood_score <= 10", name="ck_moods_score_range"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_moods_date", "moods", ["date"])
    op.create_index("ix_moods_created_at", "moods", ["created_at"])

    # --- thoughts ---
    op.create_table(
        "thoughts",
        *_base_columns(),
        sa.Column("title", sa.String(256), nullable=True),
        sa.Column("category", sa.String(64), nullable=True),
        sa.Column("tags", sa.String(512), nullable=True),
        sa.Column("inspiration_source", sa.Text(), nullable=True),
        sa.Column("is_favorite", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_thoughts_created_at", "thoughts", ["created_at"])

    # --- food_records ---
    op.create_table(
        "food_records",
        *_base_columns(),
        sa.Column("food_name", sa.String(128), nullable=True),
        sa.Column("quantity", sa.String(64), nullable=True),
        sa.Column("meal_time", sa.String(32), nullable=True),
        sa.Column("calories", sa.Integer(), nullable=True),
        sa.Column("taste_rating", sa.Integer(), nullable=True),
        sa.Column("location", sa.String(128), nullable=True),
        sa.Column("mood", sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_food_records_created_at", "food_records", ["created_at"])

    # --- chat_history (append-only, no updated_at) ---
    op.create_table(
        "chat_history",
        *_base_columns(),
        *_text("user_message", "ai_response"),
        sa.Column("session_id", sa.String(64), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_chat_history_session_id", "chat_history", ["session_id"])
    op.create_index("ix_chat_history_created_at", "chat_history", ["created_at"])


def downgrade() -> None:
    for table in (
        "chat_history", "food_records", "thoughts", "moods",
        "milestones", "preferences", "personal_info",
    ):
        op.drop_table(table)

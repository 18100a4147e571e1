"""Initial schema: users, mood entries, journal entries

Revision ID: 3f1c9a7e2b10
Revises:
Create Date: 2026-10-18 09:00:00.000000+00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f1c9a7e2b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Stored by enum member name
USER_ROLE_VALUES = ("USER", "ADMIN", "THERAPIST")
MOOD_TYPE_VALUES = (
    "HAPPY",
    "SAD",
    "ANXIOUS",
    "ANGRY",
    "CALM",
    "EXCITED",
    "GRATEFUL",
    "TIRED",
    "NEUTRAL",
)

user_role = postgresql.ENUM(*USER_ROLE_VALUES, name="userrole", create_type=False)
mood_type = postgresql.ENUM(*MOOD_TYPE_VALUES, name="moodtype", create_type=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    bind = op.get_bind()
    user_role.create(bind, checkfirst=True)
    mood_type.create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("token_version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("avatar_url", sa.String(length=500), nullable=True),
        sa.Column("preferences", postgresql.JSONB(), nullable=True),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_created_at", "users", ["created_at"])

    op.create_table(
        "mood_entries",
        sa.Column("mood_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("mood", mood_type, nullable=False),
        sa.Column("intensity", sa.Integer(), nullable=False),
        sa.Column("note", sa.String(length=500), nullable=True),
        sa.Column("activities", postgresql.JSONB(), nullable=False),
        sa.Column("tags", postgresql.JSONB(), nullable=False),
        sa.Column("sleep_quality", sa.Integer(), nullable=True),
        sa.Column("weather", sa.String(length=100), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("is_shared", sa.Boolean(), nullable=False),
        sa.Column("ai_insights", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("mood_id"),
    )
    op.create_index("idx_mood_user_created", "mood_entries", ["user_id", "created_at"])
    op.create_index("idx_mood_user_mood", "mood_entries", ["user_id", "mood"])
    op.create_index("ix_mood_entries_created_at", "mood_entries", ["created_at"])

    op.create_table(
        "journal_entries",
        sa.Column("entry_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=100), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("emotion", mood_type, nullable=False),
        sa.Column("sentiment_score", sa.Float(), nullable=True),
        sa.Column("mood", sa.Integer(), nullable=False),
        sa.Column("tags", postgresql.JSONB(), nullable=False),
        sa.Column("activities", postgresql.JSONB(), nullable=False),
        sa.Column("is_private", sa.Boolean(), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("weather", sa.String(length=100), nullable=True),
        sa.Column("sleep_hours", sa.Float(), nullable=True),
        sa.Column("ai_insights", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("entry_id"),
    )
    op.create_index("idx_journal_user_created", "journal_entries", ["user_id", "created_at"])
    op.create_index("idx_journal_emotion", "journal_entries", ["user_id", "emotion"])
    op.create_index("ix_journal_entries_created_at", "journal_entries", ["created_at"])


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table("journal_entries")
    op.drop_table("mood_entries")
    op.drop_table("users")

    bind = op.get_bind()
    mood_type.drop(bind, checkfirst=True)
    user_role.drop(bind, checkfirst=True)

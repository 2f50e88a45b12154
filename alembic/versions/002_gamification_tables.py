"""Gamification tables.

Creates achievements, user_achievements, point_transactions and levels.
Definitions are seeded by the application on startup.

Revision ID: 002_gamification_tables
Revises: 001_directory_tables
Create Date: 2026-01-10
"""

from collections.abc import Sequence

from alembic import op

revision: str = "002_gamification_tables"
down_revision: str | None = "001_directory_tables"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Achievement definitions ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS achievements (
            id SERIAL PRIMARY KEY,
            key VARCHAR(64) UNIQUE NOT NULL,
            name VARCHAR(128) NOT NULL,
            description TEXT NOT NULL,
            points INTEGER NOT NULL,
            category VARCHAR(16) NOT NULL,
            icon_name VARCHAR(64),
            action_url VARCHAR(256),
            sort_order INTEGER NOT NULL DEFAULT 0,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_achievements_category ON achievements(category)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_achievements_is_active ON achievements(is_active)")

    # --- Earned achievements (at most once per user) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_achievements (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id),
            achievement_id INTEGER NOT NULL REFERENCES achievements(id),
            completed_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_user_achievements_user_achievement UNIQUE (user_id, achievement_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_user_achievements_user_id ON user_achievements(user_id)")
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_user_achievements_achievement_id ON user_achievements(achievement_id)"
    )
    op.execute("CREATE INDEX IF NOT EXISTS ix_user_achievements_completed_at ON user_achievements(completed_at)")

    # --- Points ledger (append-only) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS point_transactions (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id),
            achievement_id INTEGER REFERENCES achievements(id),
            points INTEGER NOT NULL,
            reason VARCHAR(256) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_point_transactions_user_id ON point_transactions(user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_point_transactions_created_at ON point_transactions(created_at)")

    # --- Levels ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS levels (
            id SERIAL PRIMARY KEY,
            level_number INTEGER UNIQUE NOT NULL,
            name VARCHAR(64) NOT NULL,
            points_required INTEGER NOT NULL,
            description TEXT,
            icon_name VARCHAR(64),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_levels_points_required ON levels(points_required)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS levels CASCADE")
    op.execute("DROP TABLE IF EXISTS point_transactions CASCADE")
    op.execute("DROP TABLE IF EXISTS user_achievements CASCADE")
    op.execute("DROP TABLE IF EXISTS achievements CASCADE")

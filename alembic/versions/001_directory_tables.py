"""Directory tables: users, magic-link attempts, people, contacts, interests, groups.

Revision ID: 001_directory_tables
Revises:
Create Date: 2026-01-05
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_directory_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id SERIAL PRIMARY KEY,
            email VARCHAR(320) UNIQUE NOT NULL,
            email_verified BOOLEAN NOT NULL DEFAULT false,
            verification_token_hash VARCHAR(128),
            is_admin BOOLEAN NOT NULL DEFAULT false,
            deleted BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_users_verification_token_hash
        ON users(verification_token_hash)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_users_email_lower
        ON users(LOWER(email))
    """)

    # --- Magic-link attempts ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS authentication_attempts (
            id SERIAL PRIMARY KEY,
            email VARCHAR(320) NOT NULL,
            token_hash VARCHAR(128) UNIQUE NOT NULL,
            expires_at TIMESTAMPTZ NOT NULL,
            used BOOLEAN NOT NULL DEFAULT false,
            used_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_authentication_attempts_email
        ON authentication_attempts(email)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_authentication_attempts_expires_at
        ON authentication_attempts(expires_at)
    """)

    # --- People ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS people (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            display_id VARCHAR(32) UNIQUE NOT NULL,
            first_name VARCHAR(100) NOT NULL,
            last_name VARCHAR(100),
            pronouns VARCHAR(50),
            image_url TEXT,
            deleted BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_people_user_id ON people(user_id)")

    # --- Contact information ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS contact_information (
            id SERIAL PRIMARY KEY,
            person_id INTEGER NOT NULL REFERENCES people(id) ON DELETE CASCADE,
            type VARCHAR(16) NOT NULL,
            label VARCHAR(100),
            value TEXT NOT NULL,
            privacy VARCHAR(16) NOT NULL DEFAULT 'PUBLIC',
            latitude DOUBLE PRECISION,
            longitude DOUBLE PRECISION,
            deleted BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_contact_information_person_id
        ON contact_information(person_id)
    """)

    # --- Interests ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS interests (
            id SERIAL PRIMARY KEY,
            name VARCHAR(100) NOT NULL,
            description TEXT,
            deleted BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_interests_name ON interests(name)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS person_interests (
            id SERIAL PRIMARY KEY,
            person_id INTEGER NOT NULL REFERENCES people(id) ON DELETE CASCADE,
            interest_id INTEGER NOT NULL REFERENCES interests(id) ON DELETE CASCADE,
            level INTEGER NOT NULL DEFAULT 3,
            CONSTRAINT uq_person_interests_person_interest UNIQUE (person_id, interest_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_person_interests_person_id ON person_interests(person_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_person_interests_interest_id ON person_interests(interest_id)")

    # --- Groups ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS groups (
            id SERIAL PRIMARY KEY,
            name VARCHAR(200) NOT NULL,
            description TEXT,
            deleted BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS person_groups (
            id SERIAL PRIMARY KEY,
            person_id INTEGER NOT NULL REFERENCES people(id) ON DELETE CASCADE,
            group_id INTEGER NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
            is_admin BOOLEAN NOT NULL DEFAULT false,
            joined_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_person_groups_person_group UNIQUE (person_id, group_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_person_groups_person_id ON person_groups(person_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_person_groups_group_id ON person_groups(group_id)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS person_groups CASCADE")
    op.execute("DROP TABLE IF EXISTS groups CASCADE")
    op.execute("DROP TABLE IF EXISTS person_interests CASCADE")
    op.execute("DROP TABLE IF EXISTS interests CASCADE")
    op.execute("DROP TABLE IF EXISTS contact_information CASCADE")
    op.execute("DROP TABLE IF EXISTS people CASCADE")
    op.execute("DROP TABLE IF EXISTS authentication_attempts CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")

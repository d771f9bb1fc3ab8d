"""Progression tables: levels, streaks, achievements, challenges and games.

Revision ID: 002_progression_tables
Revises: 001_ledger_tables
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "002_progression_tables"
down_revision: str | None = "001_ledger_tables"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Levels + XP audit trail ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_levels (
            user_id VARCHAR(64) PRIMARY KEY,
            current_level INTEGER NOT NULL DEFAULT 1,
            current_xp INTEGER NOT NULL DEFAULT 0,
            total_xp INTEGER NOT NULL DEFAULT 0,
            xp_to_next_level INTEGER NOT NULL DEFAULT 100,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS xp_ledger (
            id BIGSERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL,
            amount INTEGER NOT NULL,
            source VARCHAR(128) NOT NULL,
            source_id VARCHAR(128),
            idempotency_key VARCHAR(256),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_xp_ledger_user_idempotency UNIQUE (user_id, idempotency_key)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_xp_ledger_user_id
        ON xp_ledger(user_id, created_at DESC)
    """)

    # --- Streaks ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS learning_streaks (
            user_id VARCHAR(64) PRIMARY KEY,
            current_streak INTEGER NOT NULL DEFAULT 0,
            longest_streak INTEGER NOT NULL DEFAULT 0,
            last_activity_date DATE,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Achievements ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS achievements (
            id SERIAL PRIMARY KEY,
            slug VARCHAR(64) UNIQUE NOT NULL,
            name VARCHAR(128) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            category VARCHAR(32) NOT NULL DEFAULT 'general',
            requirement_type VARCHAR(32) NOT NULL,
            requirement_value INTEGER NOT NULL,
            xp_reward INTEGER NOT NULL DEFAULT 0,
            playcoins_reward INTEGER NOT NULL DEFAULT 0,
            sort_order INTEGER NOT NULL DEFAULT 0,
            is_active BOOLEAN NOT NULL DEFAULT true
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_achievements (
            id SERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL,
            achievement_id INTEGER NOT NULL REFERENCES achievements(id),
            progress INTEGER NOT NULL DEFAULT 0,
            unlocked_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_user_achievements_user_achievement UNIQUE (user_id, achievement_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_user_achievements_user_id
        ON user_achievements(user_id)
    """)

    # --- Challenges ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS challenges (
            id SERIAL PRIMARY KEY,
            slug VARCHAR(64) UNIQUE NOT NULL,
            cadence VARCHAR(16) NOT NULL,
            title VARCHAR(128) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            challenge_type VARCHAR(32) NOT NULL,
            requirement_value INTEGER NOT NULL,
            playcoins_reward INTEGER NOT NULL DEFAULT 0,
            xp_reward INTEGER NOT NULL DEFAULT 0,
            is_active BOOLEAN NOT NULL DEFAULT true
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_challenges_cadence
        ON challenges(cadence)
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_challenges (
            id BIGSERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL,
            challenge_id INTEGER NOT NULL REFERENCES challenges(id),
            period_start DATE NOT NULL,
            progress INTEGER NOT NULL DEFAULT 0,
            is_completed BOOLEAN NOT NULL DEFAULT false,
            is_claimed BOOLEAN NOT NULL DEFAULT false,
            completed_at TIMESTAMPTZ,
            claimed_at TIMESTAMPTZ,
            CONSTRAINT uq_user_challenges_user_challenge_period UNIQUE (user_id, challenge_id, period_start)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_user_challenges_user_id
        ON user_challenges(user_id, period_start)
    """)

    # --- Games ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS games (
            id SERIAL PRIMARY KEY,
            slug VARCHAR(64) UNIQUE NOT NULL,
            name VARCHAR(128) NOT NULL,
            subject VARCHAR(32) NOT NULL,
            description TEXT,
            difficulty_level INTEGER NOT NULL DEFAULT 1,
            playcoins_reward INTEGER NOT NULL DEFAULT 0,
            xp_reward INTEGER NOT NULL DEFAULT 0,
            is_active BOOLEAN NOT NULL DEFAULT true
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_game_progress (
            id BIGSERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL,
            game_id INTEGER NOT NULL REFERENCES games(id),
            score INTEGER NOT NULL DEFAULT 0,
            max_score INTEGER NOT NULL DEFAULT 0,
            completion_percentage INTEGER NOT NULL DEFAULT 0,
            is_completed BOOLEAN NOT NULL DEFAULT false,
            completed_at TIMESTAMPTZ,
            time_spent_seconds INTEGER NOT NULL DEFAULT 0,
            attempts INTEGER NOT NULL DEFAULT 0,
            game_state JSONB NOT NULL DEFAULT '{}',
            last_played_at TIMESTAMPTZ,
            updated_at TIMESTAMPTZ,
            CONSTRAINT uq_user_game_progress_user_game UNIQUE (user_id, game_id)
        )
    """)

    # --- Task submissions (written by the task review flow, counted here) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS task_submissions (
            id BIGSERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL,
            task_id VARCHAR(64) NOT NULL,
            status VARCHAR(16) NOT NULL DEFAULT 'pending',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_task_submissions_user_status
        ON task_submissions(user_id, status)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS task_submissions CASCADE")
    op.execute("DROP TABLE IF EXISTS user_game_progress CASCADE")
    op.execute("DROP TABLE IF EXISTS games CASCADE")
    op.execute("DROP TABLE IF EXISTS user_challenges CASCADE")
    op.execute("DROP TABLE IF EXISTS challenges CASCADE")
    op.execute("DROP TABLE IF EXISTS user_achievements CASCADE")
    op.execute("DROP TABLE IF EXISTS achievements CASCADE")
    op.execute("DROP TABLE IF EXISTS learning_streaks CASCADE")
    op.execute("DROP TABLE IF EXISTS xp_ledger CASCADE")
    op.execute("DROP TABLE IF EXISTS user_levels CASCADE")

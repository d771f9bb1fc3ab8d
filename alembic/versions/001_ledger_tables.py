"""PlayCoins ledger tables.

Creates playcoins_wallets, playcoins_transactions, rewards and
reward_redemptions.

Revision ID: 001_ledger_tables
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_ledger_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Wallets ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS playcoins_wallets (
            user_id VARCHAR(64) PRIMARY KEY,
            balance INTEGER NOT NULL DEFAULT 0,
            total_earned INTEGER NOT NULL DEFAULT 0,
            total_spent INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_playcoins_wallets_balance_non_negative CHECK (balance >= 0)
        )
    """)

    # --- Transactions (append-only) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS playcoins_transactions (
            id BIGSERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL,
            amount INTEGER NOT NULL,
            transaction_type VARCHAR(16) NOT NULL,
            source_type VARCHAR(32) NOT NULL,
            source_id VARCHAR(128),
            description VARCHAR(256),
            balance_after INTEGER NOT NULL,
            idempotency_key VARCHAR(256),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_playcoins_transactions_user_idempotency UNIQUE (user_id, idempotency_key)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_playcoins_transactions_user_id
        ON playcoins_transactions(user_id, created_at DESC)
    """)

    # --- Reward catalog ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS rewards (
            id SERIAL PRIMARY KEY,
            slug VARCHAR(64) UNIQUE NOT NULL,
            name VARCHAR(128) NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            category VARCHAR(32) NOT NULL,
            playcoins_cost INTEGER NOT NULL,
            stock_quantity INTEGER,
            is_active BOOLEAN NOT NULL DEFAULT true
        )
    """)

    # --- Redemptions ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS reward_redemptions (
            id BIGSERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL,
            reward_id INTEGER NOT NULL REFERENCES rewards(id),
            playcoins_spent INTEGER NOT NULL,
            delivery_address TEXT,
            status VARCHAR(16) NOT NULL DEFAULT 'pending',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_reward_redemptions_user_id
        ON reward_redemptions(user_id)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS reward_redemptions CASCADE")
    op.execute("DROP TABLE IF EXISTS rewards CASCADE")
    op.execute("DROP TABLE IF EXISTS playcoins_transactions CASCADE")
    op.execute("DROP TABLE IF EXISTS playcoins_wallets CASCADE")

"""PlayCoins ledger: credit, debit and reward redemption.

The wallet row is only ever changed by single atomic statements (upsert for
credits, conditional update for debits), so concurrent requests for the same
user serialize in the database and the balance can never go negative.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal, get_args

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from playquest.database import upsert
from playquest.db.models import PlaycoinsTransaction, PlaycoinsWallet, Reward, RewardRedemption
from playquest.errors import (
    AccountNotFound,
    InsufficientBalance,
    InvalidAmount,
    OutOfStock,
    RewardNotFound,
)

logger = logging.getLogger(__name__)

SourceType = Literal["game", "task", "achievement", "bonus", "streak", "reward", "challenge"]
SOURCE_TYPES = frozenset(get_args(SourceType))

# Balance changes go through Core statements on the table so they stay
# single atomic round trips.
_wallets = PlaycoinsWallet.__table__


@dataclass(frozen=True)
class CreditResult:
    balance: int
    total_earned: int
    amount_awarded: int


@dataclass(frozen=True)
class DebitResult:
    balance: int
    total_spent: int


@dataclass(frozen=True)
class RedemptionResult:
    balance: int
    redemption_id: int
    reward: str


def _check_amount(amount: int) -> None:
    if amount is None or amount <= 0:
        msg = "Invalid request: positive amount required"
        raise InvalidAmount(msg)


def _check_source_type(source_type: str) -> None:
    if source_type not in SOURCE_TYPES:
        msg = f"Unknown source_type: {source_type}"
        raise ValueError(msg)


async def get_wallet(db: AsyncSession, user_id: str) -> PlaycoinsWallet | None:
    """Fetch the wallet, refreshing any stale copy held by the session."""
    result = await db.execute(
        select(PlaycoinsWallet)
        .where(PlaycoinsWallet.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _find_by_idempotency_key(db: AsyncSession, user_id: str, key: str) -> PlaycoinsTransaction | None:
    result = await db.execute(
        select(PlaycoinsTransaction).where(
            PlaycoinsTransaction.user_id == user_id,
            PlaycoinsTransaction.idempotency_key == key,
        )
    )
    return result.scalar_one_or_none()


async def credit(
    db: AsyncSession,
    user_id: str,
    amount: int,
    source_type: str,
    source_id: str | None = None,
    description: str = "",
    idempotency_key: str | None = None,
) -> CreditResult:
    """Credit PlayCoins, creating the wallet on first use.

    A repeated ``idempotency_key`` for the same user credits nothing and
    reports ``amount_awarded=0`` with the current balance.
    """
    _check_amount(amount)
    _check_source_type(source_type)

    if idempotency_key is not None and await _find_by_idempotency_key(db, user_id, idempotency_key):
        wallet = await get_wallet(db, user_id)
        logger.info("Duplicate credit ignored: %s", idempotency_key)
        return CreditResult(
            balance=wallet.balance if wallet else 0,
            total_earned=wallet.total_earned if wallet else 0,
            amount_awarded=0,
        )

    now = datetime.now(timezone.utc)
    stmt = upsert(db, _wallets).values(
        user_id=user_id,
        balance=amount,
        total_earned=amount,
        total_spent=0,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id"],
        set_={
            "balance": _wallets.c.balance + amount,
            "total_earned": _wallets.c.total_earned + amount,
            "updated_at": now,
        },
    ).returning(_wallets.c.balance, _wallets.c.total_earned)
    row = (await db.execute(stmt)).one()

    db.add(PlaycoinsTransaction(
        user_id=user_id,
        amount=amount,
        transaction_type="earn",
        source_type=source_type,
        source_id=source_id,
        description=description,
        balance_after=row.balance,
        idempotency_key=idempotency_key,
        created_at=now,
    ))
    await db.flush()

    logger.info("Awarded %d PlayCoins to user %s for %s", amount, user_id, source_type)
    return CreditResult(balance=row.balance, total_earned=row.total_earned, amount_awarded=amount)


async def debit(
    db: AsyncSession,
    user_id: str,
    amount: int,
    source_type: str = "reward",
    source_id: str | None = None,
    description: str = "",
) -> DebitResult:
    """Debit PlayCoins. Rejects (never clamps) when the balance is too low."""
    _check_amount(amount)
    _check_source_type(source_type)

    now = datetime.now(timezone.utc)
    stmt = (
        update(_wallets)
        .where(
            _wallets.c.user_id == user_id,
            _wallets.c.balance >= amount,
        )
        .values(
            balance=_wallets.c.balance - amount,
            total_spent=_wallets.c.total_spent + amount,
            updated_at=now,
        )
        .returning(_wallets.c.balance, _wallets.c.total_spent)
    )
    row = (await db.execute(stmt)).one_or_none()

    if row is None:
        wallet = await get_wallet(db, user_id)
        if wallet is None:
            raise AccountNotFound
        raise InsufficientBalance(required=amount, current=wallet.balance)

    db.add(PlaycoinsTransaction(
        user_id=user_id,
        amount=-amount,
        transaction_type="spend",
        source_type=source_type,
        source_id=source_id,
        description=description,
        balance_after=row.balance,
        created_at=now,
    ))
    await db.flush()

    logger.info("Debited %d PlayCoins from user %s", amount, user_id)
    return DebitResult(balance=row.balance, total_spent=row.total_spent)


async def redeem_reward(
    db: AsyncSession,
    user_id: str,
    reward_id: int,
    delivery_address: str | None = None,
) -> RedemptionResult:
    """Spend PlayCoins on a catalog reward and record a pending redemption.

    Caller commits; on any error the caller's rollback undoes the debit.
    """
    result = await db.execute(
        select(Reward)
        .where(Reward.id == reward_id, Reward.is_active.is_(True))
        .execution_options(populate_existing=True)
    )
    reward = result.scalar_one_or_none()
    if reward is None:
        raise RewardNotFound
    if reward.stock_quantity is not None and reward.stock_quantity <= 0:
        raise OutOfStock

    spent = await debit(
        db,
        user_id,
        reward.playcoins_cost,
        source_type="reward",
        source_id=str(reward.id),
        description=f"Redeemed: {reward.name}",
    )

    if reward.stock_quantity is not None:
        rewards = Reward.__table__
        stock = await db.execute(
            update(rewards)
            .where(rewards.c.id == reward.id, rewards.c.stock_quantity > 0)
            .values(stock_quantity=rewards.c.stock_quantity - 1)
            .returning(rewards.c.stock_quantity)
        )
        if stock.one_or_none() is None:
            raise OutOfStock

    redemption = RewardRedemption(
        user_id=user_id,
        reward_id=reward.id,
        playcoins_spent=reward.playcoins_cost,
        delivery_address=delivery_address,
        status="pending",
        created_at=datetime.now(timezone.utc),
    )
    db.add(redemption)
    await db.flush()

    logger.info("User %s redeemed reward %s, balance now %d", user_id, reward.slug, spent.balance)
    return RedemptionResult(balance=spent.balance, redemption_id=redemption.id, reward=reward.name)


async def list_transactions(
    db: AsyncSession,
    user_id: str,
    page: int = 1,
    per_page: int = 50,
) -> tuple[list[PlaycoinsTransaction], int]:
    """Newest-first transaction history and the total row count."""
    total_result = await db.execute(
        select(func.count())
        .select_from(PlaycoinsTransaction)
        .where(PlaycoinsTransaction.user_id == user_id)
    )
    result = await db.execute(
        select(PlaycoinsTransaction)
        .where(PlaycoinsTransaction.user_id == user_id)
        .order_by(PlaycoinsTransaction.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), total_result.scalar_one()


async def list_rewards(db: AsyncSession) -> list[Reward]:
    result = await db.execute(
        select(Reward).where(Reward.is_active.is_(True)).order_by(Reward.playcoins_cost, Reward.id)
    )
    return list(result.scalars().all())


async def list_redemptions(db: AsyncSession, user_id: str) -> list[RewardRedemption]:
    result = await db.execute(
        select(RewardRedemption)
        .where(RewardRedemption.user_id == user_id)
        .order_by(RewardRedemption.id.desc())
    )
    return list(result.scalars().all())

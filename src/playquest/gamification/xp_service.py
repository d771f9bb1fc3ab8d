"""XP grant service with idempotency and multi-level cascade."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from playquest.database import upsert
from playquest.db.models import UserLevel, XPLedger
from playquest.errors import InvalidAmount
from playquest.gamification.level_curve import apply_xp, xp_for_level
from playquest.redis_client import publish_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class XPResult:
    current_level: int
    current_xp: int
    total_xp: int
    xp_to_next_level: int
    xp_gained: int
    levels_gained: int

    @property
    def level_up(self) -> bool:
        return self.levels_gained > 0


async def get_level_state(db: AsyncSession, user_id: str) -> UserLevel | None:
    result = await db.execute(
        select(UserLevel)
        .where(UserLevel.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_or_create_level(db: AsyncSession, user_id: str) -> UserLevel:
    """Insert the level state if missing, then return it row-locked."""
    await db.execute(
        upsert(db, UserLevel.__table__)
        .values(
            user_id=user_id,
            current_level=1,
            current_xp=0,
            total_xp=0,
            xp_to_next_level=xp_for_level(1),
            updated_at=datetime.now(timezone.utc),
        )
        .on_conflict_do_nothing(index_elements=["user_id"])
    )
    result = await db.execute(
        select(UserLevel)
        .where(UserLevel.user_id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def add_xp(
    db: AsyncSession,
    redis: object,
    user_id: str,
    amount: int,
    source: str,
    source_id: str | None = None,
    idempotency_key: str | None = None,
) -> XPResult:
    """Grant XP to a user and cascade level-ups.

    1. Insert into xp_ledger (skipped entirely on a duplicate idempotency key)
    2. Add to current_xp / total_xp
    3. Level up while current_xp >= xp_to_next_level
    4. If levels were gained, broadcast level_up
    """
    if amount is None or amount <= 0:
        msg = "user_id and positive xp_amount required"
        raise InvalidAmount(msg)

    if idempotency_key is not None:
        existing = await db.execute(
            select(XPLedger).where(
                XPLedger.user_id == user_id,
                XPLedger.idempotency_key == idempotency_key,
            )
        )
        if existing.scalar_one_or_none():
            state = await get_or_create_level(db, user_id)
            logger.info("Duplicate XP grant ignored: %s", idempotency_key)
            return XPResult(
                current_level=state.current_level,
                current_xp=state.current_xp,
                total_xp=state.total_xp,
                xp_to_next_level=state.xp_to_next_level,
                xp_gained=0,
                levels_gained=0,
            )

    now = datetime.now(timezone.utc)
    state = await get_or_create_level(db, user_id)
    old_level = state.current_level

    new_level, new_xp, threshold, levels_gained = apply_xp(state.current_level, state.current_xp, amount)
    state.current_level = new_level
    state.current_xp = new_xp
    state.xp_to_next_level = threshold
    state.total_xp += amount
    state.updated_at = now

    db.add(XPLedger(
        user_id=user_id,
        amount=amount,
        source=source,
        source_id=source_id,
        idempotency_key=idempotency_key,
        created_at=now,
    ))
    await db.flush()

    logger.info(
        "XP updated for %s: +%d from %s, level %d, xp %d/%d",
        user_id, amount, source, new_level, new_xp, threshold,
    )

    if levels_gained:
        await publish_event(redis, "pubsub:level_up", {
            "user_id": user_id,
            "old_level": old_level,
            "new_level": new_level,
            "levels_gained": levels_gained,
        })

    return XPResult(
        current_level=new_level,
        current_xp=new_xp,
        total_xp=state.total_xp,
        xp_to_next_level=threshold,
        xp_gained=amount,
        levels_gained=levels_gained,
    )


async def get_xp_history(
    db: AsyncSession,
    user_id: str,
    page: int = 1,
    per_page: int = 50,
) -> tuple[list[XPLedger], int]:
    """Newest-first XP ledger entries and the total count."""
    total_result = await db.execute(
        select(func.count()).select_from(XPLedger).where(XPLedger.user_id == user_id)
    )
    result = await db.execute(
        select(XPLedger)
        .where(XPLedger.user_id == user_id)
        .order_by(XPLedger.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), total_result.scalar_one()

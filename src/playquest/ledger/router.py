"""PlayCoins endpoints: award, spend, wallet, history and the reward catalog."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from playquest.auth.dependencies import (
    authorize_user,
    get_current_claims,
    get_current_user_id,
    require_service_role,
)
from playquest.database import get_session
from playquest.ledger import service
from playquest.ledger.schemas import (
    AwardRequest,
    AwardResponse,
    RedemptionEntry,
    RewardResponse,
    SpendRequest,
    SpendResponse,
    TransactionEntry,
    TransactionHistoryResponse,
    WalletResponse,
)

router = APIRouter(prefix="/api/v1", tags=["PlayCoins"])


@router.post("/playcoins/award", response_model=AwardResponse)
async def award_playcoins(
    body: AwardRequest,
    claims: dict[str, Any] = Depends(get_current_claims),
    db: AsyncSession = Depends(get_session),
):
    """Credit PlayCoins to a user."""
    authorize_user(claims, body.user_id)
    if body.idempotency_key is not None:
        require_service_role(claims, "idempotency_key is reserved for service callers")
    result = await service.credit(
        db,
        body.user_id,
        body.amount,
        source_type=body.source_type,
        source_id=body.source_id,
        description=body.description,
        idempotency_key=body.idempotency_key,
    )
    await db.commit()
    return AwardResponse(
        balance=result.balance,
        total_earned=result.total_earned,
        amount_awarded=result.amount_awarded,
    )


@router.post("/playcoins/spend", response_model=SpendResponse)
async def spend_playcoins(
    body: SpendRequest,
    claims: dict[str, Any] = Depends(get_current_claims),
    db: AsyncSession = Depends(get_session),
):
    """Redeem a catalog reward."""
    authorize_user(claims, body.user_id)
    result = await service.redeem_reward(db, body.user_id, body.reward_id, body.delivery_address)
    await db.commit()
    return SpendResponse(
        balance=result.balance,
        redemption_id=result.redemption_id,
        reward=result.reward,
    )


@router.get("/rewards", response_model=list[RewardResponse])
async def list_rewards(db: AsyncSession = Depends(get_session)):
    rewards = await service.list_rewards(db)
    return [RewardResponse.model_validate(r) for r in rewards]


# ── Authenticated user endpoints ──


@router.get("/users/me/wallet", response_model=WalletResponse)
async def get_my_wallet(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    """Current balance. Users who never earned anything see zeros."""
    wallet = await service.get_wallet(db, user_id)
    if wallet is None:
        return WalletResponse(user_id=user_id)
    return WalletResponse.model_validate(wallet)


@router.get("/users/me/transactions", response_model=TransactionHistoryResponse)
async def get_my_transactions(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    transactions, total = await service.list_transactions(db, user_id, page, per_page)
    return TransactionHistoryResponse(
        transactions=[TransactionEntry.model_validate(t) for t in transactions],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/users/me/redemptions", response_model=list[RedemptionEntry])
async def get_my_redemptions(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    redemptions = await service.list_redemptions(db, user_id)
    return [
        RedemptionEntry(
            id=r.id,
            reward_slug=r.reward.slug,
            reward_name=r.reward.name,
            playcoins_spent=r.playcoins_spent,
            status=r.status,
            created_at=r.created_at,
        )
        for r in redemptions
    ]

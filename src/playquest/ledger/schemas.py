"""Request and response models for PlayCoins endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from playquest.ledger.service import SourceType


class AwardRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    amount: int
    source_type: SourceType = "bonus"
    source_id: str | None = None
    description: str = ""
    idempotency_key: str | None = Field(default=None, max_length=256)


class AwardResponse(BaseModel):
    success: bool = True
    balance: int
    total_earned: int
    amount_awarded: int


class SpendRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    reward_id: int
    delivery_address: str | None = None


class SpendResponse(BaseModel):
    success: bool = True
    balance: int
    redemption_id: int
    reward: str


class WalletResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    balance: int = 0
    total_earned: int = 0
    total_spent: int = 0


class TransactionEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    amount: int
    transaction_type: str
    source_type: str
    source_id: str | None = None
    description: str | None = None
    balance_after: int
    created_at: datetime | None = None


class TransactionHistoryResponse(BaseModel):
    transactions: list[TransactionEntry]
    total: int
    page: int
    per_page: int


class RewardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    name: str
    description: str
    category: str
    playcoins_cost: int
    stock_quantity: int | None = None


class RedemptionEntry(BaseModel):
    id: int
    reward_slug: str
    reward_name: str
    playcoins_spent: int
    status: str
    created_at: datetime | None = None

"""Progression error taxonomy.

Services raise these before mutating anything; the global handler in
``playquest.middleware.error_handler`` turns them into JSON responses of the
form ``{"error": <kind>, "detail": <message>, ...extra}``.
"""

from __future__ import annotations

from typing import Any


class ProgressionError(Exception):
    """Base class for expected, caller-visible failures."""

    kind = "ProgressionError"
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None, **extra: Any) -> None:  # noqa: ANN401
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)


class InvalidAmount(ProgressionError):
    kind = "InvalidAmount"
    default_message = "Amount must be a positive integer"


class NotFound(ProgressionError):
    kind = "NotFound"
    status_code = 404
    default_message = "Not found"


class AccountNotFound(NotFound):
    kind = "WalletNotFound"
    default_message = "Wallet not found"


class RewardNotFound(NotFound):
    kind = "RewardNotFound"
    default_message = "Reward not found or inactive"


class GameNotFound(NotFound):
    kind = "GameNotFound"
    default_message = "Game not found"


class ChallengeNotFound(NotFound):
    kind = "NotFound"
    default_message = "Challenge not found"


class InsufficientBalance(ProgressionError):
    kind = "InsufficientBalance"
    default_message = "Insufficient balance"


class OutOfStock(ProgressionError):
    kind = "OutOfStock"
    status_code = 409
    default_message = "Reward out of stock"


class ChallengeNotCompleted(ProgressionError):
    kind = "ChallengeNotCompleted"
    status_code = 409
    default_message = "Challenge is not completed yet"


class ChallengeAlreadyClaimed(ProgressionError):
    kind = "ChallengeAlreadyClaimed"
    status_code = 409
    default_message = "Challenge reward already claimed"

"""FastAPI authentication dependencies."""

from __future__ import annotations

from typing import Any

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from playquest.auth.jwt import SERVICE_ROLE, verify_token

_bearer = HTTPBearer(auto_error=False)


async def get_current_claims(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> dict[str, Any]:
    """Verify the bearer token and return its claims. Raises 401 on failure."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Unauthenticated")
    try:
        return verify_token(credentials.credentials, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e


async def get_current_user_id(claims: dict[str, Any] = Depends(get_current_claims)) -> str:
    return str(claims["sub"])


def authorize_user(claims: dict[str, Any], user_id: str) -> None:
    """
    Allow acting on ``user_id`` only for that user or a service caller.

    Raises 403 otherwise.
    """
    if claims.get("role") == SERVICE_ROLE:
        return
    if str(claims.get("sub")) != user_id:
        raise HTTPException(status_code=403, detail="Not allowed to act on another user")


def require_service_role(claims: dict[str, Any], detail: str = "Service role required") -> None:
    """Raise 403 unless the token belongs to a backend service caller."""
    if claims.get("role") != SERVICE_ROLE:
        raise HTTPException(status_code=403, detail=detail)

"""Token creation and verification."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from playquest.auth.jwt import SERVICE_ROLE, create_access_token, verify_token
from playquest.config import get_settings


def test_round_trip_claims() -> None:
    payload = verify_token(create_access_token("user-1"))
    assert payload["sub"] == "user-1"
    assert payload["role"] == "authenticated"


def test_service_role() -> None:
    payload = verify_token(create_access_token("backend", SERVICE_ROLE))
    assert payload["role"] == SERVICE_ROLE


def test_expired_token_rejected() -> None:
    settings = get_settings()
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    token = jwt.encode(
        {"sub": "user-1", "type": "access", "iss": settings.jwt_issuer, "iat": past, "exp": past + timedelta(minutes=5)},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    with pytest.raises(jwt.InvalidTokenError, match="expired"):
        verify_token(token)


def test_wrong_secret_rejected() -> None:
    settings = get_settings()
    token = jwt.encode(
        {"sub": "user-1", "type": "access", "iss": settings.jwt_issuer},
        "some-other-secret-of-a-reasonable-length",
        algorithm=settings.jwt_algorithm,
    )
    with pytest.raises(jwt.InvalidTokenError):
        verify_token(token)


def test_wrong_type_rejected() -> None:
    settings = get_settings()
    token = jwt.encode(
        {"sub": "user-1", "type": "refresh", "iss": settings.jwt_issuer},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    with pytest.raises(jwt.InvalidTokenError, match="Expected token type"):
        verify_token(token)

"""
Tests for entitlement token issuance: payload, expiry window and the endpoint.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from httpx import AsyncClient

from app.core.config import get_settings
from app.core.security import Role
from app.services.token_service import EntitlementTokenIssuer

from conftest import CONCERT_ID, THEATER_ID

FIXED_NOW = datetime(2026, 10, 17, 12, 0, 0, tzinfo=timezone.utc)


def decode(token: str, secret: str = "issuer-secret", **kwargs) -> dict:
    return jwt.decode(token, secret, algorithms=["HS256"], **kwargs)


def test_token_payload_and_expiry_window():
    issuer = EntitlementTokenIssuer("issuer-secret", ttl_seconds=35, clock=lambda: FIXED_NOW)

    token = issuer.issue(101, Role.LOYAL, [3, 3, 4])
    claims = decode(token, options={"verify_exp": False, "verify_iat": False})

    assert claims["reservations"] == [3, 3, 4]
    assert claims["role"] == 1
    assert claims["sub"] == "101"
    assert claims["exp"] - claims["iat"] == 35
    assert claims["iat"] == int(FIXED_NOW.timestamp())


def test_token_with_no_reservation_is_still_issued():
    issuer = EntitlementTokenIssuer("issuer-secret")
    claims = decode(issuer.issue(101, Role.REGULAR, []))
    assert claims["reservations"] == []
    assert claims["role"] == 0


def test_token_expires_after_window():
    issued_long_ago = datetime.now(timezone.utc) - timedelta(seconds=36)
    issuer = EntitlementTokenIssuer("issuer-secret", ttl_seconds=35, clock=lambda: issued_long_ago)

    with pytest.raises(jwt.ExpiredSignatureError):
        decode(issuer.issue(101, Role.REGULAR, [1]))


def test_empty_secret_rejected():
    with pytest.raises(ValueError):
        EntitlementTokenIssuer("")


@pytest.mark.asyncio
async def test_issue_token_endpoint(client: AsyncClient, headers_b):
    """Token carries the caller's reserved rows and role from the session."""
    await client.post(
        f"/api/v1/concerts/{CONCERT_ID}/reservations",
        params={"theater_id": THEATER_ID},
        json=[2, 7],
        headers=headers_b,
    )

    response = await client.get("/api/v1/auth-token", params={"concert_id": CONCERT_ID}, headers=headers_b)

    assert response.status_code == 200
    data = response.json()
    assert data["expires_in"] == 35
    claims = decode(data["token"], get_settings().TOKEN_SECRET)
    assert claims["reservations"] == [1, 2]
    assert claims["role"] == int(Role.LOYAL)


@pytest.mark.asyncio
async def test_issue_token_without_reservation(client: AsyncClient, headers_a):
    response = await client.get("/api/v1/auth-token", params={"concert_id": CONCERT_ID}, headers=headers_a)

    assert response.status_code == 200
    claims = decode(response.json()["token"], get_settings().TOKEN_SECRET)
    assert claims["reservations"] == []


@pytest.mark.parametrize(
    "params",
    [
        {},
        {"concert_id": "abc"},
        {"concert_id": ""},
        {"concert_id": "0"},
        {"concert_id": str(2**70)},
        {"concert_id": "1.5"},
        {"concert_id": "12abc"},
    ],
)
@pytest.mark.asyncio
async def test_issue_token_invalid_concert_id(client: AsyncClient, headers_a, params):
    response = await client.get("/api/v1/auth-token", params=params, headers=headers_a)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_issue_token_unauthenticated(client: AsyncClient):
    response = await client.get("/api/v1/auth-token", params={"concert_id": CONCERT_ID})
    assert response.status_code == 401

"""
End-to-end: claim at the booking service, take the token to the estimator.
"""

import pytest
from httpx import AsyncClient

from app.core.security import Role
from app.services.token_service import EntitlementTokenIssuer

from conftest import CONCERT_ID, THEATER_ID


async def fetch_token(client: AsyncClient, headers: dict) -> str:
    response = await client.get("/api/v1/auth-token", params={"concert_id": CONCERT_ID}, headers=headers)
    assert response.status_code == 200
    return response.json()["token"]


@pytest.mark.asyncio
async def test_estimation_from_issued_token(client: AsyncClient, estimator_client: AsyncClient, headers_b):
    await client.post(
        f"/api/v1/concerts/{CONCERT_ID}/reservations",
        params={"theater_id": THEATER_ID},
        json=[6, 7],
        headers=headers_b,
    )
    token = await fetch_token(client, headers_b)

    response = await estimator_client.get("/api/get-estimation", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    value = response.json()
    assert value.endswith("%")
    # Loyal user, rows [2, 2]: 4 + [5, 20] -> [9, 24]
    assert 9 <= int(value[:-1]) <= 24


@pytest.mark.asyncio
async def test_token_without_reservation_is_malformed(
    client: AsyncClient, estimator_client: AsyncClient, headers_a
):
    token = await fetch_token(client, headers_a)

    response = await estimator_client.get("/api/get-estimation", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "MALFORMED_PAYLOAD"


@pytest.mark.asyncio
async def test_missing_bearer_token(estimator_client: AsyncClient):
    response = await estimator_client.get("/api/get-estimation")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_foreign_signed_token(estimator_client: AsyncClient):
    token = EntitlementTokenIssuer("someone-elses-secret").issue(1, Role.LOYAL, [1, 2])

    response = await estimator_client.get("/api/get-estimation", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_estimator_health(estimator_client: AsyncClient):
    response = await estimator_client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

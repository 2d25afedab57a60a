"""
Entitlement token endpoint consumed before calling the discount estimator.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_reservation_manager, get_token_issuer
from app.core.exceptions import ValidationError
from app.core.security import Principal, get_current_principal
from app.db.base import MAX_ID
from app.schemas.token import EntitlementTokenResponse
from app.services.reservation_service import ReservationManager
from app.services.token_service import EntitlementTokenIssuer

router = APIRouter(tags=["Tokens"])


def _parse_concert_id(raw: Optional[str]) -> int:
    try:
        concert_id = int(raw)
    except (TypeError, ValueError):
        raise ValidationError("Invalid or missing concert_id", field="concert_id")
    if not 1 <= concert_id <= MAX_ID:
        raise ValidationError("Invalid or missing concert_id", field="concert_id")
    return concert_id


@router.get("/auth-token", response_model=EntitlementTokenResponse)
async def issue_token_endpoint(
    concert_id: Optional[str] = Query(None),
    principal: Principal = Depends(get_current_principal),
    manager: ReservationManager = Depends(get_reservation_manager),
    issuer: EntitlementTokenIssuer = Depends(get_token_issuer),
):
    """
    Mint a short-lived token with the caller's reserved rows for a concert.

    Without a reservation the token carries an empty row list, which the
    estimator rejects; ask for a token only after a successful claim.
    """
    concert = _parse_concert_id(concert_id)
    rows = await manager.reserved_row_numbers(principal.user_id, concert)
    token = issuer.issue(principal.user_id, principal.role, rows)
    return EntitlementTokenResponse(token=token, expires_in=int(issuer.ttl.total_seconds()))

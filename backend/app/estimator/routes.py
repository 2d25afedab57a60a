"""
Estimator endpoint: bearer entitlement token in, discount percentage out.
"""

from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import get_settings
from app.core.exceptions import InvalidToken
from app.estimator.service import DiscountEstimator

router = APIRouter(prefix="/api", tags=["Estimation"])

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache()
def get_estimator() -> DiscountEstimator:
    settings = get_settings()
    return DiscountEstimator(settings.TOKEN_SECRET, algorithm=settings.TOKEN_ALGORITHM)


@router.get("/get-estimation", response_model=str)
async def get_estimation(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    estimator: DiscountEstimator = Depends(get_estimator),
):
    """
    Estimate a loyalty discount from an entitlement token.

    Returns a percentage string such as "17%". The value includes a random
    component, so repeated calls with one token may differ.
    """
    if credentials is None:
        raise InvalidToken("Missing bearer token")
    discount = estimator.estimate(credentials.credentials)
    return f"{discount}%"

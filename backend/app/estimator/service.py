"""
Discount estimation from a verified entitlement token.

Formula:
  seat_sum = sum of reserved row numbers
  seat_sum /= 3 for regular users (loyal users keep the full sum)
  discount = round_half_up(seat_sum + randint(5, 20)), clamped to [5, 50]

The random bonus makes the result differ between calls with the same token.
That is current product behaviour and is intentionally not memoized.
"""

import math
import random
from typing import Optional

import jwt

from app.core.exceptions import InvalidToken, MalformedPayload
from app.core.logging import get_logger
from app.core.metrics import record_discount
from app.core.security import Role

logger = get_logger(__name__)

MIN_DISCOUNT = 5
MAX_DISCOUNT = 50
BONUS_MIN = 5
BONUS_MAX = 20
REGULAR_DIVISOR = 3


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class DiscountEstimator:
    def __init__(self, secret: str, algorithm: str = "HS256", rng: Optional[random.Random] = None):
        if not secret:
            raise ValueError("Entitlement token secret must not be empty")
        self.secret = secret
        self.algorithm = algorithm
        self.rng = rng or random.Random()

    def verify(self, token: str) -> dict:
        """Check signature and expiry. Nothing else runs on a token that fails here."""
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            record_discount("invalid_token")
            logger.warning("token_rejected", reason="expired")
            raise InvalidToken("Token has expired") from e
        except jwt.PyJWTError as e:
            record_discount("invalid_token")
            logger.warning("token_rejected", reason=type(e).__name__)
            raise InvalidToken() from e

    @staticmethod
    def validate_payload(claims: dict) -> tuple[list[int], Role]:
        reservations = claims.get("reservations")
        if (
            not isinstance(reservations, list)
            or not reservations
            or not all(type(row) is int for row in reservations)
        ):
            record_discount("malformed_payload")
            raise MalformedPayload("Invalid or missing reservations data", field="reservations")

        role = claims.get("role")
        if type(role) is not int or role not in (Role.REGULAR, Role.LOYAL):
            record_discount("malformed_payload")
            raise MalformedPayload("Invalid role", field="role")

        return reservations, Role(role)

    def compute(self, row_numbers: list[int], role: Role) -> int:
        seat_sum = sum(row_numbers)
        if role != Role.LOYAL:
            seat_sum = seat_sum / REGULAR_DIVISOR
        bonus = self.rng.randint(BONUS_MIN, BONUS_MAX)
        discount = round_half_up(seat_sum + bonus)
        return max(MIN_DISCOUNT, min(discount, MAX_DISCOUNT))

    def estimate(self, token: str) -> int:
        claims = self.verify(token)
        row_numbers, role = self.validate_payload(claims)
        discount = self.compute(row_numbers, role)

        record_discount("ok", discount)
        logger.info(
            "discount_estimated",
            user_id=claims.get("sub"),
            role=role.name.lower(),
            seats=len(row_numbers),
            discount=discount,
        )
        return discount

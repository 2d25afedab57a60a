"""
Entitlement token issuer.

A token is a signed, short-lived statement of the seat rows a user holds for
one concert, plus the user's role. The discount estimator trusts it instead
of querying the seat ledger. Tokens are never stored and cannot be revoked;
the expiry window bounds how stale the facts inside can get.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Sequence

import jwt

from app.core.logging import get_logger
from app.core.metrics import record_token_issued
from app.core.security import Role

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EntitlementTokenIssuer:
    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl_seconds: int = 35,
        clock: Callable[[], datetime] = utc_now,
    ):
        if not secret:
            raise ValueError("Entitlement token secret must not be empty")
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock

    def build_payload(self, user_id: int, role: Role, row_numbers: Sequence[int]) -> dict:
        issued_at = self.clock()
        return {
            "sub": str(user_id),
            "reservations": [int(row) for row in row_numbers],
            "role": int(role),
            "iat": issued_at,
            "exp": issued_at + self.ttl,
        }

    def issue(self, user_id: int, role: Role, row_numbers: Sequence[int]) -> str:
        """Sign a token for the given rows. An empty row list still yields a token."""
        payload = self.build_payload(user_id, role, row_numbers)
        token = jwt.encode(payload, self.secret, algorithm=self.algorithm)

        record_token_issued(bool(payload["reservations"]))
        logger.info(
            "token_issued",
            user_id=user_id,
            role=payload["role"],
            seats=len(payload["reservations"]),
            expires_at=payload["exp"].isoformat(),
        )
        return token

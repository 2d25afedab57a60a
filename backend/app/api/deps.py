"""
Service dependencies shared by the route modules.

Overridable in tests through `app.dependency_overrides`.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import get_settings
from app.db.session import get_session_factory
from app.services.reservation_service import ReservationManager
from app.services.token_service import EntitlementTokenIssuer


def get_reservation_manager(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> ReservationManager:
    return ReservationManager(session_factory, lock_timeout_ms=get_settings().LOCK_TIMEOUT_MS)


def get_token_issuer() -> EntitlementTokenIssuer:
    settings = get_settings()
    return EntitlementTokenIssuer(
        settings.TOKEN_SECRET,
        algorithm=settings.TOKEN_ALGORITHM,
        ttl_seconds=settings.TOKEN_EXPIRE_SECONDS,
    )

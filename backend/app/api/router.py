"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from app.api.routes import concerts, reservations, tokens

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(concerts.router)
api_router.include_router(reservations.router)
api_router.include_router(tokens.router)

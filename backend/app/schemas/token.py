"""
Pydantic schemas for entitlement token issuance.
"""

from pydantic import BaseModel


class EntitlementTokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int

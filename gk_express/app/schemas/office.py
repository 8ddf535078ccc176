"""
Office and user directory schemas.
"""

from datetime import datetime
from typing import Optional
from gk_express.app.schemas.base import CamelModel


class OfficeResponse(CamelModel):
    """Schema for office response."""
    id: str
    name: str
    country: str
    country_code: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime


class OfficeSummary(CamelModel):
    """Office display data embedded in resolved messages."""
    id: str
    name: str
    country: str


class UserSummary(CamelModel):
    """User display data embedded in resolved messages."""
    id: str
    full_name: str
    email: str

"""
Message Schemas.
"""

from datetime import datetime
from typing import Optional
from pydantic import Field
from gk_express.app.schemas.base import CamelModel
from gk_express.app.schemas.office import OfficeSummary, UserSummary
from gk_express.app.schemas.parcel import ParcelSummary


class MessageCreate(CamelModel):
    """
    Schema for POST /messages.

    The sending office is derived from the authenticated user.
    """
    to_office_id: Optional[str] = None
    subject: Optional[str] = Field(None, max_length=255)
    content: Optional[str] = None
    related_parcel_id: Optional[str] = None


class MessageResponse(CamelModel):
    """Message with office, user and parcel display data joined in."""
    id: str
    from_office_id: str
    to_office_id: str
    from_user_id: str
    subject: str
    content: str
    related_parcel_id: Optional[str] = None
    read_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    from_office: Optional[OfficeSummary] = None
    to_office: Optional[OfficeSummary] = None
    from_user: Optional[UserSummary] = None
    related_parcel: Optional[ParcelSummary] = None


class MessageReadResponse(CamelModel):
    id: str
    read_at: datetime


class UnreadCountResponse(CamelModel):
    unread_count: int

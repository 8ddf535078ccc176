"""
Status history schemas.
"""

from datetime import datetime
from typing import Optional
from gk_express.app.schemas.base import CamelModel


class StatusHistoryResponse(CamelModel):
    id: int
    parcel_id: str
    old_status: Optional[str] = None
    new_status: str
    changed_by_user_id: Optional[str] = None
    office_id: Optional[str] = None
    notes: Optional[str] = None
    changed_at: datetime

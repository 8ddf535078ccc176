"""
Parcel Pydantic schemas.

Defines request and response models for parcel tracking.
"""

from pydantic import Field
from datetime import datetime
from typing import Optional
from gk_express.app.schemas.base import CamelModel


class ParcelCreate(CamelModel):
    """
    Schema for creating a new parcel.

    Required fields are checked by the registry so that a missing field is
    reported as a domain validation error naming every absent field.
    """
    sender_name: Optional[str] = Field(None, max_length=200)
    sender_phone: Optional[str] = Field(None, max_length=50)
    receiver_name: Optional[str] = Field(None, max_length=200)
    receiver_phone: Optional[str] = Field(None, max_length=50)
    destination: Optional[str] = Field(None, max_length=500)
    price: Optional[float] = Field(None, ge=0, description="Price charged for the shipment")
    is_paid: Optional[bool] = Field(False, description="Paid at the origin office")
    origin_office_id: Optional[str] = None
    destination_office_id: Optional[str] = None


class ParcelStatusUpdate(CamelModel):
    """Schema for PATCH /parcels/{id}/status."""
    status: Optional[str] = Field(None, description="Target status, case-insensitive")
    notes: Optional[str] = Field(None, max_length=2000)


class ParcelResponse(CamelModel):
    """Schema for parcel response."""
    id: str
    sender_name: str
    sender_phone: Optional[str] = None
    receiver_name: str
    receiver_phone: Optional[str] = None
    destination: str
    status: str
    price: float
    is_paid: bool
    origin_office_id: str
    destination_office_id: str
    paid_at_office_id: Optional[str] = None
    created_by_user_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ParcelSummary(CamelModel):
    """Short parcel view embedded in resolved messages."""
    id: str
    sender_name: str
    receiver_name: str
    destination: str
    status: str


class NewParcelEvent(CamelModel):
    """Payload of the ``new_parcel`` real-time event."""
    parcel_id: str
    sender_name: str
    destination: str
    origin_office_id: str
    destination_office_id: str

"""
Parcel database model.

A parcel is a shipment travelling from an origin office to a destination
office.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Float, DateTime, ForeignKey, Boolean
from gk_express.app.db.session import Base
from gk_express.app.models.parcel_enums import ParcelStatus


def _utcnow():
    return datetime.now(timezone.utc)


class Parcel(Base):
    """
    Parcel model.

    Invariant: is_paid implies paid_at_office_id is set.
    """
    __tablename__ = "parcels"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Parties
    sender_name = Column(String(200), nullable=False)
    sender_phone = Column(String(50), nullable=True)
    receiver_name = Column(String(200), nullable=False)
    receiver_phone = Column(String(50), nullable=True)
    destination = Column(String(500), nullable=False)

    # Routing
    origin_office_id = Column(String(36), ForeignKey("offices.id"), nullable=False, index=True)
    destination_office_id = Column(String(36), ForeignKey("offices.id"), nullable=False, index=True)

    # Status, stored lowercase
    status = Column(String(32), default=ParcelStatus.CREATED.value, nullable=False, index=True)

    # Payment
    price = Column(Float, default=0, nullable=False)
    is_paid = Column(Boolean, default=False, nullable=False)
    paid_at_office_id = Column(String(36), ForeignKey("offices.id"), nullable=True)

    created_by_user_id = Column(String(36), ForeignKey("users.id"), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    def __repr__(self):
        return f"<Parcel(id={self.id}, origin={self.origin_office_id}, destination={self.destination_office_id}, status='{self.status}')>"

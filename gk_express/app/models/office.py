"""
Office database model.

An office is a physical shipping location and the tenancy boundary for
parcels and messages. Offices are owned by the directory; the core only
reads them.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime
from gk_express.app.db.session import Base


class Office(Base):
    """Shipping office."""
    __tablename__ = "offices"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    name = Column(String(200), nullable=False, index=True)
    country = Column(String(100), nullable=False)
    country_code = Column(String(8), nullable=True)
    address = Column(String(500), nullable=True)
    phone = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    def __repr__(self):
        return f"<Office(id={self.id}, name='{self.name}', country='{self.country}')>"

"""
Parcel Status History Model.

Append-only ledger of every status a parcel went through. Rows are never
updated or deleted.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from gk_express.app.db.session import Base


class StatusHistoryEntry(Base):
    """
    One status change of one parcel.

    The creation entry has old_status = None. The integer id is the ledger
    sequence: it reflects the order in which appends reached the store.
    """
    __tablename__ = "parcel_status_history"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    parcel_id = Column(String(36), ForeignKey("parcels.id"), nullable=False, index=True)

    old_status = Column(String(32), nullable=True)
    new_status = Column(String(32), nullable=False)

    # Who changed it, and from which office
    changed_by_user_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)
    office_id = Column(String(36), ForeignKey("offices.id"), nullable=True)

    notes = Column(Text, nullable=True)

    changed_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True
    )

    def __repr__(self):
        return f"<StatusHistoryEntry(id={self.id}, parcel={self.parcel_id}, {self.old_status} -> {self.new_status})>"

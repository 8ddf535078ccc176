"""
Inter-office Message Model.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, CheckConstraint
from gk_express.app.db.session import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Message(Base):
    """
    Message sent from one office to another.

    related_parcel_id is a weak reference: no foreign key, the parcel may
    disappear without affecting the message.
    """
    __tablename__ = "messages"
    __table_args__ = (
        CheckConstraint("from_office_id <> to_office_id", name="ck_messages_distinct_offices"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Routing
    from_office_id = Column(String(36), ForeignKey("offices.id"), nullable=False, index=True)
    to_office_id = Column(String(36), ForeignKey("offices.id"), nullable=False, index=True)
    from_user_id = Column(String(36), ForeignKey("users.id"), nullable=False)

    # Content
    subject = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    related_parcel_id = Column(String(36), nullable=True)

    # State, set by the receiving office
    read_at = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    def __repr__(self):
        return f"<Message(id={self.id}, from={self.from_office_id}, to={self.to_office_id}, subject='{self.subject}')>"

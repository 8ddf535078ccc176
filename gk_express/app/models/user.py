"""
User database model.

Directory view of the people working in the office network. Credentials
live with the external auth provider.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Boolean, DateTime, Enum, ForeignKey
from gk_express.app.db.session import Base
from gk_express.app.models.enums import UserRole


class User(Base):
    """
    User model for the office directory.

    Agents belong to exactly one office. Bosses may have none.
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(200), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    role = Column(
        Enum(UserRole, values_callable=lambda roles: [r.value for r in roles]),
        default=UserRole.AGENT,
        nullable=False
    )
    office_id = Column(String(36), ForeignKey("offices.id"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}', office_id={self.office_id})>"

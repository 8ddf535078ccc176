"""
Inter-office message store.

Messages are addressed from one office to another. The sending office is
resolved from the sending user; only the receiving office may mark a
message read. Every returned message is resolved: office, user and related
parcel display data are joined in.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_, or_

from gk_express.app.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from gk_express.app.models.message import Message
from gk_express.app.models.parcel import Parcel
from gk_express.app.realtime.events import DomainEvent, EventName, EventQueue
from gk_express.app.schemas.message import MessageReadResponse, MessageResponse
from gk_express.app.schemas.office import OfficeSummary, UserSummary
from gk_express.app.schemas.parcel import ParcelSummary
from gk_express.app.services.directory import Directory

logger = logging.getLogger("gk_express.messages")


class MessageStore:
    """
    Args:
        db: Database session
        directory: Office and user lookups
        events: Queue collecting events for dispatch after the request
    """

    def __init__(self, db: AsyncSession, directory: Directory, events: EventQueue):
        self.db = db
        self.directory = directory
        self.events = events

    async def create(
        self,
        from_user_id: str,
        to_office_id: Optional[str],
        subject: Optional[str],
        content: Optional[str],
        related_parcel_id: Optional[str] = None
    ) -> MessageResponse:
        """
        Send a message from the user's office to another office.

        Raises:
            ValidationError: Missing fields, sender without office, or message to own office
            NotFoundError: Unknown sender, target office or related parcel
        """
        missing = [
            name for name, value in (
                ("toOfficeId", to_office_id), ("subject", subject), ("content", content)
            ) if not value
        ]
        if missing:
            raise ValidationError("toOfficeId, subject and content are required", details={"missing": missing})

        user = await self.directory.get_user(from_user_id)
        if user is None:
            raise NotFoundError("User", from_user_id)

        from_office_id = user.office_id
        if not from_office_id:
            raise ValidationError("User must be associated with an office")

        if from_office_id == to_office_id:
            raise ValidationError("An office cannot send a message to itself")

        await self.directory.require_office(to_office_id)

        if related_parcel_id and await self.db.get(Parcel, related_parcel_id) is None:
            raise NotFoundError("Parcel", related_parcel_id)

        message = Message(
            from_office_id=from_office_id,
            to_office_id=to_office_id,
            from_user_id=from_user_id,
            subject=subject,
            content=content,
            related_parcel_id=related_parcel_id or None,
            read_at=None
        )
        self.db.add(message)
        await self.db.commit()
        await self.db.refresh(message)

        resolved = (await self._resolve([message]))[0]

        self.events.put(DomainEvent(
            name=EventName.NEW_MESSAGE,
            office_id=to_office_id,
            payload=resolved.to_payload()
        ))

        logger.info(
            "Message created",
            extra={"message_id": message.id, "from_office_id": from_office_id, "to_office_id": to_office_id}
        )
        return resolved

    async def list_received(self, office_id: str) -> List[MessageResponse]:
        query = select(Message).where(
            Message.to_office_id == office_id
        ).order_by(Message.created_at.desc())
        return await self._fetch(query)

    async def list_sent(self, office_id: str) -> List[MessageResponse]:
        query = select(Message).where(
            Message.from_office_id == office_id
        ).order_by(Message.created_at.desc())
        return await self._fetch(query)

    async def list_conversation(self, office_a: str, office_b: str) -> List[MessageResponse]:
        """Both directions between two offices, oldest first."""
        query = select(Message).where(or_(
            and_(Message.from_office_id == office_a, Message.to_office_id == office_b),
            and_(Message.from_office_id == office_b, Message.to_office_id == office_a)
        )).order_by(Message.created_at.asc())
        return await self._fetch(query)

    async def mark_read(self, message_id: str, acting_office_id: Optional[str]) -> MessageReadResponse:
        """
        Mark a message read on behalf of the receiving office.

        Marking twice overwrites the timestamp.

        Raises:
            NotFoundError: Unknown message
            ForbiddenError: Acting office is not the recipient
        """
        message = await self.db.get(Message, message_id)
        if message is None:
            raise NotFoundError("Message", message_id)

        if acting_office_id is None or message.to_office_id != acting_office_id:
            raise ForbiddenError("Only the receiving office can mark this message as read")

        now = datetime.now(timezone.utc)
        message.read_at = now
        message.updated_at = now
        await self.db.commit()
        await self.db.refresh(message)

        return MessageReadResponse(id=message.id, read_at=message.read_at)

    async def unread_count(self, office_id: str) -> int:
        result = await self.db.execute(
            select(func.count(Message.id)).where(
                Message.to_office_id == office_id,
                Message.read_at.is_(None)
            )
        )
        return result.scalar() or 0

    async def _fetch(self, query) -> List[MessageResponse]:
        result = await self.db.execute(query)
        return await self._resolve(result.scalars().all())

    async def _resolve(self, messages: Sequence[Message]) -> List[MessageResponse]:
        """Join office, user and parcel display data in three batched lookups."""
        if not messages:
            return []

        offices = await self.directory.offices_by_id(
            [m.from_office_id for m in messages] + [m.to_office_id for m in messages]
        )
        users = await self.directory.users_by_id(m.from_user_id for m in messages)

        parcel_ids = {m.related_parcel_id for m in messages if m.related_parcel_id}
        parcels = {}
        if parcel_ids:
            result = await self.db.execute(select(Parcel).where(Parcel.id.in_(parcel_ids)))
            parcels = {p.id: p for p in result.scalars().all()}

        resolved = []
        for m in messages:
            from_office = offices.get(m.from_office_id)
            to_office = offices.get(m.to_office_id)
            from_user = users.get(m.from_user_id)
            parcel = parcels.get(m.related_parcel_id)

            resolved.append(MessageResponse(
                id=m.id,
                from_office_id=m.from_office_id,
                to_office_id=m.to_office_id,
                from_user_id=m.from_user_id,
                subject=m.subject,
                content=m.content,
                related_parcel_id=m.related_parcel_id,
                read_at=m.read_at,
                created_at=m.created_at,
                updated_at=m.updated_at,
                from_office=OfficeSummary.model_validate(from_office) if from_office else None,
                to_office=OfficeSummary.model_validate(to_office) if to_office else None,
                from_user=UserSummary.model_validate(from_user) if from_user else None,
                related_parcel=ParcelSummary.model_validate(parcel) if parcel else None
            ))
        return resolved

"""
Parcel registry.

Owns parcel records and their status transitions. Every accepted change of
status goes to the status history through the injected audit sink, and new
parcels are announced to the destination office through the event queue.
"""

import logging
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_

from gk_express.app.core.exceptions import NotFoundError, ValidationError
from gk_express.app.models.parcel import Parcel
from gk_express.app.models.parcel_enums import ParcelStatus
from gk_express.app.realtime.events import DomainEvent, EventName, EventQueue
from gk_express.app.schemas.parcel import NewParcelEvent, ParcelCreate, ParcelResponse
from gk_express.app.services.audit import AuditSink
from gk_express.app.services.directory import Directory

logger = logging.getLogger("gk_express.parcels")

REQUIRED_FIELDS = (
    "sender_name",
    "receiver_name",
    "destination",
    "origin_office_id",
    "destination_office_id",
)


class ParcelRegistry:
    """
    Args:
        db: Database session
        directory: Office lookups
        audit: Sink receiving status history entries
        events: Queue collecting events for dispatch after the request
    """

    def __init__(self, db: AsyncSession, directory: Directory, audit: AuditSink, events: EventQueue):
        self.db = db
        self.directory = directory
        self.audit = audit
        self.events = events

    async def create(self, parcel_data: ParcelCreate, created_by_user_id: Optional[str] = None) -> ParcelResponse:
        """
        Create a parcel in status ``created``.

        A parcel paid at creation is paid at its origin office. The creation
        history entry is best-effort and does not affect the result.

        Raises:
            ValidationError: A required field is missing
            NotFoundError: Origin or destination office does not exist
        """
        missing = [name for name in REQUIRED_FIELDS if not getattr(parcel_data, name)]
        if missing:
            raise ValidationError("Missing required fields", details={"missing": missing})

        await self.directory.require_office(parcel_data.origin_office_id)
        await self.directory.require_office(parcel_data.destination_office_id)

        is_paid = bool(parcel_data.is_paid)
        parcel = Parcel(
            sender_name=parcel_data.sender_name,
            sender_phone=parcel_data.sender_phone,
            receiver_name=parcel_data.receiver_name,
            receiver_phone=parcel_data.receiver_phone,
            destination=parcel_data.destination,
            status=ParcelStatus.CREATED.value,
            price=parcel_data.price or 0,
            is_paid=is_paid,
            origin_office_id=parcel_data.origin_office_id,
            destination_office_id=parcel_data.destination_office_id,
            paid_at_office_id=parcel_data.origin_office_id if is_paid else None,
            created_by_user_id=created_by_user_id
        )

        self.db.add(parcel)
        await self.db.commit()
        await self.db.refresh(parcel)

        # Snapshot before the history write: a failed append rolls the session back
        created = ParcelResponse.model_validate(parcel)

        await self.audit.record(
            self.db,
            parcel_id=created.id,
            new_status=ParcelStatus.CREATED.value,
            old_status=None,
            changed_by_user_id=created_by_user_id,
            office_id=created.origin_office_id,
            notes=None
        )

        self.events.put(DomainEvent(
            name=EventName.NEW_PARCEL,
            office_id=created.destination_office_id,
            payload=NewParcelEvent(
                parcel_id=created.id,
                sender_name=created.sender_name,
                destination=created.destination,
                origin_office_id=created.origin_office_id,
                destination_office_id=created.destination_office_id
            ).to_payload()
        ))

        logger.info(
            "Parcel created",
            extra={"parcel_id": created.id, "destination_office_id": created.destination_office_id}
        )
        return created

    async def get(self, parcel_id: str) -> ParcelResponse:
        parcel = await self.db.get(Parcel, parcel_id)
        if parcel is None:
            raise NotFoundError("Parcel", parcel_id)
        return ParcelResponse.model_validate(parcel)

    async def update_status(
        self,
        parcel_id: str,
        new_status: Optional[str],
        notes: Optional[str] = None,
        acting_user_id: Optional[str] = None,
        acting_office_id: Optional[str] = None
    ) -> ParcelResponse:
        """
        Move a parcel to another status.

        Delivering an unpaid parcel marks it paid at the destination office.
        A history entry is recorded only when the status actually changes.

        Raises:
            NotFoundError: Unknown parcel
            ValidationError: Missing or unrecognized status
        """
        parcel = await self.db.get(Parcel, parcel_id)
        if parcel is None:
            raise NotFoundError("Parcel", parcel_id)

        if not new_status:
            raise ValidationError("Status is required")
        status = ParcelStatus.normalize(new_status)
        if status is None:
            raise ValidationError(
                f"Unrecognized status '{new_status}'",
                details={"allowed": [s.value for s in ParcelStatus]}
            )

        previous = parcel.status
        parcel.status = status.value

        if status is ParcelStatus.DELIVERED and not parcel.is_paid:
            parcel.is_paid = True
            parcel.paid_at_office_id = parcel.destination_office_id

        await self.db.commit()
        await self.db.refresh(parcel)
        updated = ParcelResponse.model_validate(parcel)

        if (previous or "").lower() != status.value:
            await self.audit.record(
                self.db,
                parcel_id=updated.id,
                new_status=status.value,
                old_status=previous,
                changed_by_user_id=acting_user_id,
                office_id=acting_office_id,
                notes=notes
            )
            logger.info(
                "Parcel status changed",
                extra={"parcel_id": updated.id, "old_status": previous, "new_status": status.value}
            )

        return updated

    async def list(self, office_id: Optional[str] = None) -> List[ParcelResponse]:
        """All parcels, or those leaving from or arriving at ``office_id``. Newest first."""
        query = select(Parcel)
        if office_id:
            query = query.where(or_(
                Parcel.origin_office_id == office_id,
                Parcel.destination_office_id == office_id
            ))
        query = query.order_by(Parcel.created_at.desc())

        result = await self.db.execute(query)
        return [ParcelResponse.model_validate(p) for p in result.scalars().all()]

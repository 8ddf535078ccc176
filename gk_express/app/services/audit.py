"""
Parcel status history service.

The status history is a ledger: entries are appended and listed, never
updated or deleted. Callers that must not fail because of the ledger go
through an audit sink instead of calling ``append`` directly.
"""

import logging
from typing import Optional, Protocol
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc

from gk_express.app.core.config import settings
from gk_express.app.core.exceptions import AppException, InternalError, ValidationError
from gk_express.app.models.parcel import Parcel
from gk_express.app.models.parcel_enums import ParcelStatus
from gk_express.app.models.status_history import StatusHistoryEntry

logger = logging.getLogger("gk_express.audit")


async def append(
    db: AsyncSession,
    parcel_id: str,
    new_status: str,
    old_status: Optional[str] = None,
    changed_by_user_id: Optional[str] = None,
    office_id: Optional[str] = None,
    notes: Optional[str] = None
) -> StatusHistoryEntry:
    """
    Append a status change to a parcel's history.

    Args:
        db: Database session
        parcel_id: Parcel the entry belongs to
        new_status: Status after the change (case-insensitive)
        old_status: Status before the change, None for the creation entry
        changed_by_user_id: User performing the change
        office_id: Office of the acting user
        notes: Optional free text

    Returns:
        Stored StatusHistoryEntry with server-assigned id and changed_at

    Raises:
        ValidationError: Unknown parcel or unrecognized status
    """
    status = ParcelStatus.normalize(new_status)
    if status is None:
        raise ValidationError(
            f"Unrecognized status '{new_status}'",
            details={"allowed": [s.value for s in ParcelStatus]}
        )

    result = await db.execute(select(Parcel.id).where(Parcel.id == parcel_id))
    if result.scalar_one_or_none() is None:
        raise ValidationError(f"Parcel {parcel_id} does not exist", details={"parcel_id": parcel_id})

    entry = StatusHistoryEntry(
        parcel_id=parcel_id,
        old_status=old_status.lower() if old_status else None,
        new_status=status.value,
        changed_by_user_id=changed_by_user_id,
        office_id=office_id,
        notes=notes
    )

    db.add(entry)
    await db.commit()
    await db.refresh(entry)

    return entry


async def list_for_parcel(db: AsyncSession, parcel_id: str) -> list[StatusHistoryEntry]:
    """
    Retrieve a parcel's history, most recent first.

    Returns an empty list when the parcel has no history.
    """
    query = select(StatusHistoryEntry).where(
        StatusHistoryEntry.parcel_id == parcel_id
    ).order_by(desc(StatusHistoryEntry.changed_at), desc(StatusHistoryEntry.id))

    result = await db.execute(query)
    return list(result.scalars().all())


class AuditSink(Protocol):
    """Where a registry sends history entries."""

    async def record(self, db: AsyncSession, **entry) -> Optional[StatusHistoryEntry]:
        ...


class BestEffortAuditSink:
    """
    Append-or-warn.

    A failed append is rolled back and logged; the caller carries on. The
    session is rolled back, so callers must not rely on ORM instances loaded
    before the call.
    """

    async def record(self, db: AsyncSession, **entry) -> Optional[StatusHistoryEntry]:
        try:
            return await append(db, **entry)
        except Exception as exc:
            await db.rollback()
            logger.warning(
                "Status history append failed for parcel %s: %s",
                entry.get("parcel_id"), exc,
                extra={"parcel_id": entry.get("parcel_id"), "new_status": entry.get("new_status")}
            )
            return None


class StrictAuditSink:
    """Surfaces append failures to the caller."""

    async def record(self, db: AsyncSession, **entry) -> Optional[StatusHistoryEntry]:
        try:
            return await append(db, **entry)
        except AppException:
            await db.rollback()
            raise
        except Exception as exc:
            await db.rollback()
            raise InternalError("Failed to record status history") from exc


def get_audit_sink() -> AuditSink:
    """FastAPI dependency selecting the sink from settings."""
    if settings.strict_audit_log:
        return StrictAuditSink()
    return BestEffortAuditSink()

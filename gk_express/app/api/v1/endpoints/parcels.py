"""
Parcel Tracking API Endpoints.

Create parcels, move them through their statuses and read their history.
Agents are confined to parcels leaving from or arriving at their office.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from gk_express.app.db.session import get_db
from gk_express.app.core.dependencies import get_current_user, get_parcel_registry
from gk_express.app.core.guards import OfficeGuard, resolve_office_scope
from gk_express.app.schemas.parcel import ParcelCreate, ParcelResponse, ParcelStatusUpdate
from gk_express.app.schemas.status_history import StatusHistoryResponse
from gk_express.app.services import audit
from gk_express.app.services.parcel_registry import ParcelRegistry

router = APIRouter(prefix="/parcels", tags=["Parcels"])
office_guard = OfficeGuard()


@router.post("", response_model=ParcelResponse, status_code=status.HTTP_201_CREATED)
async def create_parcel(
    parcel_data: ParcelCreate,
    current_user: dict = Depends(get_current_user),
    registry: ParcelRegistry = Depends(get_parcel_registry)
):
    """
    Create a new parcel.

    The destination office is notified in real time with ``new_parcel``.
    """
    return await registry.create(parcel_data, created_by_user_id=current_user["user_id"])


@router.get("", response_model=List[ParcelResponse])
async def list_parcels(
    office_id: Optional[str] = Query(None, alias="officeId", description="Office filter (bosses only)"),
    current_user: dict = Depends(get_current_user),
    registry: ParcelRegistry = Depends(get_parcel_registry)
):
    """
    List parcels, newest first.

    Agents always see their own office's parcels. Bosses see every parcel
    unless they pass ``officeId``.
    """
    scope = resolve_office_scope(current_user, office_id)
    return await registry.list(office_id=scope)


@router.get("/{parcel_id}", response_model=ParcelResponse)
async def get_parcel(
    parcel_id: str = Path(..., description="Parcel ID"),
    current_user: dict = Depends(get_current_user),
    registry: ParcelRegistry = Depends(get_parcel_registry)
):
    """Get a single parcel."""
    parcel = await registry.get(parcel_id)
    office_guard.enforce(parcel, current_user)
    return parcel


@router.patch("/{parcel_id}/status", response_model=ParcelResponse)
async def update_parcel_status(
    parcel_id: str = Path(..., description="Parcel ID"),
    update: ParcelStatusUpdate = ...,
    current_user: dict = Depends(get_current_user),
    registry: ParcelRegistry = Depends(get_parcel_registry)
):
    """
    Change a parcel's status.

    Any status may follow any other. Delivering an unpaid parcel records the
    payment at the destination office.
    """
    parcel = await registry.get(parcel_id)
    office_guard.enforce(parcel, current_user)

    return await registry.update_status(
        parcel_id,
        update.status,
        notes=update.notes,
        acting_user_id=current_user["user_id"],
        acting_office_id=current_user.get("office_id")
    )


@router.get("/{parcel_id}/history", response_model=List[StatusHistoryResponse])
async def get_parcel_history(
    parcel_id: str = Path(..., description="Parcel ID"),
    current_user: dict = Depends(get_current_user),
    registry: ParcelRegistry = Depends(get_parcel_registry),
    db: AsyncSession = Depends(get_db)
):
    """Status history of a parcel, newest first."""
    parcel = await registry.get(parcel_id)
    office_guard.enforce(parcel, current_user)

    entries = await audit.list_for_parcel(db, parcel_id)
    return [StatusHistoryResponse.model_validate(e) for e in entries]

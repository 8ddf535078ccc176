"""
Office Directory API Endpoints.
"""

from typing import List
from fastapi import APIRouter, Depends, Path

from gk_express.app.core.dependencies import get_current_user, get_directory
from gk_express.app.schemas.office import OfficeResponse
from gk_express.app.services.directory import Directory

router = APIRouter(prefix="/offices", tags=["Offices"])


@router.get("", response_model=List[OfficeResponse])
async def list_offices(directory: Directory = Depends(get_directory)):
    """
    List all offices by name.

    Public: the sign-up screen needs it before the user has a token.
    """
    offices = await directory.list_offices()
    return [OfficeResponse.model_validate(o) for o in offices]


@router.get("/{office_id}", response_model=OfficeResponse)
async def get_office(
    office_id: str = Path(..., description="Office ID"),
    current_user: dict = Depends(get_current_user),
    directory: Directory = Depends(get_directory)
):
    """Get a single office."""
    office = await directory.require_office(office_id)
    return OfficeResponse.model_validate(office)

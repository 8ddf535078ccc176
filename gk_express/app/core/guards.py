"""
Security guards for role-based and office-based access control.

Offices are the tenancy boundary: agents only see their own office's
parcels and messages, bosses see everything.
"""

from typing import Optional
from gk_express.app.core.exceptions import ForbiddenError, NotFoundError
from gk_express.app.models.enums import UserRole
from gk_express.app.schemas.parcel import ParcelResponse


def is_boss(current_user: dict) -> bool:
    return current_user.get("role") == UserRole.BOSS.value


def resolve_office_scope(current_user: dict, requested_office_id: Optional[str] = None) -> Optional[str]:
    """
    Office to filter parcel listings by.

    Agents are always scoped to their own office, whatever they request.
    Bosses get what they asked for (None means every office).

    Raises:
        ForbiddenError: Agent without an office
    """
    if is_boss(current_user):
        return requested_office_id or None

    office_id = current_user.get("office_id")
    if not office_id:
        raise ForbiddenError("Agent is not assigned to an office")
    return office_id


def require_office(current_user: dict) -> str:
    """
    Office of the current user, for office-addressed operations (messages).

    Raises:
        NotFoundError: User has no office
    """
    office_id = current_user.get("office_id")
    if not office_id:
        raise NotFoundError("Office for current user")
    return office_id


class OfficeGuard:
    """
    Office-level visibility check for single parcels.

    Usage:
        office_guard = OfficeGuard()

        @router.get("/parcels/{parcel_id}")
        async def get_parcel(parcel_id: str, current_user: dict = Depends(get_current_user), ...):
            parcel = await registry.get(parcel_id)
            office_guard.enforce(parcel, current_user)
            return parcel
    """

    def can_access(self, parcel: ParcelResponse, current_user: dict) -> bool:
        if is_boss(current_user):
            return True
        office_id = current_user.get("office_id")
        return office_id is not None and office_id in (parcel.origin_office_id, parcel.destination_office_id)

    def enforce(self, parcel: ParcelResponse, current_user: dict) -> None:
        """
        Raises:
            ForbiddenError if the parcel neither leaves from nor arrives at the user's office
        """
        if not self.can_access(parcel, current_user):
            raise ForbiddenError("Access denied. This parcel does not belong to your office.")

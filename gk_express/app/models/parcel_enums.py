"""
Parcel Status Enumeration.
"""

import enum
from typing import Optional


class ParcelStatus(str, enum.Enum):
    """
    Parcel status enumeration.

    Expected flow:
        CREATED → PICKED_UP → IN_TRANSIT → ARRIVED_AT_DESTINATION → DELIVERED

    The order is not enforced: any status can move to any other status so
    operators can correct mistakes.
    """
    CREATED = "created"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    ARRIVED_AT_DESTINATION = "arrived_at_destination"
    DELIVERED = "delivered"

    @classmethod
    def normalize(cls, value: Optional[str]) -> Optional["ParcelStatus"]:
        """Case-insensitive lookup. Returns None for unknown values."""
        if value is None:
            return None
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None

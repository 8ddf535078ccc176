"""
User roles enumeration.

Defines the role types for the shipping office network.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        BOSS: Sees every office; may filter parcel listings by office
        AGENT: Works at one office; always scoped to it
    """
    BOSS = "boss"
    AGENT = "agent"

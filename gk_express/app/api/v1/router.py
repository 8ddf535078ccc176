"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from gk_express.app.api.v1.endpoints import parcels, messages, offices, realtime

router = APIRouter()

# Office directory
router.include_router(offices.router)

# Parcel tracking and status history
router.include_router(parcels.router)

# Inter-office messaging
router.include_router(messages.router)

# Real-time notifications and presence
router.include_router(realtime.router)

"""
Request dependencies for FastAPI.

Authentication (bearer tokens issued by the external auth provider), the
per-request event queue, and construction of the core services.
"""

from typing import Any, Dict, Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from gk_express.app.core.exceptions import AuthenticationError, ForbiddenError
from gk_express.app.core.jwt import decode_access_token
from gk_express.app.db.session import get_db
from gk_express.app.realtime.events import EventQueue
from gk_express.app.services.audit import AuditSink, get_audit_sink
from gk_express.app.services.directory import Directory
from gk_express.app.services.message_store import MessageStore
from gk_express.app.services.parcel_registry import ParcelRegistry

# HTTP Bearer security scheme
security = HTTPBearer()


def verify_token(token: Optional[str]) -> Dict[str, Any]:
    """
    Validate a bearer token and return its claims.

    Shared by the HTTP dependency and the WebSocket endpoint.

    Raises:
        AuthenticationError: Missing, invalid or expired token, or no user_id claim
    """
    if not token:
        raise AuthenticationError("Not authenticated")

    payload = decode_access_token(token)
    if payload is None:
        raise AuthenticationError("Could not validate credentials")

    if not payload.get("user_id"):
        raise AuthenticationError("Invalid token payload")

    return payload


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    FastAPI dependency for JWT authentication.

    1. Validates JWT token signature and expiry
    2. Verifies the user still exists and is active in the directory
    3. Refreshes role and office from the directory (token claims may be stale)

    Returns:
        Token payload with ``user_id``, ``role`` and ``office_id``

    Raises:
        AuthenticationError: 401 if authentication fails
        ForbiddenError: 403 if the account is inactive
    """
    payload = verify_token(credentials.credentials)
    return await resolve_identity(db, payload)


async def resolve_identity(db: AsyncSession, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Identity of a verified token, with role and office taken from the directory.

    Shared by the HTTP dependency and the WebSocket endpoint.

    Raises:
        AuthenticationError: The directory does not know the user
        ForbiddenError: The account is inactive
    """
    user = await Directory(db).get_user(str(payload["user_id"]))
    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise ForbiddenError("User account is inactive")

    identity = dict(payload)
    identity["user_id"] = user.id
    identity["role"] = user.role.value
    identity["office_id"] = user.office_id
    return identity


async def get_event_queue(request: Request):
    """
    Per-request event queue.

    Events are dispatched only when the endpoint returned without raising;
    the exception propagates through the yield and skips dispatch.
    """
    queue = EventQueue()
    yield queue
    await request.app.state.dispatcher.dispatch(queue)


def get_directory(db: AsyncSession = Depends(get_db)) -> Directory:
    return Directory(db)


def get_parcel_registry(
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
    events: EventQueue = Depends(get_event_queue)
) -> ParcelRegistry:
    return ParcelRegistry(db, Directory(db), audit, events)


def get_message_store(
    db: AsyncSession = Depends(get_db),
    events: EventQueue = Depends(get_event_queue)
) -> MessageStore:
    return MessageStore(db, Directory(db), events)

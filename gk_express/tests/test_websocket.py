"""
Integration tests for the real-time WebSocket endpoint.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import update
from starlette.websockets import WebSocketDisconnect

from gk_express.app.main import app
from gk_express.app.core.jwt import create_access_token
from gk_express.app.models.user import User


@pytest.fixture
def ws_client():
    return TestClient(app)


def ws_url(identity):
    return f"/v1/ws?token={create_access_token(identity)}"


def assert_rejected(ws_client, url, code):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with ws_client.websocket_connect(url):
            pass
    assert exc_info.value.code == code


def test_rejects_missing_or_bad_token(ws_client, users):
    assert_rejected(ws_client, "/v1/ws", 4401)
    assert_rejected(ws_client, "/v1/ws?token=not-a-jwt", 4401)


def test_rejects_user_unknown_to_directory(ws_client, users, realtime):
    ghost = {"sub": "ghost", "user_id": "ghost", "role": "boss", "office_id": None}

    assert_rejected(ws_client, ws_url(ghost), 4401)
    assert realtime.bus.connection_count == 0


@pytest.fixture
async def deactivated_paris_agent(db_session, users):
    await db_session.execute(
        update(User).where(User.id == users.paris_agent["user_id"]).values(is_active=False)
    )
    await db_session.commit()
    return users.paris_agent


def test_rejects_inactive_user(ws_client, deactivated_paris_agent, realtime):
    assert_rejected(ws_client, ws_url(deactivated_paris_agent), 4403)
    assert realtime.bus.connection_count == 0


def test_role_and_office_come_from_directory(ws_client, users, offices):
    # Stale claims: the token says boss of Dakar, the directory says agent in Paris
    stale = dict(users.paris_agent, role="boss", office_id=offices.dakar)

    with ws_client.websocket_connect(ws_url(stale)) as ws:
        ws.send_json({"event": "join_office", "data": {"officeId": offices.dakar}})
        assert ws.receive_json() == {"event": "error", "data": {"message": "Cannot join another office"}}


def test_ping_pong(ws_client, users):
    with ws_client.websocket_connect(ws_url(users.paris_agent)) as ws:
        ws.send_text("ping")
        assert ws.receive_text() == "pong"


def test_invalid_frames_get_errors(ws_client, users):
    with ws_client.websocket_connect(ws_url(users.paris_agent)) as ws:
        ws.send_text("{not json")
        assert ws.receive_json()["event"] == "error"

        ws.send_json(["join_office"])
        assert ws.receive_json()["event"] == "error"


def test_presence_and_office_events(ws_client, users, offices, realtime):
    user_id = users.paris_agent["user_id"]

    with ws_client.websocket_connect(ws_url(users.paris_agent)) as ws:
        ws.send_json({"event": "join_office", "data": {"officeId": offices.dakar}})
        assert ws.receive_json() == {"event": "error", "data": {"message": "Cannot join another office"}}

        ws.send_json({"event": "join_office", "data": {"officeId": offices.paris}})
        ws.send_json({"event": "user_online", "data": {"userId": user_id}})
        assert ws.receive_json() == {"event": "user_connected", "data": {"userId": user_id}}
        assert ws.receive_json() == {"event": "presence_update", "data": {"onlineUserIds": [user_id]}}

        ws.send_json({"event": "get_online_users"})
        assert ws.receive_json() == {"event": "presence_update", "data": {"onlineUserIds": [user_id]}}

        assert len(realtime.bus.members(offices.paris)) == 1

    assert realtime.bus.connection_count == 0
    assert not realtime.presence.is_online(user_id)

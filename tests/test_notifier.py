"""Socket.IO broadcast of lifecycle events and the dashboard event handlers."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient
from app.routers import realtime
from app.services import notifier
from app.services.notifier import sio
from conftest import EmitRecorder


@pytest.fixture
def rooms():
    with patch.object(sio, "enter_room", new_callable=AsyncMock) as enter, \
            patch.object(sio, "leave_room", new_callable=AsyncMock) as leave:
        yield enter, leave


class TestBroadcast:
    @pytest.mark.asyncio
    async def test_parking_update_goes_to_everyone(self, dashboard):
        await notifier.publish_parking_update(1, 3)
        await notifier.publish_parking_update(2, 7)

        assert dashboard.messages == [
            {"event": "parking:update", "data": {"parkingId": 1, "availableSpaces": 3}, "to": None},
            {"event": "parking:update", "data": {"parkingId": 2, "availableSpaces": 7}, "to": None},
        ]

    @pytest.mark.asyncio
    async def test_parking_subscriber_still_receives_other_parkings(self, dashboard, rooms):
        enter, _ = rooms
        await realtime.subscribe_dashboard("sid-3", {"parkingId": 3})
        assert enter.await_args.args == ("sid-3", "parking:3")

        await notifier.publish_entry_event("entry:created", {"id": 9, "parking_id": 4})
        await notifier.publish_capacity_alert(4, "Parking North is full")

        broadcasts = [m for m in dashboard.messages if m["to"] is None]
        assert [m["event"] for m in broadcasts] == ["entry:created", "capacity:alert"]
        assert broadcasts[1]["data"] == {"parkingId": 4, "message": "Parking North is full"}

    @pytest.mark.asyncio
    async def test_failed_emit_is_swallowed(self):
        with patch.object(sio, "emit", new=EmitRecorder(fail=True)):
            assert await notifier.emit_safely("capacity:alert", {"parkingId": 1}) is False

    @pytest.mark.asyncio
    async def test_emit_without_clients(self):
        assert await notifier.emit_safely("parking:update", {"parkingId": 1, "availableSpaces": 0}) is True


class TestDashboardHandlers:
    @pytest.mark.asyncio
    async def test_subscriptions_are_additive(self, dashboard, rooms):
        enter, leave = rooms
        await realtime.subscribe_dashboard("sid-1", {"parkingId": 3})
        await realtime.subscribe_dashboard("sid-1", {"parkingId": 4})
        await realtime.subscribe_dashboard("sid-1")

        assert [c.args[1] for c in enter.await_args_list] == ["parking:3", "parking:4", notifier.GENERAL_ROOM]
        leave.assert_not_awaited()
        assert [m["data"]["parkingId"] for m in dashboard.messages] == [3, 4, "general"]
        assert all(m["event"] == "subscription:confirmed" and m["to"] == "sid-1" for m in dashboard.messages)

    @pytest.mark.asyncio
    async def test_unsubscribe_leaves_only_that_room(self, dashboard, rooms):
        _, leave = rooms
        await realtime.unsubscribe_dashboard("sid-1", {"parkingId": "3"})

        leave.assert_awaited_once_with("sid-1", "parking:3")
        assert dashboard.messages[0]["event"] == "unsubscription:confirmed"
        assert dashboard.messages[0]["to"] == "sid-1"

    @pytest.mark.asyncio
    async def test_parking_status(self, dashboard):
        await realtime.request_parking_status("sid-2", {"parkingId": 3})

        reply = dashboard.messages[0]
        assert reply["event"] == "parking:status"
        assert reply["to"] == "sid-2"
        assert reply["data"]["parkingId"] == 3
        assert reply["data"]["success"] is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", ["parking-3", 3, ["parkingId", 3], {"parkingId": "abc"}])
    async def test_malformed_payload_answers_error(self, dashboard, rooms, payload):
        enter, _ = rooms
        await realtime.subscribe_dashboard("sid-9", payload)

        enter.assert_not_awaited()
        assert dashboard.messages[0]["event"] == "error"
        assert dashboard.messages[0]["to"] == "sid-9"
        assert dashboard.messages[0]["data"]["success"] is False

    @pytest.mark.asyncio
    async def test_malformed_status_request_answers_error(self, dashboard):
        await realtime.request_parking_status("sid-9", "not json")
        assert dashboard.events() == ["error"]

    @pytest.mark.asyncio
    async def test_connected_clients_counter(self):
        before = notifier.connected_clients()
        await realtime.connect("sid-a", {})
        await realtime.connect("sid-b", {}, None)
        assert notifier.connected_clients() == before + 2

        await realtime.disconnect("sid-a")
        await realtime.disconnect("sid-b", "client disconnect")
        assert notifier.connected_clients() == before


class TestSocketApp:
    def test_polling_handshake(self):
        from app.main import socket_app
        resp = TestClient(socket_app).get("/socket.io/", params={"EIO": "4", "transport": "polling"})
        assert resp.status_code == 200
        assert resp.text.startswith("0")
        assert '"sid"' in resp.text

    def test_http_routes_pass_through(self, client):
        from app.main import socket_app
        resp = TestClient(socket_app).get("/api/v1/health")
        assert resp.status_code == 200
        assert "realtime_clients" in resp.json()

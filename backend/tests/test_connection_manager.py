"""
Tests for the WebSocket connection manager: limits, role rooms, heartbeats
and shutdown.
"""

import pytest
from starlette.websockets import WebSocketState

from ws_gateway.connection_manager import ConnectionManager


class FakeWebSocket:
    """Minimal stand-in for a starlette WebSocket."""

    def __init__(self, fail_send=False):
        self.client_state = WebSocketState.CONNECTING
        self.application_state = WebSocketState.CONNECTING
        self.sent = []
        self.closed_with = None
        self.fail_send = fail_send

    async def accept(self):
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED

    async def close(self, code=1000, reason=None):
        self.closed_with = (code, reason)
        self.client_state = WebSocketState.DISCONNECTED
        self.application_state = WebSocketState.DISCONNECTED

    async def send_json(self, payload):
        if self.fail_send:
            raise RuntimeError("socket gone")
        self.sent.append(payload)


@pytest.fixture
def manager():
    return ConnectionManager(max_connections_per_user=2, max_total_connections=3, heartbeat_timeout=60)


class TestConnect:

    @pytest.mark.asyncio
    async def test_register(self, manager):
        ws = FakeWebSocket()
        await manager.connect(ws, user_id=1, role="waiter", name="w@test.com")
        assert manager.total_connections == 1
        assert manager.get_info(ws).role == "waiter"
        assert manager.get_stats() == {"total_connections": 1, "users_connected": 1, "rooms": {}}

    @pytest.mark.asyncio
    async def test_per_user_limit(self, manager):
        await manager.connect(FakeWebSocket(), 1, "waiter")
        await manager.connect(FakeWebSocket(), 1, "waiter")
        third = FakeWebSocket()
        with pytest.raises(ConnectionError):
            await manager.connect(third, 1, "waiter")
        assert third.closed_with[0] == 1008
        assert manager.total_connections == 2

    @pytest.mark.asyncio
    async def test_total_limit(self, manager):
        for user_id in range(3):
            await manager.connect(FakeWebSocket(), user_id, "waiter")
        extra = FakeWebSocket()
        with pytest.raises(ConnectionError):
            await manager.connect(extra, 99, "admin")
        assert extra.closed_with[0] == 1013

    @pytest.mark.asyncio
    async def test_refuses_during_shutdown(self, manager):
        await manager.shutdown()
        with pytest.raises(ConnectionError):
            await manager.connect(FakeWebSocket(), 1, "waiter")


class TestRooms:

    @pytest.mark.asyncio
    async def test_send_to_room_only_reaches_members(self, manager):
        kitchen, waiter = FakeWebSocket(), FakeWebSocket()
        await manager.connect(kitchen, 1, "kitchen_staff")
        await manager.connect(waiter, 2, "waiter")
        await manager.join_room(kitchen, "default", "kitchen_staff")
        await manager.join_room(waiter, "default", "waiter")

        sent = await manager.send_to_room("default", "kitchen_staff", {"type": "new-order"})
        assert sent == 1
        assert kitchen.sent == [{"type": "new-order"}]
        assert waiter.sent == []

    @pytest.mark.asyncio
    async def test_exclude_and_rejoin(self, manager):
        a, b = FakeWebSocket(), FakeWebSocket()
        await manager.connect(a, 1, "waiter")
        await manager.connect(b, 2, "waiter")
        for ws in (a, b, a):
            await manager.join_room(ws, "default", "waiter")

        assert manager.get_stats()["rooms"] == {"default:waiter": 2}
        assert await manager.send_to_room("default", "waiter", {"type": "x"}, exclude=a) == 1
        assert a.sent == []

    @pytest.mark.asyncio
    async def test_join_unregistered(self, manager):
        with pytest.raises(ValueError):
            await manager.join_room(FakeWebSocket(), "default", "waiter")

    @pytest.mark.asyncio
    async def test_failed_send_is_skipped(self, manager):
        good, bad = FakeWebSocket(), FakeWebSocket(fail_send=True)
        for user_id, ws in enumerate((good, bad)):
            await manager.connect(ws, user_id, "manager")
            await manager.join_room(ws, "default", "manager")
        assert await manager.send_to_room("default", "manager", {"type": "x"}) == 1

    @pytest.mark.asyncio
    async def test_disconnect_leaves_rooms(self, manager):
        ws = FakeWebSocket()
        await manager.connect(ws, 1, "admin")
        await manager.join_room(ws, "default", "admin")
        await manager.join_room(ws, "default", "kitchen_staff")

        info = await manager.disconnect(ws)
        assert info.rooms == {("default", "admin"), ("default", "kitchen_staff")}
        assert manager.get_stats() == {"total_connections": 0, "users_connected": 0, "rooms": {}}
        assert await manager.disconnect(ws) is None

    @pytest.mark.asyncio
    async def test_broadcast_reaches_everyone(self, manager):
        a, b = FakeWebSocket(), FakeWebSocket()
        await manager.connect(a, 1, "waiter")
        await manager.connect(b, 2, "cashier")
        await manager.join_room(a, "default", "waiter")
        assert await manager.broadcast({"type": "system-heartbeat"}) == 2


class TestHeartbeats:

    @pytest.mark.asyncio
    async def test_stale_connections_closed(self, manager):
        fresh, stale = FakeWebSocket(), FakeWebSocket()
        await manager.connect(fresh, 1, "waiter")
        await manager.connect(stale, 2, "waiter")
        manager._last_heartbeat[stale] -= 120

        assert manager.get_stale_connections() == [stale]
        assert await manager.cleanup_stale_connections() == 1
        assert stale.closed_with == (1001, "Heartbeat timeout")
        assert manager.total_connections == 1

    @pytest.mark.asyncio
    async def test_heartbeat_refreshes(self, manager):
        ws = FakeWebSocket()
        await manager.connect(ws, 1, "waiter")
        manager._last_heartbeat[ws] -= 120
        manager.record_heartbeat(ws)
        assert manager.get_stale_connections() == []

    @pytest.mark.asyncio
    async def test_shutdown_closes_all(self, manager):
        sockets = [FakeWebSocket(), FakeWebSocket()]
        for user_id, ws in enumerate(sockets):
            await manager.connect(ws, user_id, "waiter")
        assert await manager.shutdown() == 2
        assert all(ws.closed_with == (1001, "Server shutdown") for ws in sockets)
        assert manager.is_shutting_down()
        assert manager.total_connections == 0

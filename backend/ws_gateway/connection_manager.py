"""
WebSocket connection manager.
Tracks active connections by user and by role room, with heartbeat
bookkeeping and per-user connection limits.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from shared.config.logging import get_logger
from shared.config.settings import settings

logger = get_logger(__name__)

# (restaurant_id, role)
RoomKey = tuple[str, str]


def _is_ws_connected(ws: WebSocket) -> bool:
    """True while both sides of the socket are open."""
    return ws.client_state == WebSocketState.CONNECTED and ws.application_state == WebSocketState.CONNECTED


@dataclass
class ConnectionInfo:
    """Who is behind a socket and which rooms it joined."""
    user_id: int
    role: str
    name: str | None = None
    rooms: set[RoomKey] = field(default_factory=set)


class ConnectionManager:
    """
    Manages WebSocket connections for real-time notifications.

    Connections are indexed by:
    - user_id: to enforce the per-user limit
    - room: (restaurant_id, role) pairs joined with join-role-room

    All index mutations happen under one asyncio.Lock.
    """

    def __init__(
        self,
        max_connections_per_user: int = settings.ws_max_connections_per_user,
        max_total_connections: int = settings.ws_max_total_connections,
        heartbeat_timeout: int = settings.ws_heartbeat_timeout,
    ):
        self.max_connections_per_user = max_connections_per_user
        self.max_total_connections = max_total_connections
        self.heartbeat_timeout = heartbeat_timeout
        self._shutdown = False
        self.by_user: dict[int, set[WebSocket]] = {}
        self.by_room: dict[RoomKey, set[WebSocket]] = {}
        self._info: dict[WebSocket, ConnectionInfo] = {}
        self._last_heartbeat: dict[WebSocket, float] = {}
        self._lock = asyncio.Lock()

    async def connect(
        self,
        websocket: WebSocket,
        user_id: int,
        role: str,
        name: str | None = None,
        timeout: float = 5.0,
    ) -> None:
        """
        Accept a WebSocket connection and register it.

        Raises:
            ConnectionError: Shutting down, accept timed out, or a limit was hit.
                The socket is closed before raising when it was accepted.
        """
        if self._shutdown:
            raise ConnectionError("Server is shutting down")

        try:
            await asyncio.wait_for(websocket.accept(), timeout=timeout)
        except asyncio.TimeoutError:
            raise ConnectionError("WebSocket accept timed out")

        if self.total_connections >= self.max_total_connections:
            await websocket.close(code=1013, reason="Server at capacity")
            raise ConnectionError("Maximum total connections reached")

        if len(self.by_user.get(user_id, ())) >= self.max_connections_per_user:
            await websocket.close(code=1008, reason="Too many connections")
            raise ConnectionError(
                f"User {user_id} exceeded max connections ({self.max_connections_per_user})"
            )

        async with self._lock:
            self._last_heartbeat[websocket] = time.time()
            self._info[websocket] = ConnectionInfo(user_id=user_id, role=role, name=name)
            self.by_user.setdefault(user_id, set()).add(websocket)

    async def disconnect(self, websocket: WebSocket) -> ConnectionInfo | None:
        """
        Remove a connection from every index.

        Returns its ConnectionInfo (with the rooms it had joined), or None
        if it was already gone.
        """
        async with self._lock:
            self._last_heartbeat.pop(websocket, None)
            info = self._info.pop(websocket, None)
            if info is None:
                return None

            sockets = self.by_user.get(info.user_id)
            if sockets is not None:
                sockets.discard(websocket)
                if not sockets:
                    del self.by_user[info.user_id]

            for room in info.rooms:
                members = self.by_room.get(room)
                if members is not None:
                    members.discard(websocket)
                    if not members:
                        del self.by_room[room]
            return info

    async def join_room(self, websocket: WebSocket, restaurant_id: str, role: str) -> RoomKey:
        """Add a registered connection to a role room. Joining twice is a no-op."""
        room = (restaurant_id, role)
        async with self._lock:
            info = self._info.get(websocket)
            if info is None:
                raise ValueError("Connection is not registered")
            info.rooms.add(room)
            self.by_room.setdefault(room, set()).add(websocket)
        return room

    def get_info(self, websocket: WebSocket) -> ConnectionInfo | None:
        return self._info.get(websocket)

    async def _send_many(self, sockets: set[WebSocket], payload: dict[str, Any], target: str) -> int:
        sent = 0
        for ws in list(sockets):
            if not _is_ws_connected(ws):
                logger.debug("Skipping send to disconnected socket", target=target)
                continue
            try:
                await ws.send_json(payload)
                sent += 1
            except Exception as e:
                logger.warning("Failed to send message", target=target, error=str(e))
        return sent

    async def send_to_room(
        self,
        restaurant_id: str,
        role: str,
        payload: dict[str, Any],
        exclude: WebSocket | None = None,
    ) -> int:
        """
        Send to every connection in a role room, optionally skipping one.

        Returns the number of connections that received the message.
        """
        members = set(self.by_room.get((restaurant_id, role), ()))
        if exclude is not None:
            members.discard(exclude)
        return await self._send_many(members, payload, f"{restaurant_id}:{role}")

    async def broadcast(self, payload: dict[str, Any]) -> int:
        """Send to every connected client, joined to a room or not."""
        return await self._send_many(set(self._info), payload, "*")

    @property
    def total_connections(self) -> int:
        return len(self._info)

    def get_stats(self) -> dict[str, Any]:
        return {
            "total_connections": self.total_connections,
            "users_connected": len(self.by_user),
            "rooms": {f"{rid}:{role}": len(members) for (rid, role), members in self.by_room.items()},
        }

    # =========================================================================
    # Heartbeats
    # =========================================================================

    def record_heartbeat(self, websocket: WebSocket) -> None:
        self._last_heartbeat[websocket] = time.time()

    def get_stale_connections(self) -> list[WebSocket]:
        """Connections silent for longer than the heartbeat timeout."""
        now = time.time()
        return [
            ws for ws, last in list(self._last_heartbeat.items())
            if now - last > self.heartbeat_timeout
        ]

    async def cleanup_stale_connections(self) -> int:
        """Close and unregister stale connections. Returns how many were removed."""
        stale = self.get_stale_connections()
        for ws in stale:
            try:
                await ws.close(code=1001, reason="Heartbeat timeout")
            except Exception as e:
                logger.warning("Failed to close stale connection", error=str(e))
            await self.disconnect(ws)
        return len(stale)

    async def shutdown(self) -> int:
        """Refuse new connections and close the open ones."""
        self._shutdown = True
        logger.info("WebSocket manager shutting down")

        async with self._lock:
            sockets = set(self._info)

        closed = 0
        for ws in sockets:
            try:
                await ws.close(code=1001, reason="Server shutdown")
                closed += 1
            except Exception as e:
                logger.warning("Failed to close connection during shutdown", error=str(e))
            await self.disconnect(ws)

        logger.info("WebSocket shutdown complete", closed=closed)
        return closed

    def is_shutting_down(self) -> bool:
        return self._shutdown

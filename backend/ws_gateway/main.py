"""
WebSocket Gateway main application.
Delivers role-room events from Redis to connected POS clients.

Protocol (after connecting to /ws?token=<jwt>):
- text "ping" -> "pong"; {"type": "ping"} -> {"type": "pong"}
- {"type": "join-role-room", "userId", "role", "restaurantId"}
    -> {"type": "room-joined", ...} to the caller
    -> {"type": "user-joined", ...} to the others in the room
- on disconnect, {"type": "user-left", ...} to each joined room
- {"type": "system-heartbeat", ...} to everyone on a fixed interval
"""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.config.constants import Roles
from shared.config.logging import setup_logging, ws_gateway_logger as logger
from shared.config.settings import settings
from shared.infrastructure.events import channel_role_room, close_redis_pool, get_redis_pool
from shared.security.auth import verify_jwt
from shared.utils.health import HealthStatus, aggregate_health_checks, health_check_with_timeout
from rest_api.core.cors import get_cors_origins
from rest_api.models.base import utc_now
from ws_gateway.connection_manager import ConnectionInfo, ConnectionManager
from ws_gateway.redis_subscriber import run_subscriber


manager = ConnectionManager()


# =============================================================================
# Background tasks
# =============================================================================


async def deliver_event(restaurant_id: str, role: str, event: dict[str, Any]) -> int:
    """Forward one Redis event to its role room."""
    sent = await manager.send_to_room(restaurant_id, role, event)
    if sent:
        logger.debug("Dispatched event", event_type=event.get("type"), role=role, clients=sent)
    return sent


async def start_redis_subscriber() -> None:
    try:
        await run_subscriber(deliver_event)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.error("Redis subscriber stopped", error=str(e), exc_info=True)


async def system_heartbeat_payload() -> dict[str, Any]:
    return {
        "type": "system-heartbeat",
        "server_time": utc_now().isoformat(),
        "connected_users": manager.total_connections,
    }


async def start_system_heartbeat() -> None:
    """Broadcast system-heartbeat to every connection on a fixed interval."""
    while True:
        await asyncio.sleep(settings.ws_system_heartbeat_interval)
        try:
            await manager.broadcast(await system_heartbeat_payload())
        except Exception as e:
            logger.error("Error sending system heartbeat", error=str(e))


async def start_heartbeat_cleanup() -> None:
    """Close connections that stopped sending anything."""
    while True:
        await asyncio.sleep(30)
        try:
            cleaned = await manager.cleanup_stale_connections()
            if cleaned:
                logger.info("Cleaned up stale connections", count=cleaned)
        except Exception as e:
            logger.error("Error in heartbeat cleanup", error=str(e))


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Starting WebSocket Gateway", port=settings.ws_gateway_port, env=settings.environment)

    tasks = [
        asyncio.create_task(start_redis_subscriber()),
        asyncio.create_task(start_system_heartbeat()),
        asyncio.create_task(start_heartbeat_cleanup()),
    ]

    yield

    logger.info("Shutting down WebSocket Gateway")
    await manager.shutdown()
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)

    await close_redis_pool()
    logger.info("Redis connection pool closed")


app = FastAPI(
    title="Restaurant POS WebSocket Gateway",
    description="Real-time notifications for restaurant staff",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


# =============================================================================
# Health Check
# =============================================================================


@app.get("/ws/health")
def health_check():
    return {
        "status": HealthStatus.HEALTHY.value,
        "service": "ws-gateway",
        "environment": settings.environment,
        **manager.get_stats(),
    }


@health_check_with_timeout(timeout=3.0, component="redis")
async def check_redis_health() -> None:
    client = await get_redis_pool()
    await client.ping()


@app.get("/ws/health/detailed")
async def detailed_health_check():
    report = await aggregate_health_checks([check_redis_health()])
    body = {
        "status": report["status"],
        "service": "ws-gateway",
        "environment": settings.environment,
        "connections": manager.get_stats(),
        "dependencies": report["components"],
    }
    if report["status"] != HealthStatus.HEALTHY.value:
        return JSONResponse(content=body, status_code=503)
    return body


# =============================================================================
# Client messages
# =============================================================================


def _error(message: str) -> dict[str, Any]:
    return {"type": "error", "message": message}


async def join_role_room(websocket: WebSocket, info: ConnectionInfo, data: dict[str, Any]) -> dict[str, Any]:
    """
    Join the caller to a role room and announce it to the room.

    The room role defaults to the token's role. Only admins may join a
    room other than their own; the restaurant must be this gateway's.
    """
    role = data.get("role") or info.role
    restaurant_id = data.get("restaurantId") or settings.restaurant_id

    if role not in Roles.ALL:
        return _error(f"Unknown role: {role}")
    if role != info.role and info.role != Roles.ADMIN:
        logger.warning("Room join refused", user_id=info.user_id, role=info.role, requested=role)
        return _error("Cannot join another role's room")
    if restaurant_id != settings.restaurant_id:
        return _error("Unknown restaurant")

    await manager.join_room(websocket, restaurant_id, role)
    logger.info("Joined role room", user_id=info.user_id, role=role, restaurant_id=restaurant_id)

    await manager.send_to_room(
        restaurant_id,
        role,
        {"type": "user-joined", "userId": info.user_id, "role": role, "name": info.name},
        exclude=websocket,
    )
    return {
        "type": "room-joined",
        "room": channel_role_room(restaurant_id, role),
        "role": role,
        "restaurantId": restaurant_id,
    }


async def handle_client_message(websocket: WebSocket, info: ConnectionInfo, raw: str) -> Any:
    """
    React to one client frame. Returns the reply (str or dict) or None.
    """
    if raw == "ping":
        return "pong"

    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.debug("Unknown message", user_id=info.user_id, message=raw[:100])
        return None
    if not isinstance(data, dict):
        return _error("Message must be a JSON object")

    message_type = data.get("type")
    if message_type == "ping":
        return {"type": "pong"}
    if message_type == "join-role-room":
        return await join_role_room(websocket, info, data)

    logger.debug("Unknown message type", user_id=info.user_id, message_type=message_type)
    return _error(f"Unknown message type: {message_type}")


async def announce_departure(websocket: WebSocket, info: ConnectionInfo) -> None:
    for restaurant_id, role in info.rooms:
        await manager.send_to_room(
            restaurant_id,
            role,
            {
                "type": "user-left",
                "userId": info.user_id,
                "role": role,
                "disconnected_at": utc_now().isoformat(),
            },
            exclude=websocket,
        )


# =============================================================================
# WebSocket endpoint
# =============================================================================


@app.websocket("/ws")
async def pos_websocket(
    websocket: WebSocket,
    token: str = Query(..., description="JWT token"),
):
    """Single endpoint for every role; rooms are chosen with join-role-room."""
    try:
        claims = verify_jwt(token)
    except HTTPException as e:
        await websocket.close(code=4001, reason=str(e.detail))
        return

    user_id = int(claims["sub"])
    role = claims.get("role")
    if role not in Roles.ALL:
        await websocket.close(code=4003, reason="Unknown role")
        return

    try:
        await manager.connect(websocket, user_id, role, name=claims.get("email"))
    except ConnectionError as e:
        logger.warning("Connection refused", user_id=user_id, reason=str(e))
        return

    info = manager.get_info(websocket)
    logger.info("Client connected", user_id=user_id, role=role)

    try:
        while True:
            raw = await websocket.receive_text()

            if len(raw) > settings.ws_max_message_size:
                logger.warning("Message size exceeded limit", user_id=user_id, size=len(raw))
                await websocket.close(code=1009, reason="Message too large")
                break

            manager.record_heartbeat(websocket)
            reply = await handle_client_message(websocket, info, raw)
            if isinstance(reply, str):
                await websocket.send_text(reply)
            elif reply is not None:
                await websocket.send_json(reply)

    except WebSocketDisconnect:
        logger.info("Client disconnected", user_id=user_id, role=role)
    finally:
        departed = await manager.disconnect(websocket)
        if departed is not None:
            await announce_departure(websocket, departed)


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ws_gateway.main:app",
        host="0.0.0.0",
        port=settings.ws_gateway_port,
        reload=settings.debug,
    )

# app/services/broadcaster.py
"""
Real-time fan-out to connected dashboards over WebSocket.

Publish-only: every event goes to the sockets connected at emission time.
No replay, no queue for offline clients, no acknowledgement. Clients
re-fetch the vehicle when they receive `vehicle_updated` and on reconnect.

Frame format: {"event": "<name>", "data": {...}}
"""

import asyncio

from fastapi import WebSocket
from app.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)

VEHICLE_UPDATED = "vehicle_updated"
FLEEING_ALERT = "vehicule_en_fuite_alerte"


class ConnectionManager:
    def __init__(self):
        self.active_connections: list[WebSocket] = []

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.append(websocket)
        logger.info(f"[WS] Client connected ({len(self.active_connections)} active)")

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
            logger.info(f"[WS] Client disconnected ({len(self.active_connections)} active)")

    async def broadcast(self, event: str, data: dict):
        """
        Send one event to every connected client. Sockets that fail or stall
        past WS_SEND_TIMEOUT_SECONDS are dropped.
        """
        message = {"event": event, "data": data}
        for websocket in list(self.active_connections):
            try:
                await asyncio.wait_for(websocket.send_json(message), settings.WS_SEND_TIMEOUT_SECONDS)
            except asyncio.TimeoutError:
                logger.warning(f"[WS] Dropping client stalled for more than {settings.WS_SEND_TIMEOUT_SECONDS}s")
                self.disconnect(websocket)
            except Exception as e:
                logger.warning(f"[WS] Dropping client after send failure: {e}")
                self.disconnect(websocket)


# Process-wide hub shared by every handler
hub = ConnectionManager()


async def notify_vehicle_updated(plaque: str):
    await hub.broadcast(VEHICLE_UPDATED, {"plaque": plaque})


async def notify_fleeing_vehicle(plaque: str):
    message = f"ALERTE : le véhicule {plaque} est signalé EN FUITE"
    logger.warning(f"[ALERT][EN FUITE] {message}")
    await hub.broadcast(FLEEING_ALERT, {"message": message})

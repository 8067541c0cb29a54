# app/routers/realtime.py
"""
Live channel for agency dashboards.
Server → client only (vehicle_updated, vehicule_en_fuite_alerte); anything
the client sends is ignored. No authentication on the channel.
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from app.services.broadcaster import hub

router = APIRouter()


@router.websocket("/ws")
async def realtime_channel(websocket: WebSocket):
    await hub.connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        hub.disconnect(websocket)

"""
WebSocket rooms for live bring-list updates
"""

import logging
from typing import Any, Dict, List

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder
from starlette.requests import HTTPConnection

logger = logging.getLogger(__name__)


class RealtimeManager:
    """Tracks WebSocket connections per event and broadcasts row changes"""

    def __init__(self):
        # event_id -> list of websockets
        self.active_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, event_id: str):
        self.active_connections.setdefault(event_id, []).append(websocket)
        await websocket.accept()
        logger.info(f"WebSocket joined event {event_id}. Connections: {len(self.active_connections[event_id])}")

    def disconnect(self, websocket: WebSocket, event_id: str):
        connections = self.active_connections.get(event_id)
        if not connections or websocket not in connections:
            return
        connections.remove(websocket)
        if not connections:
            del self.active_connections[event_id]
        logger.info(f"WebSocket left event {event_id}")

    async def broadcast(self, event_id: str, message: Dict[str, Any]) -> int:
        """Send to every socket of the event, dropping the ones that fail. Returns deliveries."""
        payload = jsonable_encoder(message)
        delivered = 0
        disconnected = []
        for websocket in list(self.active_connections.get(event_id, [])):
            try:
                await websocket.send_json(payload)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping websocket for event {event_id}: {e}")
                disconnected.append(websocket)
        for websocket in disconnected:
            self.disconnect(websocket, event_id)
        return delivered

    async def broadcast_bring_item(self, item: Dict[str, Any]) -> int:
        """Send only the changed row; clients apply it to their local list."""
        return await self.broadcast(item["event_id"], {"type": "bring_item_updated", "item": item})

    def get_connection_count(self, event_id: str) -> int:
        return len(self.active_connections.get(event_id, []))


def get_realtime_manager(connection: HTTPConnection) -> RealtimeManager:
    return connection.app.state.realtime

"""WebSocket connection manager for real-time report updates."""

import json
from typing import Any

from fastapi import WebSocket

from backend.app.services.notifications import NotificationChannel


class ConnectionManager(NotificationChannel):
    """Manages WebSocket connections grouped into rooms (``class:<id>`` or ``admin``)."""

    def __init__(self):
        """Initialize connection manager."""
        # Maps room -> list of WebSocket connections
        self.active_connections: dict[str, list[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, room: str) -> None:
        """Accept a new WebSocket connection and add it to a room."""
        await websocket.accept()

        if room not in self.active_connections:
            self.active_connections[room] = []

        self.active_connections[room].append(websocket)

    def disconnect(self, websocket: WebSocket, room: str) -> None:
        """Remove a WebSocket connection from a room."""
        if room in self.active_connections:
            if websocket in self.active_connections[room]:
                self.active_connections[room].remove(websocket)

            # Clean up empty rooms
            if not self.active_connections[room]:
                del self.active_connections[room]

    async def send_personal_message(self, message: dict[str, Any], websocket: WebSocket) -> None:
        """Send a message to a specific WebSocket connection."""
        await websocket.send_text(json.dumps(message))

    async def broadcast(self, room: str, message: dict[str, Any]) -> None:
        """Broadcast a message to all connections in a room."""
        if room not in self.active_connections:
            return

        disconnected = []
        for connection in self.active_connections[room]:
            try:
                await connection.send_text(json.dumps(message, default=str))
            except Exception:
                # Mark for removal if connection is broken
                disconnected.append(connection)

        # Clean up broken connections
        for connection in disconnected:
            self.disconnect(connection, room)

    async def publish(self, room: str, event: str, data: dict[str, Any]) -> None:
        await self.broadcast(room, {"type": event, "data": data})

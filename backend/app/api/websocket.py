"""WebSocket endpoints for real-time report updates."""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

router = APIRouter(tags=["websocket"])


async def _serve(websocket: WebSocket, room: str) -> None:
    manager = websocket.app.state.connections
    await manager.connect(websocket, room)

    try:
        # Keep connection alive; clients only send heartbeats
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await manager.send_personal_message({"type": "pong"}, websocket)

    except WebSocketDisconnect:
        manager.disconnect(websocket, room)


@router.websocket("/ws/classes/{class_id}")
async def class_websocket(websocket: WebSocket, class_id: str):
    """
    Real-time updates for one class.

    Events sent to clients:
    - report_submitted: A report for the class was submitted
    - report_status_changed: CS/CP decision or administrative review changed a report's status
    """
    await _serve(websocket, f"class:{class_id}")


@router.websocket("/ws/admin")
async def admin_websocket(websocket: WebSocket):
    """Real-time updates for every class, for the admin dashboard."""
    await _serve(websocket, "admin")

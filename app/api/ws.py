"""
WebSocket manager for real-time dashboard updates
"""

import asyncio
import json
import logging
from datetime import datetime
from typing import Dict, List, Optional, Set
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.services.wedding_store import WeddingStore

logger = logging.getLogger(__name__)

DASHBOARD_CHANNEL = "dashboard"

class WebSocketManager:
    """Manages WebSocket connections for real-time updates"""

    def __init__(self):
        # channel -> list of websockets
        self.active_connections: Dict[str, List[WebSocket]] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: Set[asyncio.Future] = set()

    def attach_loop(self, loop: asyncio.AbstractEventLoop):
        """Remember the server loop so store listeners on other threads can publish"""
        self._loop = loop

    async def connect(self, websocket: WebSocket, channel: str):
        """Accept WebSocket connection and add to channel"""
        await websocket.accept()

        if channel not in self.active_connections:
            self.active_connections[channel] = []

        self.active_connections[channel].append(websocket)
        logger.info(f"WebSocket connected to {channel}. Total connections: {len(self.active_connections[channel])}")

    def disconnect(self, websocket: WebSocket, channel: str):
        """Remove WebSocket connection from channel"""
        if channel in self.active_connections:
            try:
                self.active_connections[channel].remove(websocket)
                logger.info(f"WebSocket disconnected from {channel}. Remaining connections: {len(self.active_connections[channel])}")

                # Clean up empty channels
                if not self.active_connections[channel]:
                    del self.active_connections[channel]
            except ValueError:
                # WebSocket was not in the list
                pass

    async def send_personal_message(self, message: dict, websocket: WebSocket):
        """Send message to specific WebSocket"""
        try:
            await websocket.send_text(json.dumps(message))
        except Exception as e:
            logger.error(f"Error sending personal message: {e}")

    async def broadcast(self, channel: str, message: dict):
        """Broadcast message to all WebSockets on a channel"""
        if channel not in self.active_connections:
            return

        # Create list copy to avoid modification during iteration
        connections = self.active_connections[channel].copy()

        disconnected = []
        for websocket in connections:
            try:
                await websocket.send_text(json.dumps(message))
            except Exception as e:
                logger.error(f"Error broadcasting to websocket: {e}")
                disconnected.append(websocket)

        # Clean up disconnected websockets
        for websocket in disconnected:
            self.disconnect(websocket, channel)

    def publish(self, channel: str, message: dict):
        """Schedule a broadcast from any thread"""
        if self._loop is None or self._loop.is_closed():
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            future = self._loop.create_task(self.broadcast(channel, message))
        else:
            future = asyncio.run_coroutine_threadsafe(self.broadcast(channel, message), self._loop)
        self._pending.add(future)
        future.add_done_callback(self._pending.discard)

def dashboard_message(store: WeddingStore, topic: str) -> dict:
    """Full snapshot of whatever changed in the store"""
    message = {"type": topic, "timestamp": datetime.utcnow().isoformat()}
    if topic == "settings":
        message["settings"] = store.settings.to_document()
    else:
        message["invitees"] = [inv.to_document() for inv in store.invitees]
        message["summary"] = store.rsvp_summary()
    return message

def dashboard_listener(store: WeddingStore, manager: WebSocketManager):
    """Store listener that forwards every mirror change to dashboards"""
    def on_change(topic: str):
        manager.publish(DASHBOARD_CHANNEL, dashboard_message(store, topic))
    return on_change

# Global WebSocket manager instance
websocket_manager = WebSocketManager()

# Router for WebSocket endpoints
router = APIRouter()

@router.websocket("/dashboard")
async def dashboard_endpoint(websocket: WebSocket, passcode: str = ""):
    """WebSocket endpoint pushing store snapshots to the admin dashboard"""
    store: WeddingStore = websocket.app.state.store
    if not store.login(passcode):
        await websocket.close(code=4001, reason="Incorrect passcode")
        return

    await websocket_manager.connect(websocket, DASHBOARD_CHANNEL)

    try:
        # Send current state on connect
        await websocket_manager.send_personal_message(dashboard_message(store, "settings"), websocket)
        await websocket_manager.send_personal_message(dashboard_message(store, "invitees"), websocket)

        # Keep connection alive and handle incoming messages
        while True:
            data = await websocket.receive_text()
            try:
                client_message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON received from WebSocket: {data}")
                continue

            # Handle heartbeat/ping
            if client_message.get("type") == "ping":
                pong_message = {
                    "type": "pong",
                    "timestamp": client_message.get("timestamp")
                }
                await websocket_manager.send_personal_message(pong_message, websocket)

    except WebSocketDisconnect:
        pass
    finally:
        websocket_manager.disconnect(websocket, DASHBOARD_CHANNEL)

#!/usr/bin/env python
# Real-time channel to the PeerFusion server
import asyncio
import json
import logging
from typing import Dict, Any, Optional, Callable, Awaitable
from urllib.parse import quote

import websockets

from peerfusion_client.utils.config import config
from peerfusion_client.session import session

logger = logging.getLogger(__name__)

Callback = Optional[Callable[..., Awaitable[None]]]


class ChatConnection:
    """Manages the WebSocket session and dispatches server events"""

    def __init__(self, ws_url: Optional[str] = None):
        self.ws_url = ws_url or config.ws_url
        self.websocket = None
        self.connected = False
        self.shutdown_requested = False

        # Callbacks
        self.on_message: Callback = None
        self.on_typing: Callback = None
        self.on_error: Callback = None
        self.on_disconnect: Callback = None

    def build_url(self) -> str:
        return f"{self.ws_url}/chat?access_token={quote(session.access_token or '')}"

    async def connect(self) -> bool:
        """Connect to the WebSocket server"""
        if not session.is_authenticated():
            await self._emit_error("Not logged in")
            return False

        try:
            self.websocket = await websockets.connect(
                self.build_url(),
                ping_interval=30,
                ping_timeout=10
            )
            self.connected = True
            return True

        except (OSError, websockets.exceptions.WebSocketException) as e:
            await self._emit_error(f"Real-time connection failed: {str(e)}")
            return False

    async def disconnect(self):
        """Disconnect from the WebSocket server"""
        self.shutdown_requested = True
        self.connected = False

        if self.websocket:
            await self.websocket.close()
            self.websocket = None

    async def listen(self):
        """Listen for events until the connection closes or shutdown is requested"""
        if not self.websocket or not self.connected:
            return

        try:
            while self.connected and not self.shutdown_requested:
                try:
                    raw = await asyncio.wait_for(self.websocket.recv(), timeout=0.5)
                except asyncio.TimeoutError:
                    continue
                await self.process_event(raw)

        except websockets.exceptions.ConnectionClosed as e:
            self.connected = False
            if e.rcvd and e.rcvd.code == 4001:
                await self._emit_error("Real-time connection rejected: authentication failed")
            if self.on_disconnect and not self.shutdown_requested:
                await self.on_disconnect("Real-time connection closed")

    async def process_event(self, raw: str):
        """Process one event received from the server"""
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Dropping undecodable event: {raw!r}")
            return

        event_type = data.get("type")

        if event_type == "new_message":
            if self.on_message and isinstance(data.get("message"), dict):
                await self.on_message(data["message"])

        elif event_type == "user_typing":
            if self.on_typing:
                await self.on_typing(data.get("userId"), bool(data.get("isTyping")))

        elif event_type == "error":
            await self._emit_error(data.get("error", "Unknown server error"))

        elif event_type == "pong":
            pass

        else:
            logger.debug(f"Ignoring event of type {event_type}")

    async def send_event(self, event: Dict[str, Any]) -> bool:
        if not self.websocket or not self.connected:
            return False
        try:
            await self.websocket.send(json.dumps(event))
            return True
        except websockets.exceptions.ConnectionClosed:
            self.connected = False
            return False

    async def send_typing(self, receiver_id: int, is_typing: bool) -> bool:
        return await self.send_event({
            "type": "typing",
            "receiverId": receiver_id,
            "isTyping": is_typing
        })

    async def _emit_error(self, message: str):
        if self.on_error:
            await self.on_error(message)
        else:
            logger.error(message)

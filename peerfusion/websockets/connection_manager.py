# peerfusion/websockets/connection_manager.py
import asyncio
import json
from collections import defaultdict
import logging
from typing import Dict, Any, Iterable, Optional, Set

from fastapi import HTTPException, WebSocket, WebSocketDisconnect

from peerfusion.database import Database
from peerfusion.schemas.events import ErrorEvent, EventType
from peerfusion.services.auth_service import AuthService
from peerfusion.websockets.event_dispatcher import EventRegistry

logger = logging.getLogger(__name__)

# Close code sent when the access token is rejected
WS_CLOSE_UNAUTHORIZED = 4001


class ConnectionManager:
    """
    Tracks the live WebSocket sessions of each user and pushes events to them.

    Delivery is best-effort and at-most-once: a push to a user with no open
    session is dropped, and a session that fails or times out is removed.
    """

    def __init__(self, send_timeout: float = 5.0):
        self.send_timeout = send_timeout
        self.connections: Dict[int, Set[WebSocket]] = defaultdict(set)

    async def connect(self, websocket: WebSocket, user_id: int):
        self.connections[user_id].add(websocket)
        logger.info(f"User {user_id} connected ({len(self.connections[user_id])} sessions)")

    def disconnect(self, websocket: WebSocket, user_id: Optional[int] = None):
        user_ids = [user_id] if user_id is not None else list(self.connections.keys())
        for uid in user_ids:
            sessions = self.connections.get(uid)
            if sessions and websocket in sessions:
                sessions.discard(websocket)
                if not sessions:
                    del self.connections[uid]
                break

    def is_online(self, user_id: int) -> bool:
        return bool(self.connections.get(user_id))

    def session_count(self, user_id: int) -> int:
        return len(self.connections.get(user_id, ()))

    async def send_event(self, websocket: WebSocket, payload: Dict[str, Any]) -> bool:
        """Send one payload to one session. Returns False if the session was dropped."""
        try:
            await asyncio.wait_for(websocket.send_json(payload), timeout=self.send_timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning("Timed out pushing event, dropping session")
        except WebSocketDisconnect:
            pass
        except Exception as e:
            logger.warning(f"Failed to push event: {str(e)}")
        self.disconnect(websocket)
        return False

    async def send_to_user(self, user_id: int, payload: Dict[str, Any]) -> int:
        """
        Push a payload to every session of a user.

        Returns:
            Number of sessions the payload reached.
        """
        delivered = 0
        for websocket in list(self.connections.get(user_id, ())):
            if await self.send_event(websocket, payload):
                delivered += 1
        return delivered

    async def send_to_users(self, user_ids: Iterable[int], payload: Dict[str, Any]) -> int:
        delivered = 0
        for user_id in dict.fromkeys(user_ids):  # de-duplicate, keep order
            delivered += await self.send_to_user(user_id, payload)
        return delivered

    async def publish_new_message(self, message: Dict[str, Any]) -> int:
        """Notify the receiver and the sender's other sessions of a new message"""
        payload = {"type": EventType.NEW_MESSAGE.value, "message": message}
        return await self.send_to_users([message["receiver_id"], message["sender_id"]], payload)

    async def publish_typing(self, from_user_id: int, to_user_id: int, is_typing: bool) -> int:
        payload = {
            "type": EventType.USER_TYPING.value,
            "userId": from_user_id,
            "isTyping": is_typing
        }
        return await self.send_to_user(to_user_id, payload)

    async def close_all(self):
        """Close every open session, used at application shutdown"""
        for user_id, sessions in list(self.connections.items()):
            for websocket in list(sessions):
                try:
                    await websocket.close()
                except Exception as e:
                    logger.debug(f"Error closing session of user {user_id}: {str(e)}")
        self.connections.clear()


def resolve_user_id(access_token: str, database: Database) -> int:
    """
    Look up the user behind an access token. Raises 401 on a bad token or unknown user.
    """
    db = database.session()
    try:
        auth_service = AuthService(db)
        payload = auth_service.verify_token(access_token)
        user = auth_service.get_user_by_id(int(payload["sub"]))
        if not user:
            raise HTTPException(status_code=401, detail="User not found")
        return user.id
    finally:
        db.close()


async def authenticate(websocket: WebSocket, access_token: str, database: Database) -> Optional[int]:
    """
    Resolve the user id behind an access token, or close the socket.
    """
    try:
        # Blocking session work stays off the event loop
        return await asyncio.to_thread(resolve_user_id, access_token, database)
    except HTTPException as e:
        await websocket.send_json(ErrorEvent(error=e.detail).model_dump(mode="json"))
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED)
        return None


async def handle_chat_connection(
    websocket: WebSocket,
    access_token: str,
    manager: ConnectionManager,
    database: Database
):
    try:
        await websocket.accept()
    except Exception as e:
        logger.error(f"Failed to accept WebSocket connection: {str(e)}")
        return

    user_id = await authenticate(websocket, access_token, database)
    if user_id is None:
        return

    await manager.connect(websocket, user_id)
    registry = EventRegistry(manager)

    try:
        while True:
            raw_data = await websocket.receive_text()
            try:
                event_data = json.loads(raw_data)
            except json.JSONDecodeError:
                await manager.send_event(websocket, ErrorEvent(error="Invalid JSON format").model_dump(mode="json"))
                continue
            await registry.dispatcher.dispatch(websocket, event_data, user_id)
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: user {user_id}")
    except Exception as e:
        logger.error(f"Error processing event from user {user_id}: {str(e)}")
    finally:
        manager.disconnect(websocket, user_id)
        logger.info(f"Connection closed for user {user_id}")

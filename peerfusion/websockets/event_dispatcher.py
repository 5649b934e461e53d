# peerfusion/websockets/event_dispatcher.py
import logging
from typing import Any, Awaitable, Callable, Dict

from fastapi import WebSocket
from pydantic import ValidationError

from peerfusion.schemas.events import ErrorEvent, EventType, TypingEvent

logger = logging.getLogger(__name__)


class EventDispatcher:
    """Dispatches WebSocket events to appropriate handlers based on event type."""

    def __init__(self, manager: Any):
        self.manager = manager
        self.handlers: Dict[str, Callable[..., Awaitable[None]]] = {}

    def register_handler(self, event_type: str, handler: Callable[..., Awaitable[None]]):
        self.handlers[event_type] = handler

    async def send_error(self, websocket: WebSocket, error: str):
        await self.manager.send_event(websocket, ErrorEvent(error=error).model_dump(mode="json"))

    async def dispatch(self, websocket: WebSocket, event_data: Any, user_id: int):
        if not isinstance(event_data, dict):
            await self.send_error(websocket, "Event must be a JSON object")
            return

        event_type = event_data.get("type")
        handler = self.handlers.get(event_type)
        if handler:
            try:
                await handler(websocket, event_data, user_id)
            except ValidationError as e:
                await self.send_error(websocket, f"Invalid {event_type} event: {e.errors()[0]['msg']}")
            except Exception as e:
                logger.error(f"Error in event handler for {event_type}: {str(e)}")
                await self.send_error(websocket, f"Error processing {event_type}")
        else:
            logger.warning(f"No handler registered for event type: {event_type}")
            await self.send_error(websocket, f"Unknown event type: {event_type}")


class EventRegistry:
    """Registry for all supported client -> server events."""

    def __init__(self, manager: Any):
        self.manager = manager
        self.dispatcher = EventDispatcher(manager)
        self._setup_handlers()

    def _setup_handlers(self):
        self.dispatcher.register_handler(EventType.TYPING.value, self.handle_typing)
        self.dispatcher.register_handler(EventType.PING.value, self.handle_ping)

    async def handle_typing(self, websocket: WebSocket, event_data: dict, user_id: int):
        """Relay a typing indicator to the receiver's sessions as user_typing."""
        event = TypingEvent(**event_data)
        if event.receiver_id == user_id:
            return  # nobody to notify about typing into one's own notes
        await self.manager.publish_typing(user_id, event.receiver_id, event.is_typing)

    async def handle_ping(self, websocket: WebSocket, event_data: dict, user_id: int):
        """Respond to ping events with a pong."""
        await self.manager.send_event(websocket, {"type": EventType.PONG.value})

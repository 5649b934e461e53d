from pydantic import BaseModel, Field
import enum

from peerfusion.schemas.base import MAX_USER_ID


class EventType(str, enum.Enum):
    # server -> client
    NEW_MESSAGE = "new_message"
    USER_TYPING = "user_typing"
    PONG = "pong"
    ERROR = "error"
    # client -> server
    TYPING = "typing"
    PING = "ping"


class TypingEvent(BaseModel):
    """Outbound typing signal from a client"""
    type: EventType = EventType.TYPING
    receiver_id: int = Field(..., alias="receiverId", gt=0, le=MAX_USER_ID)
    is_typing: bool = Field(..., alias="isTyping")

    class Config:
        populate_by_name = True


class ErrorEvent(BaseModel):
    type: EventType = EventType.ERROR
    error: str

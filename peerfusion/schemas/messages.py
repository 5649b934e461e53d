from typing import Optional
from pydantic import BaseModel, Field, field_validator
from datetime import datetime

from peerfusion.schemas.base import MAX_USER_ID


class MessageSendRequest(BaseModel):
    """Body of POST /messages/send. Accepts the camelCase keys the web client sends."""
    receiver_id: int = Field(..., alias="receiverId", gt=0, le=MAX_USER_ID)
    content: str = Field(..., min_length=1)
    message_type: str = Field("text", alias="messageType", min_length=1, max_length=20)

    class Config:
        populate_by_name = True

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content must not be blank")
        return value


class SenderInfo(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None


class MessageResponse(BaseModel):
    """A message annotated with its sender's display fields."""
    id: int
    sender_id: int
    receiver_id: int
    content: str
    message_type: str
    is_read: bool
    created_at: datetime
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None


class SentMessageResponse(MessageResponse):
    """Response to a send; also the payload of the new_message push."""
    sender: SenderInfo


class UnreadCountResponse(BaseModel):
    unread_count: int = Field(..., alias="unreadCount", ge=0)

    class Config:
        populate_by_name = True

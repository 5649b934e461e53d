from typing import Optional, Union
from pydantic import BaseModel
from datetime import datetime


class ConversationSummary(BaseModel):
    """
    One entry of the conversation list. Regular conversations carry the
    stored integer id; the synthesized self-conversation uses "self_<user_id>".
    """
    id: Union[int, str]
    is_self: bool = False
    other_user_id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    avatar: Optional[str] = None
    last_message_id: Optional[int] = None
    last_message_content: Optional[str] = None
    last_message_sender_id: Optional[int] = None
    last_message_at: Optional[datetime] = None
    unread_count: int = 0

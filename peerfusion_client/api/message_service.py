#!/usr/bin/env python
# Message service for conversations, chat history and read state
from typing import Dict, Any, List

from peerfusion_client.api.base_service import BaseService


class MessageService(BaseService):
    """
    Service for message-related API operations.

    Errors are raised as APIError so the chat view can record them
    instead of silently showing an empty thread.
    """

    async def get_conversations(self) -> List[Dict[str, Any]]:
        """Get all conversations for the current user"""
        return await self.get("/messages/conversations")

    async def get_chat_history(self, user_id: int) -> List[Dict[str, Any]]:
        """Get chat history with another user (or one's own notes)"""
        return await self.get(f"/messages/chat/{user_id}")

    async def send_message(self, receiver_id: int, content: str, message_type: str = "text") -> Dict[str, Any]:
        """Send a message"""
        return await self.post("/messages/send", {
            "receiverId": receiver_id,
            "content": content,
            "messageType": message_type
        })

    async def mark_as_read(self, sender_id: int) -> Dict[str, Any]:
        """Mark messages from a sender as read"""
        return await self.put(f"/messages/read/{sender_id}")

    async def get_unread_count(self) -> int:
        """Get unread message count"""
        response = await self.get("/messages/unread/count")
        return int(response.get("unreadCount", 0))

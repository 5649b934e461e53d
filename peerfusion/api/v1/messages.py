# peerfusion/api/v1/messages.py
import logging
from typing import Any, Dict, List
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from peerfusion.api.auth import get_current_user
from peerfusion.api.dependencies import get_connection_manager, get_service, parse_user_id
from peerfusion.models.user import User
from peerfusion.schemas import (
    AckResponse, ConversationSummary, MessageResponse, MessageSendRequest,
    SentMessageResponse, UnreadCountResponse
)
from peerfusion.services.conversation_service import ConversationService
from peerfusion.services.message_service import MessageService
from peerfusion.services.user_service import UserService
from peerfusion.websockets.connection_manager import ConnectionManager

logger = logging.getLogger(__name__)

router = APIRouter()


def storage_fault(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


@router.get("/conversations", response_model=List[ConversationSummary])
def list_conversations(
    current_user: User = Depends(get_current_user),
    conversation_service: ConversationService = Depends(get_service(ConversationService))
):
    """
    Get all conversations of the current user, most recent first.

    Includes the "self_<id>" notes conversation when the user has written
    any self-notes.
    """
    try:
        return conversation_service.list_conversations(current_user.id)
    except SQLAlchemyError:
        logger.exception(f"Error fetching conversations for user {current_user.id}")
        raise storage_fault("Failed to fetch conversations")


@router.get("/chat/{user_id}", response_model=List[MessageResponse])
def get_chat_history(
    user_id: str,
    current_user: User = Depends(get_current_user),
    message_service: MessageService = Depends(get_service(MessageService))
):
    """
    Get the message history with another user (or one's own notes), oldest first.

    Viewing the thread marks the other user's unread messages as read.
    """
    other_user_id = parse_user_id(user_id)

    try:
        return message_service.get_chat_history(current_user.id, other_user_id)
    except SQLAlchemyError:
        logger.exception(f"Error fetching chat history between {current_user.id} and {other_user_id}")
        raise storage_fault("Failed to fetch chat history")


@router.post("/send", response_model=SentMessageResponse, status_code=status.HTTP_201_CREATED)
def send_message(
    message_data: MessageSendRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    message_service: MessageService = Depends(get_service(MessageService)),
    user_service: UserService = Depends(get_service(UserService)),
    manager: ConnectionManager = Depends(get_connection_manager)
):
    """
    Send a message to another user, or to oneself as a note.

    The stored message is returned immediately; live sessions of both
    participants are notified in the background.
    """
    try:
        if not user_service.exists(message_data.receiver_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Receiver not found"
            )

        message = message_service.send_message(
            sender_id=current_user.id,
            receiver_id=message_data.receiver_id,
            content=message_data.content,
            message_type=message_data.message_type
        )
    except SQLAlchemyError:
        logger.exception(f"Error sending message from {current_user.id} to {message_data.receiver_id}")
        raise storage_fault("Failed to send message")

    sender_info = {
        "first_name": current_user.first_name,
        "last_name": current_user.last_name,
        "avatar": current_user.avatar
    }
    response = SentMessageResponse(
        **MessageService.to_dict(message, current_user),
        sender=sender_info
    )

    background_tasks.add_task(push_new_message, manager, response.model_dump(mode="json"))
    return response


async def push_new_message(manager: ConnectionManager, payload: Dict[str, Any]):
    """Best-effort fan-out; a failure here never affects the stored message."""
    try:
        delivered = await manager.publish_new_message(payload)
        logger.debug(f"Message {payload['id']} pushed to {delivered} sessions")
    except Exception as e:
        logger.warning(f"Real-time push of message {payload['id']} failed: {str(e)}")


@router.put("/read/{sender_id}", response_model=AckResponse)
def mark_as_read(
    sender_id: str,
    current_user: User = Depends(get_current_user),
    message_service: MessageService = Depends(get_service(MessageService))
):
    """
    Mark every unread message from a sender to the current user as read.
    """
    parsed_sender_id = parse_user_id(sender_id, detail="Invalid sender ID")

    try:
        updated = message_service.mark_as_read(
            receiver_id=current_user.id,
            sender_id=parsed_sender_id
        )
    except SQLAlchemyError:
        logger.exception(f"Error marking messages from {parsed_sender_id} as read for {current_user.id}")
        raise storage_fault("Failed to mark messages as read")

    return {"message": "Messages marked as read", "updated": updated}


@router.get("/unread/count", response_model=UnreadCountResponse)
def get_unread_count(
    current_user: User = Depends(get_current_user),
    message_service: MessageService = Depends(get_service(MessageService))
):
    """
    Get the number of unread messages addressed to the current user.
    Self-notes are never counted.
    """
    try:
        count = message_service.get_unread_count(current_user.id)
    except SQLAlchemyError:
        logger.exception(f"Error fetching unread count for user {current_user.id}")
        raise storage_fault("Failed to fetch unread count")

    return UnreadCountResponse(unread_count=count)

# peerfusion/services/conversation_service.py
from sqlalchemy.orm import Session
from sqlalchemy import case, or_
from typing import List, Optional, Dict, Any

from peerfusion.models.conversation import Conversation
from peerfusion.models.message import Message
from peerfusion.models.user import User
from peerfusion.services.message_service import MessageService


SELF_CONVERSATION_PREFIX = "self_"


def self_conversation_id(user_id: int) -> str:
    return f"{SELF_CONVERSATION_PREFIX}{user_id}"


def _recency_key(summary: Dict[str, Any]):
    # Entries without a timestamp sort as the oldest
    timestamp = summary.get("last_message_at")
    return (timestamp is not None, timestamp)


class ConversationService:
    """Service for the per-user conversation list."""

    def __init__(self, db: Session):
        self.db = db

    def get_conversation(self, user_id: int, other_user_id: int) -> Optional[Conversation]:
        """Get the stored conversation between two distinct users, if any."""
        user1_id, user2_id = Conversation.ordered_pair(user_id, other_user_id)
        return self.db.query(Conversation).filter(
            Conversation.user1_id == user1_id,
            Conversation.user2_id == user2_id
        ).first()

    def list_conversations(self, user_id: int) -> List[Dict[str, Any]]:
        """
        Get every conversation a user takes part in, most recent first.

        Regular conversations come from the conversations table. The user's
        self-notes are folded into one synthetic entry ("self_<id>") that is
        only present when at least one self-note exists.
        """
        summaries = self._regular_conversations(user_id)

        self_summary = self._self_conversation(user_id)
        if self_summary:
            summaries.append(self_summary)

        # sorted() is stable, so equal timestamps keep storage order
        return sorted(summaries, key=_recency_key, reverse=True)

    def _regular_conversations(self, user_id: int) -> List[Dict[str, Any]]:
        other_user_id = case(
            (Conversation.user1_id == user_id, Conversation.user2_id),
            else_=Conversation.user1_id
        )

        rows = self.db.query(Conversation, Message, User).outerjoin(
            Message, Message.id == Conversation.last_message_id
        ).outerjoin(
            User, User.id == other_user_id
        ).filter(
            or_(Conversation.user1_id == user_id, Conversation.user2_id == user_id)
        ).order_by(Conversation.last_message_at.desc(), Conversation.id.asc()).all()

        unread = MessageService(self.db).get_unread_counts_by_sender(user_id)

        summaries = []
        for conversation, last_message, other in rows:
            other_id = conversation.other_user_id(user_id)
            summaries.append(self._summary(
                conversation_id=conversation.id,
                other_user_id=other_id,
                other=other,
                last_message=last_message,
                last_message_at=conversation.last_message_at,
                unread_count=unread.get(other_id, 0)
            ))
        return summaries

    def _self_conversation(self, user_id: int) -> Optional[Dict[str, Any]]:
        latest = self.db.query(Message).filter(
            Message.sender_id == user_id,
            Message.receiver_id == user_id
        ).order_by(Message.created_at.desc(), Message.id.desc()).first()

        if not latest:
            return None

        user = self.db.query(User).filter(User.id == user_id).first()
        return self._summary(
            conversation_id=self_conversation_id(user_id),
            other_user_id=user_id,
            other=user,
            last_message=latest,
            last_message_at=latest.created_at,
            unread_count=0,
            is_self=True
        )

    @staticmethod
    def _summary(
        conversation_id,
        other_user_id: int,
        other: Optional[User],
        last_message: Optional[Message],
        last_message_at,
        unread_count: int,
        is_self: bool = False
    ) -> Dict[str, Any]:
        return {
            "id": conversation_id,
            "is_self": is_self,
            "other_user_id": other_user_id,
            "first_name": other.first_name if other else None,
            "last_name": other.last_name if other else None,
            "email": other.email if other else None,
            "avatar": other.avatar if other else None,
            "last_message_id": last_message.id if last_message else None,
            "last_message_content": last_message.content if last_message else None,
            "last_message_sender_id": last_message.sender_id if last_message else None,
            "last_message_at": last_message_at,
            "unread_count": unread_count
        }

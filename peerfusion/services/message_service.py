# peerfusion/services/message_service.py
from sqlalchemy.orm import Session
from sqlalchemy import and_, func, or_
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional, Dict, Any
import logging

from peerfusion.models.message import Message
from peerfusion.models.conversation import Conversation
from peerfusion.models.user import User

logger = logging.getLogger(__name__)


class MessageService:
    """Service for direct messages and their read state."""

    def __init__(self, db: Session):
        self.db = db

    def send_message(
        self,
        sender_id: int,
        receiver_id: int,
        content: str,
        message_type: str = "text"
    ) -> Message:
        """
        Persist a new message and move the pair's conversation pointer to it.

        Both writes share one transaction. Self-notes never touch the
        conversations table.

        Args:
            sender_id: ID of the sending user.
            receiver_id: ID of the receiving user (may equal sender_id).
            content: The message content.
            message_type: Free-form type tag, "text" by default.

        Returns:
            The created Message instance.
        """
        message = Message(
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            message_type=message_type,
            is_read=False
        )
        try:
            self.db.add(message)
            self.db.flush()  # assigns id and created_at

            if not message.is_self_note:
                self._upsert_conversation(message)

            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        self.db.refresh(message)
        logger.info(f"Message {message.id} sent from {sender_id} to {receiver_id}")
        return message

    def _upsert_conversation(self, message: Message) -> None:
        """
        Insert the conversation row for the message's pair, or point the
        existing row at this message. The pointer only moves forward, so a
        slower concurrent send cannot overwrite a newer message.
        """
        user1_id, user2_id = Conversation.ordered_pair(message.sender_id, message.receiver_id)
        dialect = self.db.get_bind().dialect.name

        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            self._upsert_conversation_generic(message, user1_id, user2_id)
            return

        table = Conversation.__table__
        stmt = insert(table).values(
            user1_id=user1_id,
            user2_id=user2_id,
            last_message_id=message.id,
            last_message_at=message.created_at
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.user1_id, table.c.user2_id],
            set_={
                "last_message_id": stmt.excluded.last_message_id,
                "last_message_at": stmt.excluded.last_message_at,
            },
            where=or_(
                table.c.last_message_id.is_(None),
                table.c.last_message_id < stmt.excluded.last_message_id
            )
        )
        self.db.execute(stmt)

    def _upsert_conversation_generic(self, message: Message, user1_id: int, user2_id: int) -> None:
        conversation = self.db.query(Conversation).filter(
            Conversation.user1_id == user1_id,
            Conversation.user2_id == user2_id
        ).with_for_update().first()

        if conversation is None:
            self.db.add(Conversation(
                user1_id=user1_id,
                user2_id=user2_id,
                last_message_id=message.id,
                last_message_at=message.created_at
            ))
        elif conversation.last_message_id is None or conversation.last_message_id < message.id:
            conversation.last_message_id = message.id
            conversation.last_message_at = message.created_at
        self.db.flush()

    def get_chat_history(self, user_id: int, other_user_id: int) -> List[Dict[str, Any]]:
        """
        Get every message exchanged between two users, oldest first.

        Viewing a thread marks the counterpart's unread messages to user_id
        as read in the same transaction, after the rows are read. A self-conversation
        (user_id == other_user_id) is returned without touching read state.
        """
        is_self = user_id == other_user_id

        try:
            rows = self.db.query(Message, User).join(
                User, User.id == Message.sender_id
            ).filter(
                or_(
                    and_(Message.sender_id == user_id, Message.receiver_id == other_user_id),
                    and_(Message.sender_id == other_user_id, Message.receiver_id == user_id)
                )
            ).order_by(Message.created_at.asc(), Message.id.asc()).all()
            # Rows keep the read flags they had before this view
            history = [self.to_dict(message, sender) for message, sender in rows]

            if not is_self:
                self._flag_read(sender_id=other_user_id, receiver_id=user_id)

            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        return history

    def mark_as_read(self, receiver_id: int, sender_id: int) -> int:
        """
        Mark every unread message from sender_id to receiver_id as read.

        Returns:
            Number of messages that changed state (0 on a repeated call).
        """
        try:
            updated = self._flag_read(sender_id=sender_id, receiver_id=receiver_id)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return updated

    def _flag_read(self, sender_id: int, receiver_id: int) -> int:
        return self.db.query(Message).filter(
            Message.sender_id == sender_id,
            Message.receiver_id == receiver_id,
            Message.is_read == False  # noqa: E712
        ).update({Message.is_read: True})

    def get_unread_count(self, user_id: int) -> int:
        """
        Count unread messages addressed to a user. Self-notes never count.
        """
        return self.db.query(func.count(Message.id)).filter(
            Message.receiver_id == user_id,
            Message.is_read == False,  # noqa: E712
            Message.sender_id != user_id
        ).scalar() or 0

    def get_unread_counts_by_sender(self, user_id: int) -> Dict[int, int]:
        """Unread messages to user_id grouped by sender, self-notes excluded."""
        rows = self.db.query(Message.sender_id, func.count(Message.id)).filter(
            Message.receiver_id == user_id,
            Message.is_read == False,  # noqa: E712
            Message.sender_id != user_id
        ).group_by(Message.sender_id).all()
        return {sender_id: count for sender_id, count in rows}

    @staticmethod
    def to_dict(message: Message, sender: Optional[User] = None) -> Dict[str, Any]:
        return {
            "id": message.id,
            "sender_id": message.sender_id,
            "receiver_id": message.receiver_id,
            "content": message.content,
            "message_type": message.message_type,
            "is_read": message.is_read,
            "created_at": message.created_at,
            "first_name": sender.first_name if sender else None,
            "last_name": sender.last_name if sender else None,
            "avatar": sender.avatar if sender else None
        }

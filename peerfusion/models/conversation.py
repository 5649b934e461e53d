# peerfusion/models/conversation.py
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from peerfusion.database import Base
from peerfusion.models.mixins import TimestampMixin


class Conversation(Base, TimestampMixin):
    """
    Denormalized pairing of two distinct users pointing at their latest message.
    The pair is stored ordered (user1_id < user2_id) so each unordered pair
    has at most one row.
    """
    __tablename__ = "conversations"

    id = Column(Integer, primary_key=True, index=True)
    user1_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    user2_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    last_message_id = Column(Integer, ForeignKey("messages.id"), nullable=True)
    last_message_at = Column(DateTime(timezone=True), nullable=True)

    last_message = relationship("Message")

    __table_args__ = (
        UniqueConstraint("user1_id", "user2_id", name="uq_conversations_pair"),
        CheckConstraint("user1_id < user2_id", name="check_ordered_distinct_pair"),
    )

    @staticmethod
    def ordered_pair(a: int, b: int):
        return (a, b) if a < b else (b, a)

    def other_user_id(self, user_id: int) -> int:
        return self.user2_id if self.user1_id == user_id else self.user1_id

    def __repr__(self):
        return f"<Conversation {self.id} - {self.user1_id}/{self.user2_id}>"

# peerfusion/models/message.py
from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from peerfusion.database import Base
from peerfusion.models.mixins import TimestampMixin


class Message(Base, TimestampMixin):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    receiver_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    message_type = Column(String(20), nullable=False, default="text")
    # Only ever flips false -> true
    is_read = Column(Boolean, nullable=False, default=False)

    sender = relationship("User", foreign_keys=[sender_id])
    receiver = relationship("User", foreign_keys=[receiver_id])

    __table_args__ = (
        Index('ix_messages_pair_created', "sender_id", "receiver_id", "created_at"),
        Index('ix_messages_receiver_unread', "receiver_id", "is_read"),
    )

    @property
    def is_self_note(self) -> bool:
        return self.sender_id == self.receiver_id

    def __repr__(self):
        return f"<Message {self.id} from {self.sender_id} to {self.receiver_id}>"

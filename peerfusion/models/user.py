# peerfusion/models/user.py
from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship

from peerfusion.database import Base
from peerfusion.models.mixins import TimestampMixin


class User(Base, TimestampMixin):
    """
    Model representing user accounts
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # passlib hash
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    avatar = Column(String(500), nullable=True)
    bio = Column(Text, nullable=True)
    institution = Column(String(255), nullable=True)
    field_of_study = Column(String(255), nullable=True)

    # Relationships
    projects = relationship("Project", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.id} - {self.email}>"

# peerfusion/models/project.py
from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from peerfusion.database import Base
from peerfusion.models.mixins import TimestampMixin


class Project(Base, TimestampMixin):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    link = Column(String(500), nullable=True)

    user = relationship("User", back_populates="projects")

    def __repr__(self):
        return f"<Project {self.id} - {self.title}>"

# peerfusion/services/project_service.py
from sqlalchemy.orm import Session
from typing import List, Optional

from peerfusion.models.project import Project


class ProjectService:
    """Service for a user's project listings."""

    def __init__(self, db: Session):
        self.db = db

    def create_project(
        self,
        user_id: int,
        title: str,
        description: Optional[str] = None,
        link: Optional[str] = None
    ) -> Project:
        project = Project(
            user_id=user_id,
            title=title,
            description=description,
            link=link
        )
        self.db.add(project)
        self.db.commit()
        self.db.refresh(project)
        return project

    def get_user_projects(self, user_id: int) -> List[Project]:
        """Projects owned by a user, newest first"""
        return self.db.query(Project).filter(
            Project.user_id == user_id
        ).order_by(Project.created_at.desc(), Project.id.desc()).all()

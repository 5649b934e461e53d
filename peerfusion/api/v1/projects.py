# peerfusion/api/v1/projects.py
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from peerfusion.api.auth import get_current_user
from peerfusion.api.dependencies import get_service
from peerfusion.models.user import User
from peerfusion.schemas import ProjectCreate, ProjectResponse
from peerfusion.services.project_service import ProjectService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    project_data: ProjectCreate,
    current_user: User = Depends(get_current_user),
    project_service: ProjectService = Depends(get_service(ProjectService))
):
    """Add a project to the current user's listing"""
    try:
        return project_service.create_project(
            user_id=current_user.id,
            title=project_data.title,
            description=project_data.description,
            link=project_data.link
        )
    except SQLAlchemyError:
        logger.exception(f"Error adding project for user {current_user.id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add project"
        )


@router.get("/", response_model=List[ProjectResponse])
def list_projects(
    current_user: User = Depends(get_current_user),
    project_service: ProjectService = Depends(get_service(ProjectService))
):
    """List the current user's projects"""
    try:
        return project_service.get_user_projects(current_user.id)
    except SQLAlchemyError:
        logger.exception(f"Error fetching projects for user {current_user.id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch projects"
        )

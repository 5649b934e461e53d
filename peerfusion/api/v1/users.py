# peerfusion/api/v1/users.py
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from peerfusion.api.auth import get_current_user
from peerfusion.api.dependencies import get_service, parse_user_id
from peerfusion.models.user import User
from peerfusion.schemas import ProfileUpdate, UserResponse
from peerfusion.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.put("/profile", response_model=UserResponse)
def update_profile(
    profile_data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_service(UserService))
):
    """
    Update the current user's profile
    """
    update_data = profile_data.model_dump()
    if "avatar" not in profile_data.model_fields_set:
        # Omitted avatar keeps the stored one
        update_data.pop("avatar")

    try:
        user = user_service.update_profile(current_user.id, update_data)
    except SQLAlchemyError:
        logger.exception(f"Error updating profile of user {current_user.id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update profile"
        )

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_service(UserService))
):
    """
    Get a user's profile by ID, or the caller's own profile with "me"
    """
    target_id = current_user.id if user_id == "me" else parse_user_id(user_id)

    try:
        user = user_service.get_user(target_id)
    except SQLAlchemyError:
        logger.exception(f"Error fetching profile of user {target_id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch user profile"
        )

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user

# peerfusion/services/user_service.py
from typing import Optional, Dict, Any
from sqlalchemy.orm import Session

from peerfusion.models.user import User


class UserService:
    """Service for profile operations."""

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> Optional[User]:
        """Get a user by ID"""
        return self.db.query(User).filter(User.id == user_id).first()

    def exists(self, user_id: int) -> bool:
        return self.db.query(User.id).filter(User.id == user_id).first() is not None

    def update_profile(self, user_id: int, update_data: Dict[str, Any]) -> Optional[User]:
        """
        Update a user's profile fields.

        Args:
            user_id: ID of the user to update
            update_data: Dictionary of field -> new value

        Returns:
            The updated user, or None if the user does not exist
        """
        user = self.get_user(user_id)
        if not user:
            return None

        for key, value in update_data.items():
            if hasattr(user, key) and key not in ("id", "email", "password", "created_at"):
                setattr(user, key, value)

        self.db.commit()
        self.db.refresh(user)
        return user

from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime


class UserPublic(BaseModel):
    """Public profile fields shown next to messages and conversations"""
    id: int
    first_name: str
    last_name: str
    avatar: Optional[str] = None

    class Config:
        from_attributes = True


class UserResponse(UserPublic):
    email: str
    bio: Optional[str] = None
    institution: Optional[str] = None
    field_of_study: Optional[str] = None
    created_at: datetime


class ProfileUpdate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    bio: Optional[str] = None
    institution: Optional[str] = Field(None, max_length=255)
    field_of_study: Optional[str] = Field(None, max_length=255)
    avatar: Optional[str] = Field(None, max_length=500)

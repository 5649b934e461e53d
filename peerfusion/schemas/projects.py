from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime


class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    link: Optional[str] = Field(None, max_length=500)


class ProjectResponse(ProjectCreate):
    id: int
    user_id: int
    created_at: datetime

    class Config:
        from_attributes = True

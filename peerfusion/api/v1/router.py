# peerfusion/api/v1/router.py
from fastapi import APIRouter
from peerfusion.api.v1 import auth, users, messages, projects

# Create the main router
api_router = APIRouter()

# Include all the sub-routers
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(messages.router, prefix="/messages", tags=["messages"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])

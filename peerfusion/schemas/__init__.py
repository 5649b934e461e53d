"""
Schema definitions for the application.
This module exports all schemas for easy importing throughout the app.
"""

# Import from base
from peerfusion.schemas.base import AckResponse, MAX_USER_ID

# Import from users
from peerfusion.schemas.users import UserPublic, UserResponse, ProfileUpdate

# Import from auth
from peerfusion.schemas.auth import RegisterRequest, LoginRequest, TokenResponse

# Import from messages
from peerfusion.schemas.messages import (
    MessageSendRequest, SenderInfo, MessageResponse, SentMessageResponse,
    UnreadCountResponse
)

# Import from conversations
from peerfusion.schemas.conversations import ConversationSummary

# Import from projects
from peerfusion.schemas.projects import ProjectCreate, ProjectResponse

# Import from events
from peerfusion.schemas.events import EventType, TypingEvent, ErrorEvent

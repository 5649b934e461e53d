#!/usr/bin/env python
# Authenticated session of the chat client
from dataclasses import dataclass
from typing import Optional, Dict, Any


@dataclass
class SessionState:
    """Who is logged in and with which token"""

    access_token: Optional[str] = None
    user_id: Optional[int] = None
    user_email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    def is_authenticated(self) -> bool:
        """Check if user is currently authenticated"""
        return self.access_token is not None

    def set_auth(self, data: Dict[str, Any]):
        """Set authentication data from a token response"""
        user = data.get("user") or {}
        self.access_token = data.get("access_token")
        self.user_id = user.get("id")
        self.user_email = user.get("email")
        self.first_name = user.get("first_name")
        self.last_name = user.get("last_name")

    def clear_auth(self):
        """Clear authentication data"""
        self.access_token = None
        self.user_id = None
        self.user_email = None
        self.first_name = None
        self.last_name = None


# Global session instance
session = SessionState()

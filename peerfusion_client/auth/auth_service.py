#!/usr/bin/env python
# Authentication service handling user login, registration and saved tokens
import time

from peerfusion_client.api.base_service import BaseService, APIError
from peerfusion_client.session import session
from peerfusion_client.utils.config import config


class AuthService(BaseService):
    """Service for authentication-related API operations"""

    def _remember(self, response):
        session.set_auth(response)
        config.save_auth({
            "access_token": session.access_token,
            "user": response.get("user"),
            "timestamp": time.time()
        })

    async def login(self, email: str, password: str) -> bool:
        """Log in with email and password. Raises APIError on rejection."""
        response = await self.post("/auth/login", {
            "email": email,
            "password": password
        })
        self._remember(response)
        return True

    async def register(self, email: str, password: str, first_name: str, last_name: str) -> bool:
        """Register a new user. Raises APIError on rejection."""
        response = await self.post("/auth/register", {
            "email": email,
            "password": password,
            "first_name": first_name,
            "last_name": last_name
        })
        self._remember(response)
        return True

    async def auto_login(self) -> bool:
        """Reuse a saved token if the server still accepts it"""
        saved = config.load_auth()
        if not saved.get("access_token"):
            return False

        session.set_auth(saved)
        try:
            await self.get("/auth/me")
            return True
        except APIError:
            session.clear_auth()
            config.clear_auth()
            return False

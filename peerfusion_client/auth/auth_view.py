#!/usr/bin/env python
# Authentication views with login and registration screens
import asyncio

from peerfusion_client.api.base_service import APIError
from peerfusion_client.auth.auth_service import AuthService
from peerfusion_client.session import session
from peerfusion_client.ui.console import (
    show_title, show_error, show_success, prompt_input, confirm_action,
    create_menu, display_loading
)


class AuthView:
    """User interface for authentication"""

    def __init__(self, auth_service: AuthService = None):
        self.auth_service = auth_service or AuthService()

    async def show_auth_menu(self) -> bool:
        """Display authentication menu and handle user choice"""
        options = [
            ("login", "Login with existing account"),
            ("register", "Register new account")
        ]

        choice = create_menu("Welcome to PeerFusion", options, "Please select an option to continue:")

        if choice == "login":
            return await self.login_screen()
        elif choice == "register":
            return await self.registration_screen()
        return False

    async def auto_login(self) -> bool:
        return await display_loading(
            "Checking saved session...",
            self.auth_service.auto_login()
        )

    async def login_screen(self) -> bool:
        """Show login form and process login"""
        show_title("Login", "Enter your account details to log in")

        email = prompt_input("Email", "Enter your email address:")
        password = prompt_input("Password", "Enter your password:", password=True)

        try:
            await display_loading("Logging in...", self.auth_service.login(email, password))
        except APIError as e:
            show_error(f"Login failed: {e.detail}")
            if confirm_action("Would you like to try again?"):
                return await self.login_screen()
            return False

        show_success(f"Logged in as {session.user_email}")
        await asyncio.sleep(1)
        return True

    async def registration_screen(self) -> bool:
        """Show registration form and process registration"""
        show_title("Register New Account", "Create an account to start messaging peers")

        email = prompt_input("Email", "Enter your email address:")
        password = prompt_input("Password", "Create a password (min 8 characters):", password=True)
        confirm_password = prompt_input("Confirm", "Confirm your password:", password=True)

        if password != confirm_password:
            show_error("Passwords do not match. Please try again.")
            await asyncio.sleep(1)
            return await self.registration_screen()

        first_name = prompt_input("FirstName", "Enter your first name:")
        last_name = prompt_input("LastName", "Enter your last name:")

        try:
            await display_loading(
                "Creating account...",
                self.auth_service.register(email, password, first_name, last_name)
            )
        except APIError as e:
            show_error(f"Registration failed: {e.detail}")
            if confirm_action("Would you like to try again?"):
                return await self.registration_screen()
            return False

        show_success(f"Account created for {session.user_email}")
        await asyncio.sleep(1)
        return True

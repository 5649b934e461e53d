#!/usr/bin/env python
# Conversation list and thread views
import asyncio
import logging
from typing import Dict, Any, Optional

from peerfusion_client.api.base_service import APIError
from peerfusion_client.api.message_service import MessageService
from peerfusion_client.chat.connection import ChatConnection
from peerfusion_client.chat.state import ChatState, ChatPhase
from peerfusion_client.chat.typing import TypingDebouncer
from peerfusion_client.session import session
from peerfusion_client.ui.console import (
    console, show_title, show_error, show_info, show_warning, display_loading,
    display_conversations, print_message, conversation_title, KeyReader
)

logger = logging.getLogger(__name__)

THREAD_HELP = (
    "Type a message and press Enter to send.\n"
    "/retry - resend the last failed message or reload the thread\n"
    "/back - return to the conversation list\n"
    "/quit - leave the client"
)


class ChatView:
    """User interface for direct messages"""

    def __init__(self, message_service: Optional[MessageService] = None,
                 connection: Optional[ChatConnection] = None):
        self.message_service = message_service or MessageService()
        self.connection = connection or ChatConnection()
        self.state = ChatState(user_id=session.user_id)
        self.debouncer = TypingDebouncer()
        self.exit_requested = False
        self.listen_task = None
        self.reader: Optional[KeyReader] = None

        self.connection.on_message = self.on_message
        self.connection.on_typing = self.on_typing
        self.connection.on_error = self.on_error
        self.connection.on_disconnect = self.on_disconnect

    # Real-time callbacks

    async def on_message(self, message: Dict[str, Any]):
        """Handle a pushed new_message event"""
        appended = self.state.receive_message(message)
        if appended:
            print_message(message, self.state.user_id)
            # The thread is on screen, so the message counts as read
            sender_id = message.get("sender_id")
            if sender_id == self.state.selected_user_id and sender_id != self.state.user_id:
                await self._mark_read(self.state.selected_user_id)
        elif message.get("sender_id") != self.state.user_id:
            conversation = self.state.find_conversation(message.get("sender_id"))
            name = conversation_title(conversation) if conversation else "someone new"
            show_info(f"New message from {name}")

    async def on_typing(self, user_id: int, is_typing: bool):
        was_typing = user_id in self.state.typing_users
        self.state.set_typing(user_id, is_typing)
        if user_id == self.state.selected_user_id and is_typing and not was_typing:
            console.print("[dim]... typing[/dim]")

    async def on_error(self, error_message: str):
        show_warning(error_message)

    async def on_disconnect(self, message: str):
        show_warning(f"{message}. Live updates are paused; /retry reloads the thread.")

    # Data loading

    async def load_conversations(self) -> bool:
        try:
            conversations = await display_loading(
                "Loading conversations...",
                self.message_service.get_conversations()
            )
        except APIError as e:
            self.state.conversations_failed(e.detail)
            return False

        self.state.set_conversations(conversations)
        return True

    async def open_thread(self, other_user_id: int) -> bool:
        self.state.select_conversation(other_user_id)
        try:
            history = await display_loading(
                "Loading messages...",
                self.message_service.get_chat_history(other_user_id)
            )
        except APIError as e:
            self.state.history_failed(other_user_id, e.detail)
            return False

        return self.state.history_loaded(other_user_id, history)

    async def send(self, content: str) -> bool:
        if not self.state.begin_send(content):
            if self.state.phase != ChatPhase.IDLE:
                show_warning("Still busy, try again in a moment")
            return False

        try:
            message = await self.message_service.send_message(self.state.selected_user_id, content)
        except APIError as e:
            self.state.send_failed(e.detail)
            return False

        if self.state.send_completed(message):
            print_message(message, self.state.user_id)
        return True

    async def _mark_read(self, sender_id: int):
        try:
            await self.message_service.mark_as_read(sender_id)
        except APIError as e:
            logger.warning(f"Could not mark messages from {sender_id} as read: {e.detail}")

    async def _set_typing(self, is_typing: bool):
        receiver_id = self.state.selected_user_id
        if receiver_id is None or receiver_id == self.state.user_id:
            return
        await self.connection.send_typing(receiver_id, is_typing)

    # Screens

    async def start(self):
        """Connect to the real-time channel and run the conversation list"""
        if await self.connection.connect():
            self.listen_task = asyncio.create_task(self.connection.listen())
        else:
            show_warning("Continuing without live updates")

        self.reader = KeyReader()
        self.reader.start()
        try:
            await self.conversation_list_loop()
        finally:
            self.reader.stop()
            await self.connection.disconnect()
            if self.listen_task:
                self.listen_task.cancel()

    async def conversation_list_loop(self):
        await self.load_conversations()

        while not self.exit_requested:
            if self.state.conversations_stale and not self.state.error:
                await self.load_conversations()

            show_title("PeerFusion Messages", f"Signed in as {session.user_email}")
            if self.state.conversations:
                display_conversations(self.state.conversations, self.state.user_id)
            else:
                console.print("[dim]No conversations yet.[/dim]")

            if self.state.error:
                show_error(self.state.error, "Enter 'r' to retry.")
                self.state.clear_error()

            console.print(
                "\n[bold]Enter a number to open a conversation,[/bold] "
                "'n' to message a user by ID, 's' for notes to self, 'r' to refresh, 'q' to quit"
            )
            choice = (await self.read_line("> ")).strip().lower()

            if choice in ("q", "quit", "0"):
                self.exit_requested = True
            elif choice == "r":
                await self.load_conversations()
            elif choice == "s":
                await self.thread_loop(self.state.user_id)
            elif choice == "n":
                raw = (await self.read_line("User ID: ")).strip()
                if raw.isascii() and raw.isdigit() and int(raw) > 0:
                    await self.thread_loop(int(raw))
                else:
                    show_error("Invalid user ID")
                    await asyncio.sleep(1)
            elif choice.isdigit() and 1 <= int(choice) <= len(self.state.conversations):
                conversation = self.state.conversations[int(choice) - 1]
                await self.thread_loop(conversation["other_user_id"])

    async def read_line(self, prompt: str) -> str:
        """Wait for the next completed line, ignoring single key events"""
        console.print(prompt, end="")
        while True:
            kind, value = await self.reader.queue.get()
            if kind == "line":
                return value

    def render_thread(self):
        conversation = self.state.find_conversation(self.state.selected_user_id)
        if conversation:
            title = conversation_title(conversation)
        elif self.state.selected_user_id == self.state.user_id:
            title = "Notes to self"
        else:
            title = f"User {self.state.selected_user_id}"

        show_title(title, THREAD_HELP)

        if not self.state.messages:
            console.print("[dim]No messages yet. Start typing to chat.[/dim]")
        for message in self.state.messages:
            print_message(message, self.state.user_id)

        if self.state.error:
            show_error(self.state.error, "Enter /retry to try again.")

    async def thread_loop(self, other_user_id: int):
        """Show one thread and handle input until the user goes back"""
        await self.open_thread(other_user_id)
        self.render_thread()

        try:
            while not self.exit_requested and self.state.phase != ChatPhase.NO_SELECTION:
                try:
                    kind, value = await asyncio.wait_for(self.reader.queue.get(), timeout=0.2)
                except asyncio.TimeoutError:
                    kind, value = None, None

                if self.debouncer.poll():
                    await self._set_typing(False)

                if kind == "key":
                    if self.debouncer.keystroke():
                        await self._set_typing(True)
                elif kind == "line":
                    await self.handle_line(value)
        finally:
            if self.debouncer.reset():
                await self._set_typing(False)
            self.state.close_conversation()

    async def handle_line(self, line: str):
        command = line.strip().lower()

        if command == "/back":
            self.state.close_conversation()
        elif command == "/quit":
            self.exit_requested = True
        elif command == "/help":
            console.print(f"[dim]{THREAD_HELP}[/dim]")
        elif command == "/retry":
            await self.retry()
        elif line.strip():
            if self.debouncer.reset():
                await self._set_typing(False)
            if not await self.send(line) and self.state.error:
                show_error(self.state.error, "Enter /retry to resend.")

    async def retry(self):
        """Resend a failed message, or reload the thread when nothing is pending"""
        self.state.clear_error()
        if self.state.pending_content:
            content = self.state.pending_content
            if not await self.send(content) and self.state.error:
                show_error(self.state.error, "Enter /retry to resend.")
            return

        await self.open_thread(self.state.selected_user_id)
        self.render_thread()

#!/usr/bin/env python
# Chat view state for the PeerFusion client
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, List, Set


class ChatPhase(str, Enum):
    """Where the chat view currently is"""
    NO_SELECTION = "no_selection"
    LOADING = "loading"
    IDLE = "idle"
    SENDING = "sending"


def message_pair(message: Dict[str, Any]) -> frozenset:
    """The unordered (sender, receiver) pair a message belongs to"""
    return frozenset((message.get("sender_id"), message.get("receiver_id")))


@dataclass
class ChatState:
    """
    State of the conversation list and the open thread.

    Every API outcome is fed back through one of the transition methods.
    Failures put the view back into a resting phase and keep the reason in
    `error` so the UI can show it with a retry hint.
    """

    user_id: Optional[int] = None
    phase: ChatPhase = ChatPhase.NO_SELECTION

    # Conversation list
    conversations: List[Dict[str, Any]] = field(default_factory=list)
    conversations_stale: bool = False

    # Open thread
    selected_user_id: Optional[int] = None
    messages: List[Dict[str, Any]] = field(default_factory=list)
    pending_content: Optional[str] = None

    # Counterparts currently typing to us
    typing_users: Set[int] = field(default_factory=set)

    error: Optional[str] = None

    def counterpart_of(self, message: Dict[str, Any]) -> Optional[int]:
        """The other participant of a message as seen by the current user"""
        if message.get("sender_id") == self.user_id:
            return message.get("receiver_id")
        return message.get("sender_id")

    def find_conversation(self, other_user_id: int) -> Optional[Dict[str, Any]]:
        for conversation in self.conversations:
            if conversation.get("other_user_id") == other_user_id:
                return conversation
        return None

    def set_conversations(self, conversations: List[Dict[str, Any]]):
        self.conversations = list(conversations)
        self.conversations_stale = False

    def conversations_failed(self, error: str):
        self.conversations_stale = True
        self.error = f"Could not load conversations: {error}"

    def select_conversation(self, other_user_id: int):
        """Open a thread; the history request is expected next"""
        self.selected_user_id = other_user_id
        self.messages = []
        self.pending_content = None
        self.error = None
        self.phase = ChatPhase.LOADING

    def close_conversation(self):
        self.selected_user_id = None
        self.messages = []
        self.pending_content = None
        self.error = None
        self.phase = ChatPhase.NO_SELECTION

    def history_loaded(self, other_user_id: int, history: List[Dict[str, Any]]) -> bool:
        """
        Install the fetched history of a thread.

        Responses for a thread that is no longer selected are dropped.
        Messages pushed while the history was loading are kept.

        Returns:
            True if the history was applied
        """
        if other_user_id != self.selected_user_id or self.phase != ChatPhase.LOADING:
            return False

        seen = {message.get("id") for message in history}
        live = [message for message in self.messages if message.get("id") not in seen]
        self.messages = list(history) + live
        self.phase = ChatPhase.IDLE

        # Opening the thread read everything the counterpart sent
        conversation = self.find_conversation(other_user_id)
        if conversation:
            conversation["unread_count"] = 0
        return True

    def history_failed(self, other_user_id: int, error: str) -> bool:
        if other_user_id != self.selected_user_id or self.phase != ChatPhase.LOADING:
            return False
        self.phase = ChatPhase.IDLE
        self.error = f"Could not load messages: {error}"
        return True

    def can_send(self, content: str) -> bool:
        return (
            self.phase == ChatPhase.IDLE
            and self.selected_user_id is not None
            and bool(content and content.strip())
        )

    def begin_send(self, content: str) -> bool:
        """Move to sending if the view is idle and the text is not blank"""
        if not self.can_send(content):
            return False
        self.pending_content = content
        self.error = None
        self.phase = ChatPhase.SENDING
        return True

    def send_completed(self, message: Dict[str, Any]) -> bool:
        """Append the stored message. Returns False if a push already delivered it."""
        self.pending_content = None
        self.phase = ChatPhase.IDLE
        appended = self._append(message)
        self._update_preview(message, count_unread=False)
        return appended

    def send_failed(self, error: str):
        """Back to idle; the unsent text stays in pending_content for a retry"""
        self.phase = ChatPhase.IDLE
        self.error = f"Message not sent: {error}"

    def is_active_pair(self, message: Dict[str, Any]) -> bool:
        if self.selected_user_id is None or self.user_id is None:
            return False
        return message_pair(message) == frozenset((self.user_id, self.selected_user_id))

    def receive_message(self, message: Dict[str, Any]) -> bool:
        """
        Apply a pushed new_message event.

        Returns:
            True if the message was appended to the open thread
        """
        counterpart = self.counterpart_of(message)
        if message.get("sender_id") == counterpart:
            self.typing_users.discard(counterpart)

        if self.is_active_pair(message) and self.phase != ChatPhase.NO_SELECTION:
            appended = self._append(message)
            self._update_preview(message, count_unread=False)
            return appended

        self._update_preview(message, count_unread=True)
        return False

    def set_typing(self, user_id: int, is_typing: bool):
        if is_typing:
            self.typing_users.add(user_id)
        else:
            self.typing_users.discard(user_id)

    def clear_error(self):
        self.error = None

    def _append(self, message: Dict[str, Any]) -> bool:
        message_id = message.get("id")
        if message_id is not None and any(m.get("id") == message_id for m in self.messages):
            return False
        self.messages.append(message)
        return True

    def _update_preview(self, message: Dict[str, Any], count_unread: bool):
        counterpart = self.counterpart_of(message)
        conversation = self.find_conversation(counterpart)

        if conversation is None:
            # A counterpart we have not listed yet; the list needs a refetch
            self.conversations_stale = True
            return

        conversation["last_message_id"] = message.get("id")
        conversation["last_message_content"] = message.get("content")
        conversation["last_message_sender_id"] = message.get("sender_id")
        conversation["last_message_at"] = message.get("created_at")

        incoming = message.get("sender_id") != self.user_id
        if count_unread and incoming:
            conversation["unread_count"] = conversation.get("unread_count", 0) + 1

        self.conversations.remove(conversation)
        self.conversations.insert(0, conversation)

import asyncio

from peerfusion_client.api.base_service import APIError
from peerfusion_client.chat.state import ChatPhase
from peerfusion_client.session import session
from peerfusion_client.ui.chat_view import ChatView

ME, BOB = 1, 2


class FakeMessageService:
    def __init__(self):
        self.fail_history = False
        self.fail_send = False
        self.sent = []
        self.read = []

    async def get_conversations(self):
        return [{"id": 10, "is_self": False, "other_user_id": BOB, "unread_count": 1}]

    async def get_chat_history(self, user_id):
        if self.fail_history:
            raise APIError(500, "Failed to fetch chat history")
        return [{"id": 1, "sender_id": BOB, "receiver_id": ME, "content": "hi"}]

    async def send_message(self, receiver_id, content, message_type="text"):
        if self.fail_send:
            raise APIError(500, "Failed to send message")
        self.sent.append((receiver_id, content))
        return {"id": 100 + len(self.sent), "sender_id": ME, "receiver_id": receiver_id, "content": content}

    async def mark_as_read(self, sender_id):
        self.read.append(sender_id)
        return {"message": "Messages marked as read", "updated": 1}


class FakeConnection:
    def __init__(self):
        self.typing = []

    async def send_typing(self, receiver_id, is_typing):
        self.typing.append((receiver_id, is_typing))
        return True


def make_view():
    session.user_id = ME
    try:
        view = ChatView(message_service=FakeMessageService(), connection=FakeConnection())
    finally:
        session.clear_auth()
    return view


def test_open_thread_loads_history():
    view = make_view()

    async def scenario():
        await view.load_conversations()
        return await view.open_thread(BOB)

    assert asyncio.run(scenario())
    assert view.state.phase == ChatPhase.IDLE
    assert view.state.messages[0]["content"] == "hi"
    assert view.state.find_conversation(BOB)["unread_count"] == 0


def test_history_failure_is_recorded_not_stuck():
    view = make_view()
    view.message_service.fail_history = True

    assert not asyncio.run(view.open_thread(BOB))
    assert view.state.phase == ChatPhase.IDLE
    assert "Failed to fetch chat history" in view.state.error


def test_failed_send_can_be_retried():
    view = make_view()

    async def scenario():
        await view.open_thread(BOB)
        view.message_service.fail_send = True
        await view.handle_line("are you there?")
        failed_phase, error = view.state.phase, view.state.error
        view.message_service.fail_send = False
        await view.handle_line("/retry")
        return failed_phase, error

    failed_phase, error = asyncio.run(scenario())
    assert failed_phase == ChatPhase.IDLE
    assert "Failed to send message" in error
    assert view.message_service.sent == [(BOB, "are you there?")]
    assert view.state.messages[-1]["content"] == "are you there?"
    assert view.state.error is None


def test_incoming_message_in_open_thread_is_marked_read():
    view = make_view()

    async def scenario():
        await view.open_thread(BOB)
        await view.on_message({"id": 7, "sender_id": BOB, "receiver_id": ME, "content": "ping"})

    asyncio.run(scenario())
    assert view.message_service.read == [BOB]
    assert view.state.messages[-1]["id"] == 7


def test_typing_signal_not_sent_for_self_thread():
    view = make_view()

    async def scenario():
        await view.open_thread(ME)
        await view._set_typing(True)
        view.state.close_conversation()
        await view.open_thread(BOB)
        await view._set_typing(True)

    asyncio.run(scenario())
    assert view.connection.typing == [(BOB, True)]


def test_back_command_closes_thread():
    view = make_view()

    async def scenario():
        await view.open_thread(BOB)
        await view.handle_line("/back")

    asyncio.run(scenario())
    assert view.state.phase == ChatPhase.NO_SELECTION

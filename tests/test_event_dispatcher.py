import asyncio

from peerfusion.websockets.event_dispatcher import EventRegistry


class RecordingManager:
    def __init__(self):
        self.events = []
        self.typing = []

    async def send_event(self, websocket, payload):
        self.events.append(payload)
        return True

    async def publish_typing(self, from_user_id, to_user_id, is_typing):
        self.typing.append((from_user_id, to_user_id, is_typing))
        return 1


def dispatch(event, user_id=1):
    manager = RecordingManager()
    registry = EventRegistry(manager)
    asyncio.run(registry.dispatcher.dispatch(object(), event, user_id))
    return manager


def test_typing_is_relayed():
    manager = dispatch({"type": "typing", "receiverId": 2, "isTyping": True})
    assert manager.typing == [(1, 2, True)]
    assert manager.events == []


def test_typing_to_self_is_ignored():
    manager = dispatch({"type": "typing", "receiverId": 1, "isTyping": True})
    assert manager.typing == []
    assert manager.events == []


def test_invalid_typing_event_reports_error():
    manager = dispatch({"type": "typing", "isTyping": True})
    assert manager.typing == []
    assert manager.events[0]["type"] == "error"
    assert manager.events[0]["error"].startswith("Invalid typing event")


def test_typing_to_out_of_range_receiver_reports_error():
    manager = dispatch({"type": "typing", "receiverId": 2**63, "isTyping": True})
    assert manager.typing == []
    assert manager.events[0]["type"] == "error"
    assert manager.events[0]["error"].startswith("Invalid typing event")


def test_ping_answers_pong():
    manager = dispatch({"type": "ping"})
    assert manager.events == [{"type": "pong"}]


def test_unknown_event_type_reports_error():
    manager = dispatch({"type": "dance"})
    assert manager.events == [{"type": "error", "error": "Unknown event type: dance"}]


def test_non_object_event_reports_error():
    manager = dispatch(["typing"])
    assert manager.events == [{"type": "error", "error": "Event must be a JSON object"}]

import asyncio

from peerfusion.websockets.connection_manager import ConnectionManager


class FakeWebSocket:
    def __init__(self, delay=0.0, fail=False):
        self.sent = []
        self.closed = False
        self.delay = delay
        self.fail = fail

    async def send_json(self, payload):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("socket is gone")
        self.sent.append(payload)

    async def close(self, code=1000):
        self.closed = True


MESSAGE = {"id": 7, "sender_id": 1, "receiver_id": 2, "content": "hi"}


def test_new_message_reaches_every_session_of_both_participants():
    async def scenario():
        manager = ConnectionManager()
        receiver_a, receiver_b, sender, bystander = (FakeWebSocket() for _ in range(4))
        await manager.connect(receiver_a, 2)
        await manager.connect(receiver_b, 2)
        await manager.connect(sender, 1)
        await manager.connect(bystander, 3)

        delivered = await manager.publish_new_message(MESSAGE)
        return delivered, receiver_a, receiver_b, sender, bystander

    delivered, receiver_a, receiver_b, sender, bystander = asyncio.run(scenario())

    assert delivered == 3
    expected = {"type": "new_message", "message": MESSAGE}
    assert receiver_a.sent == [expected]
    assert receiver_b.sent == [expected]
    assert sender.sent == [expected]
    assert bystander.sent == []


def test_self_note_is_pushed_once_per_session():
    async def scenario():
        manager = ConnectionManager()
        session = FakeWebSocket()
        await manager.connect(session, 1)
        delivered = await manager.publish_new_message(
            {"id": 8, "sender_id": 1, "receiver_id": 1, "content": "note"}
        )
        return delivered, session

    delivered, session = asyncio.run(scenario())
    assert delivered == 1
    assert len(session.sent) == 1


def test_push_to_offline_user_is_dropped():
    delivered = asyncio.run(ConnectionManager().publish_new_message(MESSAGE))
    assert delivered == 0


def test_failing_session_is_dropped():
    async def scenario():
        manager = ConnectionManager()
        healthy, broken = FakeWebSocket(), FakeWebSocket(fail=True)
        await manager.connect(healthy, 2)
        await manager.connect(broken, 2)
        delivered = await manager.send_to_user(2, {"type": "pong"})
        return manager, delivered

    manager, delivered = asyncio.run(scenario())
    assert delivered == 1
    assert manager.session_count(2) == 1


def test_slow_session_times_out_and_is_dropped():
    async def scenario():
        manager = ConnectionManager(send_timeout=0.05)
        slow = FakeWebSocket(delay=1.0)
        await manager.connect(slow, 2)
        delivered = await manager.send_to_user(2, {"type": "pong"})
        return manager, delivered

    manager, delivered = asyncio.run(scenario())
    assert delivered == 0
    assert not manager.is_online(2)


def test_typing_goes_only_to_receiver():
    async def scenario():
        manager = ConnectionManager()
        typist, receiver = FakeWebSocket(), FakeWebSocket()
        await manager.connect(typist, 1)
        await manager.connect(receiver, 2)
        await manager.publish_typing(1, 2, True)
        return typist, receiver

    typist, receiver = asyncio.run(scenario())
    assert typist.sent == []
    assert receiver.sent == [{"type": "user_typing", "userId": 1, "isTyping": True}]


def test_disconnect_removes_session_and_user():
    async def scenario():
        manager = ConnectionManager()
        first, second = FakeWebSocket(), FakeWebSocket()
        await manager.connect(first, 5)
        await manager.connect(second, 5)
        manager.disconnect(first, 5)
        remaining = manager.session_count(5)
        manager.disconnect(second)
        return manager, remaining

    manager, remaining = asyncio.run(scenario())
    assert remaining == 1
    assert not manager.is_online(5)
    assert 5 not in manager.connections


def test_close_all_closes_every_session():
    async def scenario():
        manager = ConnectionManager()
        sessions = [FakeWebSocket(), FakeWebSocket()]
        await manager.connect(sessions[0], 1)
        await manager.connect(sessions[1], 2)
        await manager.close_all()
        return manager, sessions

    manager, sessions = asyncio.run(scenario())
    assert all(session.closed for session in sessions)
    assert manager.connections == {}

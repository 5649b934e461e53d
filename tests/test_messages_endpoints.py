from sqlalchemy.exc import OperationalError

from peerfusion.models.conversation import Conversation
from peerfusion.models.message import Message
from peerfusion.services.conversation_service import ConversationService
from peerfusion.services.message_service import MessageService


def unread_count(client, user):
    response = client.get("/api/messages/unread/count", headers=user["headers"])
    assert response.status_code == 200
    return response.json()["unreadCount"]


# Send

def test_send_message_returns_enriched_message(client, alice, bob):
    response = client.post(
        "/api/messages/send",
        json={"receiverId": bob["id"], "content": "hi"},
        headers=alice["headers"],
    )
    assert response.status_code == 201
    payload = response.json()
    assert payload["id"]
    assert payload["sender_id"] == alice["id"]
    assert payload["receiver_id"] == bob["id"]
    assert payload["content"] == "hi"
    assert payload["message_type"] == "text"
    assert payload["is_read"] is False
    assert payload["first_name"] == "Alice"
    assert payload["last_name"] == "Archer"
    assert payload["sender"] == {"first_name": "Alice", "last_name": "Archer", "avatar": None}


def test_send_message_keeps_message_type(send, alice, bob):
    payload = send(alice, bob["id"], "see attached", messageType="link")
    assert payload["message_type"] == "link"


def test_send_to_unknown_receiver(client, alice):
    response = client.post(
        "/api/messages/send",
        json={"receiverId": 999, "content": "anyone?"},
        headers=alice["headers"],
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Receiver not found"


def test_send_requires_receiver_and_content(client, alice, bob):
    missing_receiver = client.post(
        "/api/messages/send", json={"content": "hi"}, headers=alice["headers"]
    )
    assert missing_receiver.status_code == 400

    missing_content = client.post(
        "/api/messages/send", json={"receiverId": bob["id"]}, headers=alice["headers"]
    )
    assert missing_content.status_code == 400

    blank_content = client.post(
        "/api/messages/send",
        json={"receiverId": bob["id"], "content": "   "},
        headers=alice["headers"],
    )
    assert blank_content.status_code == 400


def test_send_creates_then_updates_single_conversation(send, test_db, alice, bob):
    first = send(alice, bob["id"], "first")
    second = send(bob, alice["id"], "second")

    conversations = test_db.query(Conversation).all()
    assert len(conversations) == 1
    conversation = conversations[0]
    assert (conversation.user1_id, conversation.user2_id) == (
        min(alice["id"], bob["id"]),
        max(alice["id"], bob["id"]),
    )
    assert conversation.last_message_id == second["id"]
    assert conversation.last_message_id != first["id"]


def test_self_note_does_not_create_conversation_row(send, test_db, alice):
    send(alice, alice["id"], "note to self")
    assert test_db.query(Conversation).count() == 0


# Unread count

def test_unread_count_scenario(client, send, alice, bob):
    message = send(alice, bob["id"], "hi")
    assert unread_count(client, bob) == 1

    response = client.get(f"/api/messages/chat/{alice['id']}", headers=bob["headers"])
    assert response.status_code == 200
    history = response.json()
    assert [m["id"] for m in history] == [message["id"]]
    # The response shows the flags as they were before this view
    assert history[0]["is_read"] is False

    assert unread_count(client, bob) == 0

    again = client.get(f"/api/messages/chat/{alice['id']}", headers=bob["headers"]).json()
    assert again[0]["is_read"] is True


def test_unread_count_matches_stored_messages(client, send, test_db, alice, bob, carol):
    send(alice, bob["id"], "one")
    send(carol, bob["id"], "two")
    send(carol, bob["id"], "three")
    send(bob, bob["id"], "my own note")
    send(bob, alice["id"], "reply")

    expected = test_db.query(Message).filter(
        Message.receiver_id == bob["id"],
        Message.is_read == False,  # noqa: E712
        Message.sender_id != bob["id"],
    ).count()
    assert expected == 3
    assert unread_count(client, bob) == expected


def test_self_note_never_changes_unread_count(client, send, alice):
    before = unread_count(client, alice)
    send(alice, alice["id"], "note to self")
    assert unread_count(client, alice) == before == 0


# Chat history

def test_chat_history_is_ordered_and_annotated(client, send, alice, bob):
    sent = [
        send(alice, bob["id"], "one"),
        send(bob, alice["id"], "two"),
        send(alice, bob["id"], "three"),
    ]

    response = client.get(f"/api/messages/chat/{bob['id']}", headers=alice["headers"])
    assert response.status_code == 200
    history = response.json()

    assert [m["content"] for m in history] == ["one", "two", "three"]
    assert [m["id"] for m in history] == [m["id"] for m in sent]
    assert [m["first_name"] for m in history] == ["Alice", "Bob", "Alice"]


def test_chat_history_excludes_other_pairs(client, send, alice, bob, carol):
    send(alice, bob["id"], "for bob")
    send(alice, carol["id"], "for carol")
    send(alice, alice["id"], "for me")

    history = client.get(f"/api/messages/chat/{bob['id']}", headers=alice["headers"]).json()
    assert [m["content"] for m in history] == ["for bob"]


def test_view_marks_only_counterpart_messages_read(client, send, test_db, alice, bob):
    from_bob = send(bob, alice["id"], "from bob")
    from_alice = send(alice, bob["id"], "from alice")

    client.get(f"/api/messages/chat/{bob['id']}", headers=alice["headers"])

    test_db.expire_all()
    assert test_db.get(Message, from_bob["id"]).is_read is True
    # Alice's own message stays unread until Bob views it
    assert test_db.get(Message, from_alice["id"]).is_read is False


def test_self_history_has_no_read_side_effect(client, send, test_db, alice):
    note = send(alice, alice["id"], "remember the milk")

    response = client.get(f"/api/messages/chat/{alice['id']}", headers=alice["headers"])
    assert response.status_code == 200
    assert [m["content"] for m in response.json()] == ["remember the milk"]

    test_db.expire_all()
    assert test_db.get(Message, note["id"]).is_read is False


def test_chat_history_with_invalid_user_id(client, alice):
    for raw in ("abc", "0", "-3", "1.5"):
        response = client.get(f"/api/messages/chat/{raw}", headers=alice["headers"])
        assert response.status_code == 400, raw
        assert response.json()["detail"] == "Invalid user ID"


def test_ids_beyond_the_id_column_are_bad_requests(client, alice):
    for raw in ("2147483648", "99999999999999999999"):
        response = client.get(f"/api/messages/chat/{raw}", headers=alice["headers"])
        assert response.status_code == 400, raw
        assert response.json()["detail"] == "Invalid user ID"

        response = client.put(f"/api/messages/read/{raw}", headers=alice["headers"])
        assert response.status_code == 400, raw
        assert response.json()["detail"] == "Invalid sender ID"

    response = client.post(
        "/api/messages/send",
        json={"receiverId": 2**64, "content": "hi"},
        headers=alice["headers"],
    )
    assert response.status_code == 400
    assert response.json()["detail"].startswith("receiverId")


def test_largest_id_is_accepted(client, alice):
    response = client.get("/api/messages/chat/2147483647", headers=alice["headers"])
    assert response.status_code == 200
    assert response.json() == []


def test_chat_history_storage_failure(client, alice, monkeypatch):
    def broken(self, user_id, other_user_id):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(MessageService, "get_chat_history", broken)

    response = client.get("/api/messages/chat/2", headers=alice["headers"])
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to fetch chat history"


# Mark as read

def test_mark_as_read_is_idempotent(client, send, alice, bob):
    send(alice, bob["id"], "one")
    send(alice, bob["id"], "two")

    first = client.put(f"/api/messages/read/{alice['id']}", headers=bob["headers"])
    assert first.status_code == 200
    assert first.json() == {"message": "Messages marked as read", "updated": 2}
    assert unread_count(client, bob) == 0

    second = client.put(f"/api/messages/read/{alice['id']}", headers=bob["headers"])
    assert second.status_code == 200
    assert second.json()["updated"] == 0
    assert unread_count(client, bob) == 0


def test_mark_as_read_only_touches_that_sender(client, send, alice, bob, carol):
    send(alice, bob["id"], "from alice")
    send(carol, bob["id"], "from carol")

    client.put(f"/api/messages/read/{alice['id']}", headers=bob["headers"])
    assert unread_count(client, bob) == 1


def test_mark_as_read_with_invalid_sender_id(client, alice):
    response = client.put("/api/messages/read/not-a-number", headers=alice["headers"])
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid sender ID"


# Conversations

def test_self_conversation_scenario(client, send, alice):
    send(alice, alice["id"], "note to self")

    response = client.get("/api/messages/conversations", headers=alice["headers"])
    assert response.status_code == 200
    conversations = response.json()
    assert len(conversations) == 1

    entry = conversations[0]
    assert entry["id"] == f"self_{alice['id']}"
    assert entry["is_self"] is True
    assert entry["other_user_id"] == alice["id"]
    assert entry["last_message_content"] == "note to self"
    assert entry["unread_count"] == 0

    assert unread_count(client, alice) == 0


def test_conversations_list_annotations(client, send, alice, bob):
    send(alice, bob["id"], "hello bob")
    last = send(alice, bob["id"], "are you there?")

    conversations = client.get("/api/messages/conversations", headers=bob["headers"]).json()
    assert len(conversations) == 1
    entry = conversations[0]
    assert entry["is_self"] is False
    assert entry["other_user_id"] == alice["id"]
    assert entry["first_name"] == "Alice"
    assert entry["email"] == "alice@peerfusion.org"
    assert entry["last_message_id"] == last["id"]
    assert entry["last_message_content"] == "are you there?"
    assert entry["last_message_sender_id"] == alice["id"]
    assert entry["unread_count"] == 2


def test_conversations_sorted_by_latest_message(client, send, alice, bob, carol):
    send(alice, bob["id"], "to bob")
    send(alice, carol["id"], "to carol")
    send(alice, alice["id"], "to me")
    send(bob, alice["id"], "bob replies")

    conversations = client.get("/api/messages/conversations", headers=alice["headers"]).json()
    assert [c["other_user_id"] for c in conversations] == [bob["id"], alice["id"], carol["id"]]


def test_conversations_empty_without_self_notes(client, alice):
    response = client.get("/api/messages/conversations", headers=alice["headers"])
    assert response.status_code == 200
    assert response.json() == []


# Storage faults

def storage_down(*args, **kwargs):
    raise OperationalError("SELECT", {}, Exception("connection lost"))


def test_conversations_storage_failure(client, alice, monkeypatch):
    monkeypatch.setattr(ConversationService, "list_conversations", storage_down)

    response = client.get("/api/messages/conversations", headers=alice["headers"])
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to fetch conversations"


def test_send_storage_failure(client, alice, bob, monkeypatch):
    monkeypatch.setattr(MessageService, "send_message", storage_down)

    response = client.post(
        "/api/messages/send",
        json={"receiverId": bob["id"], "content": "hi"},
        headers=alice["headers"],
    )
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to send message"


def test_mark_as_read_storage_failure(client, alice, bob, monkeypatch):
    monkeypatch.setattr(MessageService, "mark_as_read", storage_down)

    response = client.put(f"/api/messages/read/{bob['id']}", headers=alice["headers"])
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to mark messages as read"


def test_unread_count_storage_failure(client, alice, monkeypatch):
    monkeypatch.setattr(MessageService, "get_unread_count", storage_down)

    response = client.get("/api/messages/unread/count", headers=alice["headers"])
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to fetch unread count"

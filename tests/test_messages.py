"""
Tests for direct messages: threads, conversation grouping, read tracking
and soft delete.
"""
from app.models import Message, Notification


def send(client, headers, sender, receiver, content="hi", **extra):
    r = client.post(f"/api/messages/{receiver.id}", json={"content": content, **extra}, headers=headers(sender))
    assert r.status_code == 201, r.text
    return r.json()["data"]


# ── Sending ───────────────────────────────────────────────────────────────────

class TestSendMessage:

    def test_send_message_notifies_receiver(self, client, db, make_user, headers):
        alice = make_user("alice")
        bob = make_user("bob")
        msg = send(client, headers, alice, bob, "hello bob")
        assert msg["content"] == "hello bob"
        assert msg["messageType"] == "text"
        assert msg["isRead"] is False
        assert msg["senderId"] == alice.id

        db.expire_all()
        note = db.query(Notification).one()
        assert (note.user_id, note.sender_id, note.type) == (bob.id, alice.id, "message")

    def test_self_message_rejected(self, client, make_user, headers):
        alice = make_user("alice")
        r = client.post(f"/api/messages/{alice.id}", json={"content": "me"}, headers=headers(alice))
        assert r.status_code == 400

    def test_missing_or_inactive_receiver(self, client, make_user, headers):
        alice = make_user("alice")
        ghost = make_user("ghost", is_active=False)
        assert client.post("/api/messages/999", json={"content": "x"}, headers=headers(alice)).status_code == 404
        assert client.post(f"/api/messages/{ghost.id}", json={"content": "x"}, headers=headers(alice)).status_code == 404

    def test_content_or_media_required(self, client, make_user, headers):
        alice = make_user("alice")
        bob = make_user("bob")
        r = client.post(f"/api/messages/{bob.id}", json={}, headers=headers(alice))
        assert r.status_code == 400

        msg = client.post(
            f"/api/messages/{bob.id}",
            json={"mediaUrl": "https://cdn/a.png", "messageType": "image"},
            headers=headers(alice),
        )
        assert msg.status_code == 201
        assert msg.json()["data"]["messageType"] == "image"

    def test_invalid_message_type(self, client, make_user, headers):
        alice = make_user("alice")
        bob = make_user("bob")
        r = client.post(
            f"/api/messages/{bob.id}", json={"content": "x", "messageType": "sticker"}, headers=headers(alice)
        )
        assert r.status_code == 400


# ── Threads and conversations ─────────────────────────────────────────────────

class TestConversations:

    def test_conversations_grouped_by_partner(self, client, make_user, headers):
        me = make_user("myself")
        bob = make_user("bob")
        carol = make_user("carol")

        send(client, headers, bob, me, "b1")
        send(client, headers, me, bob, "m1")
        send(client, headers, carol, me, "c1")
        send(client, headers, carol, me, "c2")
        send(client, headers, bob, me, "b2")

        body = client.get("/api/messages/conversations", headers=headers(me)).json()
        summary = [
            (c["partner"]["username"], c["lastMessage"]["content"], c["unreadCount"])
            for c in body["conversations"]
        ]
        assert summary == [("bob", "b2", 2), ("carol", "c2", 2)]
        assert body["pagination"]["total"] == 2

    def test_unread_counts_only_incoming(self, client, make_user, headers):
        me = make_user("myself")
        bob = make_user("bob")
        send(client, headers, me, bob, "out")

        conv = client.get("/api/messages/conversations", headers=headers(me)).json()["conversations"]
        assert conv[0]["unreadCount"] == 0
        assert client.get("/api/messages/unread-count", headers=headers(bob)).json() == {"unreadCount": 1}

    def test_thread_is_oldest_first_and_marks_read(self, client, make_user, headers):
        me = make_user("myself")
        bob = make_user("bob")
        send(client, headers, bob, me, "one")
        send(client, headers, me, bob, "two")
        send(client, headers, bob, me, "three")

        assert client.get("/api/messages/unread-count", headers=headers(me)).json()["unreadCount"] == 2

        body = client.get(f"/api/messages/{bob.id}", headers=headers(me)).json()
        assert [m["content"] for m in body["messages"]] == ["one", "two", "three"]
        assert body["otherUser"]["username"] == "bob"

        assert client.get("/api/messages/unread-count", headers=headers(me)).json()["unreadCount"] == 0
        # bob's copy of "two" stays unread until bob opens the thread
        assert client.get("/api/messages/unread-count", headers=headers(bob)).json()["unreadCount"] == 1

    def test_thread_pagination_takes_newest_page(self, client, make_user, headers):
        me = make_user("myself")
        bob = make_user("bob")
        for i in range(5):
            send(client, headers, bob, me, f"m{i}")

        body = client.get(f"/api/messages/{bob.id}", params={"limit": 2}, headers=headers(me)).json()
        assert [m["content"] for m in body["messages"]] == ["m3", "m4"]
        assert body["pagination"]["hasMore"] is True

    def test_thread_with_unknown_user(self, client, make_user, headers):
        me = make_user("myself")
        assert client.get("/api/messages/999", headers=headers(me)).status_code == 404


# ── Read receipts ─────────────────────────────────────────────────────────────

class TestMarkRead:

    def test_receiver_marks_read(self, client, make_user, headers):
        me = make_user("myself")
        bob = make_user("bob")
        msg = send(client, headers, bob, me)

        r = client.put(f"/api/messages/{msg['id']}/read", headers=headers(me))
        assert r.status_code == 200
        assert r.json()["isRead"] is True
        assert r.json()["readAt"] is not None

    def test_sender_cannot_mark_read(self, client, make_user, headers):
        me = make_user("myself")
        bob = make_user("bob")
        msg = send(client, headers, bob, me)
        assert client.put(f"/api/messages/{msg['id']}/read", headers=headers(bob)).status_code == 403


# ── Soft delete ───────────────────────────────────────────────────────────────

class TestSoftDelete:

    def test_deleted_message_hidden_everywhere_but_deleted_list(self, client, db, make_user, headers):
        me = make_user("myself")
        bob = make_user("bob")
        keep = send(client, headers, me, bob, "keep")
        gone = send(client, headers, me, bob, "oops")

        r = client.delete(f"/api/messages/{gone['id']}", headers=headers(me))
        assert r.status_code == 200

        thread = client.get(f"/api/messages/{bob.id}", headers=headers(me)).json()
        assert [m["id"] for m in thread["messages"]] == [keep["id"]]

        conv = client.get("/api/messages/conversations", headers=headers(bob)).json()["conversations"]
        assert conv[0]["lastMessage"]["id"] == keep["id"]
        assert conv[0]["unreadCount"] == 1
        assert client.get("/api/messages/unread-count", headers=headers(bob)).json()["unreadCount"] == 1

        deleted = client.get("/api/messages/deleted", headers=headers(me)).json()
        assert [m["id"] for m in deleted["messages"]] == [gone["id"]]
        assert deleted["messages"][0]["isDeleted"] is True
        assert deleted["messages"][0]["deletedAt"] is not None
        assert client.get("/api/messages/deleted", headers=headers(bob)).json()["messages"] == []

        db.expire_all()
        assert db.get(Message, gone["id"]) is not None

    def test_only_sender_can_delete(self, client, make_user, headers):
        me = make_user("myself")
        bob = make_user("bob")
        msg = send(client, headers, me, bob)
        assert client.delete(f"/api/messages/{msg['id']}", headers=headers(bob)).status_code == 403

    def test_delete_twice_is_404(self, client, make_user, headers):
        me = make_user("myself")
        bob = make_user("bob")
        msg = send(client, headers, me, bob)
        client.delete(f"/api/messages/{msg['id']}", headers=headers(me))
        assert client.delete(f"/api/messages/{msg['id']}", headers=headers(me)).status_code == 404

    def test_conversation_disappears_when_all_deleted(self, client, make_user, headers):
        me = make_user("myself")
        bob = make_user("bob")
        msg = send(client, headers, me, bob)
        client.delete(f"/api/messages/{msg['id']}", headers=headers(me))
        assert client.get("/api/messages/conversations", headers=headers(me)).json()["conversations"] == []

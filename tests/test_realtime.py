"""
Tests for the presence registry and the /ws realtime channel.

Socket tests run inside `with TestClient(app)` so every socket shares one
event loop. A ping/pong round trip is used as a barrier: once the pong
arrives, every earlier frame on that socket has been handled.
"""
import asyncio
import contextlib

import pytest
from fastapi.testclient import TestClient

from app.core.presence import PresenceRegistry, chat_room
from app.main import app


# ── PresenceRegistry (unit) ───────────────────────────────────────────────────

class FakeSocket:

    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send_json(self, payload):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(payload)


def run(coro):
    return asyncio.run(coro)


class TestPresenceRegistry:

    def test_first_socket_brings_user_online(self):
        async def scenario():
            registry = PresenceRegistry()
            a = await registry.register(FakeSocket())
            b = await registry.register(FakeSocket())
            first = await registry.mark_online(a, 1)
            second = await registry.mark_online(b, 1)
            return registry, first, second

        registry, first, second = run(scenario())
        assert first is True
        assert second is False
        assert registry.online_user_ids() == [1]

    def test_user_goes_offline_with_last_socket(self):
        async def scenario():
            registry = PresenceRegistry()
            a = await registry.register(FakeSocket())
            b = await registry.register(FakeSocket())
            await registry.mark_online(a, 1)
            await registry.mark_online(b, 1)
            return registry, await registry.remove(a), await registry.remove(b)

        registry, after_first, after_last = run(scenario())
        assert after_first is None
        assert after_last == 1
        assert registry.is_online(1) is False

    def test_anonymous_socket_removal(self):
        async def scenario():
            registry = PresenceRegistry()
            a = await registry.register(FakeSocket())
            return await registry.remove(a)

        assert run(scenario()) is None

    def test_room_emit_excludes_sender(self):
        sender, peer, outsider = FakeSocket(), FakeSocket(), FakeSocket()

        async def scenario():
            registry = PresenceRegistry()
            s = await registry.register(sender)
            p = await registry.register(peer)
            await registry.register(outsider)
            await registry.join(s, chat_room(7))
            await registry.join(p, chat_room(7))
            await registry.emit_to_room(chat_room(7), "user_typing", {"chatId": 7}, exclude=s)

        run(scenario())
        assert sender.sent == []
        assert peer.sent == [{"event": "user_typing", "data": {"chatId": 7}}]
        assert outsider.sent == []

    def test_broadcast_drops_dead_sockets(self):
        alive, dead = FakeSocket(), FakeSocket(fail=True)

        async def scenario():
            registry = PresenceRegistry()
            await registry.register(alive)
            d = await registry.register(dead)
            await registry.mark_online(d, 9)
            await registry.broadcast("user_status", {"userId": 1, "status": "online"})
            return registry

        registry = run(scenario())
        assert alive.sent == [
            {"event": "user_status", "data": {"userId": 1, "status": "online"}},
            {"event": "user_status", "data": {"userId": 9, "status": "offline"}},
        ]
        assert registry.is_online(9) is False

    def test_dropped_socket_is_not_announced_twice(self):
        alive, dead = FakeSocket(), FakeSocket(fail=True)

        async def scenario():
            registry = PresenceRegistry()
            await registry.register(alive)
            d = await registry.register(dead)
            await registry.mark_online(d, 9)
            await registry.broadcast("user_status", {"userId": 1, "status": "online"})
            # the endpoint's disconnect cleanup runs afterwards
            return await registry.remove(d)

        assert run(scenario()) is None
        offline = [m for m in alive.sent if m["data"].get("status") == "offline"]
        assert len(offline) == 1

    def test_dead_socket_with_other_live_socket_stays_online(self):
        alive, dead = FakeSocket(), FakeSocket(fail=True)

        async def scenario():
            registry = PresenceRegistry()
            a = await registry.register(alive)
            d = await registry.register(dead)
            await registry.mark_online(a, 9)
            await registry.mark_online(d, 9)
            await registry.broadcast("ping_all", None)
            return registry

        registry = run(scenario())
        assert alive.sent == [{"event": "ping_all", "data": None}]
        assert registry.is_online(9) is True

    def test_room_emptied_on_remove(self):
        async def scenario():
            registry = PresenceRegistry()
            a = await registry.register(FakeSocket())
            await registry.join(a, "chat_1")
            await registry.remove(a)
            return registry

        assert run(scenario()).room_members("chat_1") == set()


# ── /ws endpoint ──────────────────────────────────────────────────────────────

@pytest.fixture
def live_client():
    with TestClient(app) as client:
        yield client


def sync(ws):
    ws.send_json({"event": "ping"})
    assert ws.receive_json() == {"event": "pong", "data": None}


@contextlib.contextmanager
def connect(client):
    with client.websocket_connect("/ws") as ws:
        sync(ws)
        yield ws


class TestRealtimeChannel:

    def test_ping_pong(self, live_client):
        with live_client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "ping"})
            assert ws.receive_json() == {"event": "pong", "data": None}

    def test_invalid_json_and_unknown_event(self, live_client):
        with connect(live_client) as ws:
            ws.send_text("{not json")
            assert ws.receive_json()["event"] == "error"
            ws.send_json({"event": "dance"})
            frame = ws.receive_json()
            assert frame["event"] == "error"
            assert "dance" in frame["data"]["message"]

    def test_online_broadcast_to_others(self, live_client):
        with connect(live_client) as watcher, connect(live_client) as ws:
            ws.send_json({"event": "user_online", "data": 5})
            sync(ws)
            assert watcher.receive_json() == {"event": "user_status", "data": {"userId": 5, "status": "online"}}

    def test_online_users_endpoint_reflects_presence(self, live_client, make_user, headers):
        me = make_user("myself")
        with connect(live_client) as ws:
            ws.send_json({"event": "user_online", "data": me.id})
            sync(ws)
            r = live_client.get("/api/users/online", headers=headers(me))
            assert r.json() == {"userIds": [me.id]}

    def test_offline_broadcast_on_disconnect(self, live_client):
        with connect(live_client) as watcher:
            with connect(live_client) as ws:
                ws.send_json({"event": "user_online", "data": 5})
                sync(ws)
                assert watcher.receive_json()["data"]["status"] == "online"
            assert watcher.receive_json() == {"event": "user_status", "data": {"userId": 5, "status": "offline"}}

    def test_typing_relayed_to_room_only(self, live_client):
        with connect(live_client) as alice, connect(live_client) as bob, connect(live_client) as outsider:
            for ws in (alice, bob):
                ws.send_json({"event": "join_chat", "data": 42})
                sync(ws)

            alice.send_json({"event": "typing", "data": {"chatId": 42, "userId": 1}})
            sync(alice)
            assert bob.receive_json() == {"event": "user_typing", "data": {"chatId": 42, "userId": 1}}

            alice.send_json({"event": "send_message", "data": {"chatId": 42, "content": "hey"}})
            alice.send_json({"event": "stop_typing", "data": {"chatId": 42, "userId": 1}})
            sync(alice)
            assert bob.receive_json()["event"] == "new_message"
            assert bob.receive_json()["event"] == "user_stop_typing"

            # nothing was queued for the outsider: its next frame is its own pong
            sync(outsider)

    def test_relay_without_chat_id_is_an_error(self, live_client):
        with connect(live_client) as ws:
            ws.send_json({"event": "typing", "data": {"userId": 1}})
            assert ws.receive_json()["event"] == "error"

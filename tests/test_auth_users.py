"""
Tests for registration, login, the bearer dependency and the user directory.
"""
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt
from sqlalchemy import inspect

from app.config import settings
from app.core.exceptions import ConflictException
from app.core.security import ALGORITHM, create_user_token, read_user_id
from app.crud import crud_user
from app.database import Base, engine
from app.init_db import init_db
from app.schemas.user import UserCreate


# ── Auth ──────────────────────────────────────────────────────────────────────

class TestAuth:

    def test_register_returns_token_and_user(self, client):
        r = client.post("/api/auth/register", json={
            "username": "jane_doe",
            "email": "Jane@Example.com",
            "password": "secret123",
            "firstName": "Jane",
        })
        assert r.status_code == 201
        body = r.json()
        assert body["token_type"] == "bearer"
        assert body["access_token"]
        assert body["user"]["username"] == "jane_doe"
        assert body["user"]["email"] == "jane@example.com"
        assert body["user"]["firstName"] == "Jane"
        assert "password_hash" not in body["user"]
        assert "passwordHash" not in body["user"]

    def test_register_duplicate_username_conflicts(self, client, make_user):
        make_user("taken")
        r = client.post("/api/auth/register", json={
            "username": "taken", "email": "other@example.com", "password": "secret123",
        })
        assert r.status_code == 409

    def test_register_duplicate_email_conflicts(self, client, make_user):
        make_user("alice")
        r = client.post("/api/auth/register", json={
            "username": "alice2", "email": "alice@example.com", "password": "secret123",
        })
        assert r.status_code == 409

    def test_register_rejects_malformed_email(self, client):
        r = client.post("/api/auth/register", json={
            "username": "jane_doe", "email": "jane@example..com", "password": "secret123",
        })
        assert r.status_code == 400
        assert [e["field"] for e in r.json()["errors"]] == ["email"]

    def test_register_race_on_unique_name_is_409(self, client, make_user, monkeypatch):
        make_user("taken")
        # both lookups miss, as when a concurrent registration commits in between
        monkeypatch.setattr(crud_user, "get_by_username", lambda db, username: None)
        monkeypatch.setattr(crud_user, "get_by_email", lambda db, email: None)
        r = client.post("/api/auth/register", json={
            "username": "taken", "email": "other@example.com", "password": "secret123",
        })
        assert r.status_code == 409

    def test_create_user_duplicate_raises_conflict(self, db, make_user):
        make_user("alice")
        with pytest.raises(ConflictException):
            crud_user.create_user(db, user_in=UserCreate(
                username="alice", email="alice2@example.com", password="secret123",
            ))
        # the session is usable again after the rollback
        assert crud_user.get_by_username(db, "alice") is not None

    def test_register_validation_error_shape(self, client):
        r = client.post("/api/auth/register", json={
            "username": "x", "email": "not-an-email", "password": "123",
        })
        assert r.status_code == 400
        body = r.json()
        assert body["message"] == "Validation failed"
        fields = {e["field"] for e in body["errors"]}
        assert {"username", "email", "password"} <= fields

    def test_login_with_username_or_email(self, client, make_user):
        make_user("bob", password="hunter22")
        r = client.post("/api/auth/login", data={"username": "bob", "password": "hunter22"})
        assert r.status_code == 200
        token = r.json()["access_token"]

        r = client.post("/api/auth/login", data={"username": "bob@example.com", "password": "hunter22"})
        assert r.status_code == 200

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["username"] == "bob"

    def test_login_wrong_password(self, client, make_user):
        make_user("bob", password="hunter22")
        r = client.post("/api/auth/login", data={"username": "bob", "password": "wrong-pass"})
        assert r.status_code == 401

    def test_missing_token_is_401(self, client):
        assert client.get("/api/auth/me").status_code == 401

    def test_garbage_token_is_401(self, client):
        r = client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
        assert r.status_code == 401

    def test_token_for_unknown_user_is_401(self, client):
        token = create_user_token(9999)
        r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert r.status_code == 401

    def test_expired_token_is_401(self, client, make_user):
        bob = make_user("bob")
        token = create_user_token(bob.id, expires_delta=timedelta(seconds=-5))
        r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert r.status_code == 401

    def test_token_subject_must_be_a_user_id(self):
        expiry = datetime.now(timezone.utc) + timedelta(minutes=5)
        not_an_id = jwt.encode({"sub": "bob", "exp": expiry}, settings.SECRET_KEY, algorithm=ALGORITHM)
        no_subject = jwt.encode({"exp": expiry}, settings.SECRET_KEY, algorithm=ALGORITHM)
        assert read_user_id(not_an_id) is None
        assert read_user_id(no_subject) is None
        assert read_user_id(create_user_token(42)) == 42

    def test_inactive_user_is_403(self, client, make_user, headers):
        ghost = make_user("ghost", is_active=False)
        r = client.get("/api/auth/me", headers=headers(ghost))
        assert r.status_code == 403


# ── Profiles ──────────────────────────────────────────────────────────────────

class TestProfile:

    def test_profile_counts_accepted_edges_only(self, client, make_user, headers):
        alice = make_user("alice", is_private=True)
        bob = make_user("bob")
        carol = make_user("carol")

        client.post(f"/api/follow/{alice.id}", headers=headers(bob))
        client.post(f"/api/follow/{alice.id}", headers=headers(carol))
        requests = client.get("/api/follow/requests", headers=headers(alice)).json()["requests"]
        bob_request = next(r for r in requests if r["follower"]["username"] == "bob")
        client.put(f"/api/follow/requests/{bob_request['id']}", json={"action": "accept"}, headers=headers(alice))

        r = client.get("/api/users/profile/alice", headers=headers(alice))
        assert r.status_code == 200
        body = r.json()
        assert body["followersCount"] == 1
        assert body["followingCount"] == 0
        assert body["canViewPosts"] is True

    def test_private_profile_hides_posts_from_strangers(self, client, make_user, headers):
        alice = make_user("alice", is_private=True)
        bob = make_user("bob")
        client.post("/api/posts", json={"caption": "secret"}, headers=headers(alice))

        body = client.get("/api/users/profile/alice", headers=headers(bob)).json()
        assert body["canViewPosts"] is False
        assert body["posts"] == []
        assert body["postsCount"] == 1
        assert body["isFollowing"] is False
        assert body["followStatus"] is None

    def test_pending_follow_status_on_profile(self, client, make_user, headers):
        alice = make_user("alice", is_private=True)
        bob = make_user("bob")
        client.post(f"/api/follow/{alice.id}", headers=headers(bob))

        body = client.get("/api/users/profile/alice", headers=headers(bob)).json()
        assert body["followStatus"] == "pending"
        assert body["isFollowing"] is False

    def test_unknown_profile_is_404(self, client, make_user, headers):
        bob = make_user("bob")
        assert client.get("/api/users/profile/nobody", headers=headers(bob)).status_code == 404

    def test_update_profile(self, client, make_user, headers):
        bob = make_user("bob")
        r = client.put("/api/users/profile", json={
            "bio": "hello", "website": "https://bob.dev", "isPrivate": True,
        }, headers=headers(bob))
        assert r.status_code == 200
        user = r.json()["user"]
        assert user["bio"] == "hello"
        assert user["website"] == "https://bob.dev"
        assert user["isPrivate"] is True

    def test_update_profile_rejects_bad_website(self, client, make_user, headers):
        bob = make_user("bob")
        r = client.put("/api/users/profile", json={"website": "not a url"}, headers=headers(bob))
        assert r.status_code == 400
        assert r.json()["errors"][0]["field"] == "website"


# ── Search, suggestions, presence ─────────────────────────────────────────────

class TestDirectory:

    def test_search_is_case_insensitive_and_excludes_caller(self, client, make_user, headers):
        me = make_user("searcher")
        make_user("Sam_one", first_name="Samuel")
        make_user("other", last_name="Samson")
        make_user("nomatch")
        make_user("sam_gone", is_active=False)

        r = client.get("/api/users/search", params={"q": "SAM"}, headers=headers(me))
        assert r.status_code == 200
        names = [u["username"] for u in r.json()["users"]]
        assert names == ["Sam_one", "other"]
        assert r.json()["pagination"]["total"] == 2

    def test_search_wildcards_match_literally(self, client, make_user, headers):
        me = make_user("searcher")
        make_user("sam_one")
        make_user("samxone")
        make_user("pct_100", first_name="Hundred%")

        r = client.get("/api/users/search", params={"q": "__"}, headers=headers(me))
        assert r.json()["users"] == []

        r = client.get("/api/users/search", params={"q": "m_o"}, headers=headers(me))
        assert [u["username"] for u in r.json()["users"]] == ["sam_one"]

        r = client.get("/api/users/search", params={"q": "d%"}, headers=headers(me))
        assert [u["username"] for u in r.json()["users"]] == ["pct_100"]

    def test_search_query_too_short(self, client, make_user, headers):
        me = make_user("searcher")
        r = client.get("/api/users/search", params={"q": " a "}, headers=headers(me))
        assert r.status_code == 400

    def test_suggested_excludes_self_and_any_edge(self, client, make_user, headers):
        me = make_user("myself")
        followed = make_user("followed")
        requested = make_user("requested", is_private=True)
        fresh = make_user("fresh")
        client.post(f"/api/follow/{followed.id}", headers=headers(me))
        client.post(f"/api/follow/{requested.id}", headers=headers(me))

        r = client.get("/api/users/suggested", headers=headers(me))
        ids = [u["id"] for u in r.json()["users"]]
        assert ids == [fresh.id]

    def test_online_is_empty_without_sockets(self, client, make_user, headers):
        me = make_user("myself")
        r = client.get("/api/users/online", headers=headers(me))
        assert r.json() == {"userIds": []}


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["status"] == "OK"


def test_init_db_creates_every_table():
    Base.metadata.drop_all(bind=engine)
    init_db()
    assert set(Base.metadata.tables) <= set(inspect(engine).get_table_names())

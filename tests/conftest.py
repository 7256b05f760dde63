"""
Shared fixtures: an in-memory SQLite database recreated per test, a
TestClient, and helpers that create users and bearer headers.

Run with:  python -m pytest tests/ -v
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DEBUG"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["AUTO_CREATE_TABLES"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event

from app.core.presence import presence_registry
from app.core.security import create_user_token
from app.crud import crud_user
from app.database import Base, SessionLocal, engine
from app.main import app
from app.schemas.user import UserCreate


@pytest.fixture(autouse=True)
def _reset_state():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    presence_registry.clear()
    yield
    presence_registry.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_user(db):
    """Factory: make_user("alice", is_private=True) -> User."""
    def _make_user(username, *, password="secret123", is_private=False, is_active=True, **fields):
        user = crud_user.create_user(
            db,
            user_in=UserCreate(
                username=username,
                email=f"{username}@example.com",
                password=password,
                **fields,
            ),
        )
        if is_private or not is_active:
            user = crud_user.update(db, db_obj=user, obj_in={"is_private": is_private, "is_active": is_active})
        return user
    return _make_user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_user_token(user.id)}"}


@pytest.fixture
def headers():
    return auth_headers


@pytest.fixture
def interleave(db):
    """interleave(fn): run fn(other_session) right before `db` next flushes.

    Stands in for a concurrent request that commits between a crud method's
    checks and its insert.
    """
    def _interleave(fn):
        def _before_flush(session, flush_context, instances):
            other = SessionLocal()
            try:
                fn(other)
            finally:
                other.close()
        event.listen(db, "before_flush", _before_flush, once=True)
    return _interleave

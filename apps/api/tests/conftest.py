"""Shared fixtures: in-memory SQLite, fake collaborators, users and tokens."""
from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("STORAGE_BACKEND", "local")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from repair_desk.main import app
from repair_desk.db import get_session
from repair_desk.core.line_oauth import get_line_oauth
from repair_desk.core.security import create_access_token, hash_password
from repair_desk.core.storage import StoredFile, get_storage
from repair_desk.models.user import Base, User, UserRole

DEFAULT_PASSWORD = "password123"
# bcrypt is slow on purpose; hash once for every fixture user.
DEFAULT_PASSWORD_HASH = hash_password(DEFAULT_PASSWORD)


class FakeStorage:
    def __init__(self):
        self.fail_names: set[str] = set()
        self.uploaded: list[tuple[str, str, bytes]] = []

    def upload_file(self, *, data: bytes, filename: str, folder: str) -> StoredFile:
        if filename in self.fail_names:
            raise RuntimeError(f"upload failed: {filename}")
        self.uploaded.append((folder, filename, data))
        key = f"{folder}/{filename}"
        return StoredFile(key=key, url=f"https://files.test/{key}")


class FakeLineOAuth:
    def __init__(self):
        self.line_user_id = "U1234567890"
        self.display_name = "Somchai"
        self.exchanged_codes: list[str] = []
        self.profile_calls = 0

    def generate_auth_url(self) -> dict:
        return {"url": "https://access.line.me/oauth2/v2.1/authorize?state=fake", "state": "fake"}

    def exchange_code_for_token(self, code: str) -> dict:
        self.exchanged_codes.append(code)
        return {"access_token": f"line-token-{code}", "user_id": self.line_user_id}

    def get_user_profile(self, access_token: str) -> dict:
        self.profile_calls += 1
        return {"userId": self.line_user_id, "displayName": self.display_name}


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def session(session_factory):
    with session_factory() as s:
        yield s


@pytest.fixture()
def storage():
    return FakeStorage()


@pytest.fixture()
def line_oauth():
    return FakeLineOAuth()


@pytest.fixture()
def client(session_factory, storage, line_oauth):
    def _get_session():
        with session_factory() as s:
            yield s

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_line_oauth] = lambda: line_oauth
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(session):
    counter = {"n": 0}

    def _make(name: str | None = None, role: UserRole = UserRole.USER, email: str | None = None) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=name or f"user{n}",
            email=email or f"user{n}@example.com",
            password_hash=DEFAULT_PASSWORD_HASH,
            role=role,
        )
        session.add(user)
        session.commit()
        return user

    return _make


@pytest.fixture()
def admin(make_user):
    return make_user(name="admin", role=UserRole.ADMIN, email="admin@example.com")


def _auth_headers(user: User) -> dict:
    token = create_access_token(str(user.id), user.role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_headers():
    return _auth_headers

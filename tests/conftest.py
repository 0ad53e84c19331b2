"""
tests/conftest.py
Shared fixtures: a recording stand-in for the Hasura client, an in-memory
Redis, and test ID tokens.

Test tokens carry their claims and profile row inside the token itself, so
`auth_headers()` needs no shared registry between this module and the tests.
"""

import base64
import json
import os
import time
from typing import Any, Callable, NamedTuple, Optional

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("HASURA_GRAPHQL_ENDPOINT", "http://hasura.test/v1/graphql")
os.environ.setdefault("HASURA_ADMIN_SECRET", "test-admin-secret")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import config.hasura_client as hasura_module
import config.redis_client as redis_module
import shared.middleware.auth as auth_module
from config.hasura_client import operation_name
from main import app
from shared.utils.security import InvalidTokenError

TOKEN_PREFIX = "test-token."


# ── Test tokens ───────────────────────────────────────────────

def make_token(profile: Optional[dict], uid: Optional[str] = None, role: Optional[str] = None) -> str:
    uid = uid or profile["id"]
    claims = {
        "uid": uid,
        "sub": uid,
        "email": (profile or {}).get("email") or f"{uid}@example.com",
        "exp": int(time.time()) + 3600,
    }
    user_type = role or (profile or {}).get("user_type")
    if user_type:
        claims["user_type"] = user_type
    payload = json.dumps({"claims": claims, "profile": profile})
    return TOKEN_PREFIX + base64.urlsafe_b64encode(payload.encode()).decode()


def decode_token(token: Optional[str]) -> dict:
    if not token or not token.startswith(TOKEN_PREFIX):
        raise InvalidTokenError("not a test token")
    try:
        return json.loads(base64.urlsafe_b64decode(token[len(TOKEN_PREFIX):]))
    except ValueError as e:
        raise InvalidTokenError(str(e)) from e


def fake_verify_id_token(token: str) -> dict:
    return decode_token(token)["claims"]


def auth_headers(profile: Optional[dict], uid: Optional[str] = None, role: Optional[str] = None) -> dict:
    """Bearer header for `profile`. Pass profile=None (with a uid) for a signed-in user who never registered."""
    return {"Authorization": f"Bearer {make_token(profile, uid=uid, role=role)}"}


# ── Fake GraphQL client ───────────────────────────────────────

class GraphQLCall(NamedTuple):
    op: str
    variables: dict
    token: Optional[str]
    as_admin: bool


class FakeHasura:
    """
    Answers by operation name. A handler is a dict (returned as data), an
    exception instance (raised) or a callable taking the variables.
    GetProfileById falls back to the profile carried in the caller's token.
    """

    def __init__(self):
        self.calls: list[GraphQLCall] = []
        self.handlers: dict[str, Any] = {}

    def on(self, op: str, handler: Any) -> "FakeHasura":
        self.handlers[op] = handler
        return self

    async def execute(self, document: str, variables: Optional[dict] = None, token: Optional[str] = None,
                      as_admin: bool = False) -> dict:
        op = operation_name(document)
        variables = variables or {}
        self.calls.append(GraphQLCall(op, variables, token, as_admin))

        handler = self.handlers.get(op)
        if handler is None:
            if op == "GetProfileById":
                profile = decode_token(token)["profile"] if token else None
                if profile and profile["id"] == variables.get("id"):
                    return {"profiles_by_pk": profile}
                return {"profiles_by_pk": None}
            return {}
        if isinstance(handler, Exception):
            raise handler
        if callable(handler):
            return handler(variables)
        return handler

    def called(self, op: str) -> list[GraphQLCall]:
        return [c for c in self.calls if c.op == op]

    @property
    def ops(self) -> list[str]:
        return [c.op for c in self.calls]

    async def ping(self) -> None:
        await self.execute("query HealthCheck { __typename }", as_admin=True)

    async def aclose(self) -> None:
        pass


class FakeRedis:
    """In-memory subset of redis.asyncio.Redis used by the app."""

    def __init__(self):
        self.store: dict[str, Any] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key: str):
        return self.store.get(key)

    async def setex(self, key: str, ttl: int, value: Any):
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def exists(self, *keys: str) -> int:
        return sum(1 for k in keys if k in self.store)

    async def incr(self, key: str) -> int:
        self.store[key] = int(self.store.get(key, 0)) + 1
        return self.store[key]

    async def expire(self, key: str, ttl: int) -> bool:
        self.ttls[key] = ttl
        return key in self.store

    async def delete(self, *keys: str) -> int:
        removed = 0
        for k in keys:
            if self.store.pop(k, None) is not None:
                removed += 1
        return removed

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        pass


# ── Fixtures ──────────────────────────────────────────────────

@pytest.fixture
def hasura() -> FakeHasura:
    return FakeHasura()


@pytest.fixture
def redis() -> FakeRedis:
    return FakeRedis()


@pytest_asyncio.fixture
async def client(hasura, redis, monkeypatch):
    monkeypatch.setattr(hasura_module, "hasura_client", hasura)
    monkeypatch.setattr(redis_module, "redis_client", redis)
    monkeypatch.setattr(auth_module, "verify_id_token", fake_verify_id_token)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def _profile(uid: str, user_type: str, full_name: str, **extra) -> dict:
    return {
        "id": uid,
        "email": f"{uid}@example.com",
        "full_name": full_name,
        "phone": "+251911000000",
        "country": "Ethiopia",
        "user_type": user_type,
        "avatar_url": None,
        "registration_complete": True,
        "is_active": True,
        **extra,
    }


@pytest.fixture
def sponsor() -> dict:
    return _profile("sponsor-1", "sponsor", "Sara Sponsor")


@pytest.fixture
def other_sponsor() -> dict:
    return _profile("sponsor-2", "sponsor", "Omar Other")


@pytest.fixture
def maid() -> dict:
    return _profile("maid-1", "maid", "Almaz Bekele")


@pytest.fixture
def agency() -> dict:
    return _profile("agency-1", "agency", "Addis Placement")


@pytest.fixture
def admin() -> dict:
    return _profile("admin-1", "admin", "Platform Admin")


@pytest.fixture
def complete_maid_profile() -> dict:
    """A maid_profiles row with every required checklist field filled."""
    return {
        "id": "maid-1",
        "user_id": "maid-1",
        "full_name": "Almaz Bekele",
        "profile_photo_url": "https://cdn.example.com/almaz.jpg",
        "introduction_video_url": "https://cdn.example.com/almaz.mp4",
        "passport_number": "EP1234567",
        "phone_number": "+251 911 223 344",
        "nationality": "Ethiopian",
        "current_location": "Addis Ababa",
        "country": "Ethiopia",
        "date_of_birth": "1995-04-12",
        "primary_profession": "Housekeeper",
        "experience_years": 4,
        "skills": ["cleaning", "cooking"],
        "languages": ["Amharic", "Arabic"],
        "verification_status": "pending",
        "availability_status": "available",
        "is_agency_managed": False,
        "agency_id": None,
    }

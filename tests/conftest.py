"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("CHALLENGE_SCHEDULER_ENABLED", "false")

from unittest.mock import MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from app.core.dependencies import get_request_supabase
from app.core.http import get_http_client
from app.database.supabase_client import get_service_supabase, get_supabase
from app.main import app
from app.modules.auth.service import clear_auth_cache
from app.modules.billing.service import get_stripe_client
from app.modules.notifications.service import reset_vapid_config
from app.modules.spotify.service import clear_client_token_cache
from fakes import FakeSupabase


class AuthHeaders(dict):
    """Dict subclass that also stores user_id."""

    def __init__(self, *args, user_id: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id


class HttpStub:
    """Routes outbound httpx calls to a per-test handler."""

    def __init__(self):
        self.handler = None
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.handler is None:
            return httpx.Response(500, json={"error": "no handler"})
        return self.handler(request)


@pytest.fixture
def db():
    """Fresh in-memory database for each test."""
    fake = FakeSupabase()
    fake.unique = {
        "jam_session_participants": [("session_id", "user_id")],
        "push_subscriptions": [("endpoint",)],
        "profiles": [("username",)],
    }
    return fake


@pytest.fixture
def http_stub():
    return HttpStub()


@pytest.fixture
def stripe_client():
    return MagicMock()


@pytest.fixture
def client(db, http_stub, stripe_client):
    """Create a test client with the Supabase, HTTP and Stripe dependencies overridden."""
    async def override_http_client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(http_stub)) as http_client:
            yield http_client

    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_service_supabase] = lambda: db
    app.dependency_overrides[get_request_supabase] = lambda: db
    app.dependency_overrides[get_http_client] = override_http_client
    app.dependency_overrides[get_stripe_client] = lambda: stripe_client
    clear_auth_cache()
    clear_client_token_cache()
    reset_vapid_config()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Create a profile and return auth headers for it."""
    counter = {"n": 0}

    def _make_user(plan: str = "free", username: str | None = None, **profile) -> AuthHeaders:
        counter["n"] += 1
        user_id = f"user-{counter['n']}"
        token = f"token-{counter['n']}"
        db.seed("profiles", {
            "id": user_id,
            "username": username or f"guitarist{counter['n']}",
            "display_name": None,
            "avatar_url": None,
            "plan": plan,
            "is_private": False,
            **profile,
        })
        db.add_user(token, user_id)
        return AuthHeaders({"Authorization": f"Bearer {token}"}, user_id=user_id)

    return _make_user


@pytest.fixture
def auth_headers(make_user):
    """A free-plan user."""
    return make_user()


@pytest.fixture
def pro_headers(make_user):
    return make_user(plan="pro")


@pytest.fixture
def band_headers(make_user):
    return make_user(plan="band")

from datetime import timedelta
from typing import Any, Dict, List, Optional

import pytest
import requests
from fastapi import HTTPException
from fastapi.testclient import TestClient

from app.core.clock import utcnow
from app.core.dependencies import get_current_user, get_optional_user
from app.core.rate_limit import limiter
from app.database.supabase_client import get_supabase
from app.main import app
from app.modules.notifications.push import get_push_client
from tests.fake_supabase import FakeSupabase

INVITE_TOKEN = "Abc123Def456Ghi789Jkl012"

HOST = {"id": "host-user", "email": "host@example.com", "user_metadata": {"name": "Hana Host"}}
GUEST = {"id": "guest-user", "email": "guest@example.com", "user_metadata": {}}
STRANGER = {"id": "stranger-user", "email": "nobody@example.com", "user_metadata": {}}


class FakePushClient:
    """Records pushes instead of calling the provider."""

    def __init__(self):
        self.messages: List[Dict[str, Any]] = []
        self.fail = False

    def send(self, messages) -> int:
        messages = [m for m in messages if m.get("to")]
        if self.fail:
            raise requests.ConnectionError("push provider unreachable")
        self.messages.extend(messages)
        return len(messages)


class Auth:
    """Who the test client is signed in as; None means no session."""

    def __init__(self):
        self.user: Optional[Dict[str, Any]] = HOST

    def required(self):
        if self.user is None:
            raise HTTPException(status_code=401, detail="Not authenticated")
        return self.user

    def optional(self):
        return self.user


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def push():
    return FakePushClient()


@pytest.fixture
def auth():
    return Auth()


@pytest.fixture
def client(db, push, auth):
    """Test client wired to the in-memory backend"""
    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_push_client] = lambda: push
    app.dependency_overrides[get_current_user] = auth.required
    app.dependency_overrides[get_optional_user] = auth.optional
    limiter.enabled = False

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides = {}
    limiter.enabled = True


def make_event(db: FakeSupabase, host_id: str = HOST["id"], bell_in: timedelta = timedelta(hours=3), **values) -> Dict[str, Any]:
    bell = utcnow() + bell_in
    row = {
        "host_user_id": host_id,
        "title": "Taco Night",
        "start_time": (bell - timedelta(hours=1)).isoformat(),
        "bell_time": bell.isoformat(),
        "timezone": "UTC",
        "address_line1": "1 Main St",
        "invite_token": INVITE_TOKEN,
        "is_cancelled": False,
    }
    row.update(values)
    return db.seed("events", **row)


def make_guest(db: FakeSupabase, event_id: str, contact: str, user_id: Optional[str] = None, rsvp_status: str = "going", **values) -> Dict[str, Any]:
    values.setdefault("guest_name", contact.split("@")[0])
    return db.seed(
        "event_guests",
        event_id=event_id,
        guest_phone_or_email=contact,
        user_id=user_id,
        rsvp_status=rsvp_status,
        **values,
    )


def make_profile(db: FakeSupabase, user: Dict[str, Any], push_token: Optional[str] = None, **values) -> Dict[str, Any]:
    return db.seed("profiles", id=user["id"], email=user["email"], push_token=push_token, **values)

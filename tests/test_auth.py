"""
Tests for the auth service against a stubbed Supabase auth client
"""

from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from app.config import settings
from app.modules.auth import service as auth_service
from app.modules.auth.schemas import LoginRequest
from app.modules.auth.service import AuthService


class StubAuth:
    def __init__(self):
        self.get_user_calls = 0
        self.admin = SimpleNamespace(sign_out=lambda token: None)

    def get_user(self, jwt):
        self.get_user_calls += 1
        if jwt != "good-token":
            raise Exception("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(
            id="u1", email="u1@example.com", user_metadata={"name": "U"}, created_at="2026-01-01T00:00:00Z"
        ))

    def sign_in_with_password(self, credentials):
        if credentials["password"] != "secret":
            raise Exception("Invalid login credentials")
        return SimpleNamespace(
            user=SimpleNamespace(id="u1", email=credentials["email"]),
            session=SimpleNamespace(access_token="good-token"),
        )


@pytest.fixture(autouse=True)
def clear_cache():
    auth_service._AUTH_USER_CACHE.clear()
    yield
    auth_service._AUTH_USER_CACHE.clear()


@pytest.fixture
def stub():
    return StubAuth()


@pytest.fixture
def service(stub):
    client = SimpleNamespace(auth=stub)
    return AuthService(client, session_client_factory=lambda: client)


def test_current_user_is_cached(service, stub):
    first = service.get_current_user("good-token")
    second = service.get_current_user("good-token")
    assert first == second
    assert first["id"] == "u1"
    assert stub.get_user_calls == 1


def test_invalid_token_is_401(service):
    with pytest.raises(HTTPException) as exc:
        service.get_current_user("bad-token")
    assert exc.value.status_code == 401


def test_login(service):
    token = service.login(LoginRequest(email="u1@example.com", password="secret"))
    assert token.access_token == "good-token"
    assert token.user_id == "u1"


def test_login_wrong_password(service):
    with pytest.raises(HTTPException) as exc:
        service.login(LoginRequest(email="u1@example.com", password="nope"))
    assert exc.value.status_code == 401


def test_logout_drops_cached_user(service, stub):
    service.get_current_user("good-token")
    assert service.logout("good-token") is True
    service.get_current_user("good-token")
    assert stub.get_user_calls == 2


def test_dev_login_hidden_outside_debug(service, monkeypatch):
    monkeypatch.setattr(settings, "debug", False)
    with pytest.raises(HTTPException) as exc:
        service.dev_login()
    assert exc.value.status_code == 404


def test_dev_login_in_debug(service, monkeypatch):
    monkeypatch.setattr(settings, "debug", True)
    monkeypatch.setattr(settings, "dev_sign_in_email", "dev@example.com")
    monkeypatch.setattr(settings, "dev_sign_in_password", "secret")
    assert service.dev_login().email == "dev@example.com"

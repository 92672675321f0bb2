"""
Tests for invite tokens, deep links and contact normalization
"""

import pytest
from pydantic import ValidationError

from app.config import settings
from app.modules.events.links import (
    INVITE_TOKEN_LENGTH, build_bell_url, build_event_url, build_invite_url, generate_invite_token, tokens_match
)
from app.modules.invites.schemas import HostGuestAdd, normalize_contact, normalize_phone_for_lookup
from app.modules.notifications.delivery import normalize_to_e164


def test_invite_token_is_alphanumeric_and_24_chars():
    tokens = {generate_invite_token() for _ in range(50)}
    assert len(tokens) == 50
    for token in tokens:
        assert len(token) == INVITE_TOKEN_LENGTH == 24
        assert token.isalnum() and token.isascii()


def test_tokens_match_is_exact():
    assert tokens_match("Abc123", "Abc123")
    assert not tokens_match("Abc123", "abc123")
    assert not tokens_match("Abc123", "Abc123 ")
    assert not tokens_match("Abc123", "")
    assert not tokens_match(None, "Abc123")


def test_invite_url_uses_public_base(monkeypatch):
    monkeypatch.setattr(settings, "public_web_base_url", "https://dinnerbell.app/")
    assert build_invite_url("ev1", "tok") == "https://dinnerbell.app/invite/ev1?token=tok"
    assert build_invite_url("ev1", "tok", base_url="http://localhost:8081") == "http://localhost:8081/invite/ev1?token=tok"


def test_event_and_bell_links(monkeypatch):
    monkeypatch.setattr(settings, "public_web_base_url", "https://dinnerbell.app")
    assert build_event_url("ev1") == "https://dinnerbell.app/event/ev1"
    assert build_bell_url("ev1") == "https://dinnerbell.app/event/ev1/bell"


def test_phone_normalization():
    assert normalize_phone_for_lookup("(555) 123-4567") == "5551234567"
    assert normalize_contact("  Guest@Example.COM ") == "guest@example.com"
    assert normalize_contact("+1 555 123 4567") == "15551234567"


def test_e164():
    assert normalize_to_e164("555-123-4567") == "+15551234567"
    assert normalize_to_e164("1 555 123 4567") == "+15551234567"
    assert normalize_to_e164("+44 20 7946 0958") == "+44 20 7946 0958"


def test_host_guest_phone_must_have_ten_digits():
    with pytest.raises(ValidationError):
        HostGuestAdd(phone="555-1234")
    assert HostGuestAdd(phone="(555) 123-4567").contact == "5551234567"


def test_host_guest_needs_exactly_one_contact():
    with pytest.raises(ValidationError):
        HostGuestAdd()
    with pytest.raises(ValidationError):
        HostGuestAdd(email="a@example.com", phone="5551234567")
    assert HostGuestAdd(email="A@Example.com").contact == "a@example.com"

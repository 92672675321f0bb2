"""Invite tokens and the public links the app deep-links into."""

import secrets
import string
from typing import Optional

from app.config import settings

INVITE_TOKEN_LENGTH = 24
INVITE_TOKEN_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits


def generate_invite_token(length: int = INVITE_TOKEN_LENGTH) -> str:
    return "".join(secrets.choice(INVITE_TOKEN_ALPHABET) for _ in range(length))


def tokens_match(expected: Optional[str], presented: Optional[str]) -> bool:
    """Exact equality, compared in constant time."""
    if not expected or not presented:
        return False
    return secrets.compare_digest(expected.encode(), presented.encode())


def get_public_base_url(base_url: Optional[str] = None) -> str:
    return (base_url or settings.public_web_base_url).strip().rstrip("/")


def build_invite_url(event_id: str, token: str, base_url: Optional[str] = None) -> str:
    return f"{get_public_base_url(base_url)}/invite/{event_id}?token={token}"


def build_event_url(event_id: str, base_url: Optional[str] = None) -> str:
    return f"{get_public_base_url(base_url)}/event/{event_id}"


def build_bell_url(event_id: str, base_url: Optional[str] = None) -> str:
    return f"{get_public_base_url(base_url)}/event/{event_id}/bell"

"""
Expo push API client.
"""

from typing import Any, Dict, Iterable, List, Optional
import logging

import requests
from fastapi import Depends, HTTPException
from starlette.requests import HTTPConnection

from app.config import settings

logger = logging.getLogger(__name__)

# Expo accepts at most 100 messages per request
PUSH_BATCH_SIZE = 100


class PartialPushError(requests.RequestException):
    """A batch failed after earlier batches were already accepted."""

    def __init__(self, sent: int, cause: Exception):
        super().__init__(f"Push stopped after {sent} messages: {cause}")
        self.sent = sent


def build_message(token: str, title: str, body: str, data: Dict[str, Any], sound: Optional[str] = "default") -> Dict[str, Any]:
    message = {"to": token, "title": title, "body": body, "data": data}
    if sound:
        message["sound"] = sound
    return message


class PushClient:
    def __init__(self, api_url: Optional[str] = None, timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.api_url = api_url or settings.push_api_url
        self.timeout = timeout or settings.http_timeout_sec
        self.session = session or requests.Session()

    def send(self, messages: Iterable[Dict[str, Any]]) -> int:
        """Post messages in batches and return how many were handed to the provider.

        Raises ``requests.RequestException`` when the first batch is rejected and
        ``PartialPushError`` when a later one is, carrying the count already sent.
        """
        messages = [m for m in messages if m.get("to")]
        sent = 0
        for start in range(0, len(messages), PUSH_BATCH_SIZE):
            batch = messages[start:start + PUSH_BATCH_SIZE]
            try:
                response = self.session.post(
                    self.api_url,
                    json=batch,
                    headers={"Accept": "application/json", "Content-Type": "application/json"},
                    timeout=self.timeout,
                )
                response.raise_for_status()
            except requests.RequestException as e:
                if sent:
                    raise PartialPushError(sent, e) from e
                raise
            sent += len(batch)
        logger.debug(f"Pushed {sent} messages")
        return sent


def get_http_session(connection: HTTPConnection) -> requests.Session:
    """Outbound HTTP session opened in the app lifespan."""
    session = getattr(connection.app.state, "http_session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Backend not configured")
    return session


def get_push_client(session: requests.Session = Depends(get_http_session)) -> PushClient:
    return PushClient(session=session)


def push_tokens_for_users(supabase, user_ids: List[str]) -> Dict[str, str]:
    """Map user id to push token for the users that registered one."""
    if not user_ids:
        return {}
    result = supabase.table("profiles")\
        .select("id, push_token")\
        .in_("id", sorted(set(user_ids)))\
        .execute()
    return {row["id"]: row["push_token"] for row in (result.data or []) if row.get("push_token")}

"""Funnel events forwarded to an optional analytics endpoint."""

from typing import Any, Dict, Optional
import logging

import requests

from app.config import settings
from app.core.clock import utcnow
from app.core.results import Outcome, run_best_effort

logger = logging.getLogger(__name__)

TRACKED_EVENTS = {
    "create_published",
    "event_edited",
    "event_cancelled",
    "invite_opened",
    "rsvp_submitted",
    "bring_claimed",
    "bell_triggered",
    "guest_added",
    "group_created",
    "group_deleted",
    "profile_updated",
    "sign_in",
    "sign_up",
}


def _forward(event: str, properties: Dict[str, Any], endpoint: str) -> Outcome:
    response = requests.post(
        endpoint,
        json={"event": event, "properties": properties, "timestamp": utcnow().isoformat()},
        timeout=settings.http_timeout_sec,
    )
    if not response.ok:
        return Outcome.failure(f"analytics endpoint returned {response.status_code}")
    return Outcome.success()


def track(event: str, properties: Optional[Dict[str, Any]] = None) -> Outcome:
    props = {k: v for k, v in (properties or {}).items() if v is not None}
    logger.debug(f"analytics {event} {props}")
    if event not in TRACKED_EVENTS:
        return Outcome.failure(f"unknown analytics event {event}")
    endpoint = (settings.analytics_endpoint or "").strip()
    if not endpoint:
        return Outcome.success()
    return run_best_effort(f"analytics:{event}", _forward, event, props, endpoint)

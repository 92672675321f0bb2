"""
Pushes to an event's host when a guest RSVPs or claims a bring item.
"""

import logging
from typing import Optional

from fastapi import HTTPException
from supabase import Client

from app.core.dependencies import find_guest_for_user, get_event_row
from app.core.results import Outcome, run_best_effort
from app.modules.events.links import build_event_url
from app.modules.notifications.push import PushClient, build_message

logger = logging.getLogger(__name__)

TITLES = {
    "bring_claimed": "Bring item claimed",
    "rsvp_change": "RSVP update",
}


def default_body(notification_type: str, guest_name: Optional[str], item_name: Optional[str]) -> str:
    guest = guest_name or "Someone"
    if notification_type == "bring_claimed":
        return f"{guest} claimed {item_name or 'an item'}"
    return f"{guest} responded to your invite"


class HostNotifier:
    def __init__(self, supabase: Client, push_client: PushClient):
        self.supabase = supabase
        self.push_client = push_client

    def _host_push_token(self, host_user_id: str) -> Optional[str]:
        result = self.supabase.table("profiles")\
            .select("push_token")\
            .eq("id", host_user_id)\
            .maybe_single()\
            .execute()
        return result.data.get("push_token") if result and result.data else None

    def send(
        self,
        event_id: str,
        notification_type: str,
        message: Optional[str] = None,
        guest_name: Optional[str] = None,
        item_name: Optional[str] = None,
    ) -> Outcome:
        """Push one notification to the host. ``value`` is False when the host has no token."""
        event = get_event_row(event_id, self.supabase, "id, host_user_id")
        if not event:
            return Outcome.failure("event not found")
        token = self._host_push_token(event["host_user_id"])
        if not token:
            return Outcome.success(False)
        self.push_client.send([build_message(
            token,
            TITLES.get(notification_type, "Dinner Bell"),
            message or default_body(notification_type, guest_name, item_name),
            {"type": notification_type, "eventId": event_id, "url": build_event_url(event_id)},
        )])
        return Outcome.success(True)

    def send_best_effort(self, event_id: str, notification_type: str, **kwargs) -> Outcome:
        """Used from background tasks; failures are logged, never raised."""
        return run_best_effort(f"notify_host:{notification_type}", self.send, event_id, notification_type, **kwargs)

    def send_for_caller(self, event_id: str, notification_type: str, user_data: dict, **kwargs) -> bool:
        """Explicit request from a signed-in host or guest of the event."""
        event = get_event_row(event_id, self.supabase, "id, host_user_id")
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")
        if event["host_user_id"] != user_data["id"] and not find_guest_for_user(event_id, user_data, self.supabase):
            raise HTTPException(status_code=403, detail="Forbidden")
        outcome = self.send_best_effort(event_id, notification_type, **kwargs)
        return bool(outcome.ok and outcome.value)

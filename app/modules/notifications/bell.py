import logging
from typing import Optional

import requests
from fastapi import HTTPException
from supabase import Client

from app.core.analytics import track
from app.core.dependencies import check_event_host
from app.modules.events.links import build_bell_url
from app.modules.notifications.push import PushClient, build_message, push_tokens_for_users
from app.modules.notifications.schemas import BellResponse
from app.modules.notifications.sweep import DEFAULT_BELL_SOUND

logger = logging.getLogger(__name__)


class BellService:
    def __init__(self, supabase: Client, push_client: PushClient):
        self.supabase = supabase
        self.push_client = push_client

    def ring(self, event_id: str, user_data: dict, message: Optional[str] = None) -> BellResponse:
        """Push the bell to every going guest. Only the host may ring it."""
        event = check_event_host(event_id, user_data, self.supabase)

        guests = self.supabase.table("event_guests")\
            .select("user_id")\
            .eq("event_id", event_id)\
            .eq("rsvp_status", "going")\
            .execute()
        user_ids = [g["user_id"] for g in (guests.data or []) if g.get("user_id")]
        tokens = sorted(set(push_tokens_for_users(self.supabase, user_ids).values()))

        data = {
            "type": "bell_ring",
            "eventId": event_id,
            "message": message,
            "bellSound": event.get("bell_sound") or DEFAULT_BELL_SOUND,
            "url": build_bell_url(event_id),
        }
        body = message or "Time to eat."
        try:
            self.push_client.send(build_message(t, "Dinner Bell!", body, data) for t in tokens)
        except requests.RequestException as e:
            logger.error(f"Bell push for event {event_id} failed: {e}")
            raise HTTPException(status_code=502, detail="Push delivery failed")

        track("bell_triggered", {"event_id": event_id, "recipients": len(tokens)})
        logger.info(f"Bell rung for event {event_id} to {len(tokens)} device(s)")
        return BellResponse(sent=len(tokens))

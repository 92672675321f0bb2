import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import requests
from supabase import Client

from app.config import settings
from app.core.clock import as_utc, utcnow
from app.modules.events.links import build_bell_url, build_event_url
from app.modules.notifications.push import PartialPushError, PushClient, build_message, push_tokens_for_users

logger = logging.getLogger(__name__)

SWEEP_BATCH_SIZE = 500
DEFAULT_BELL_SOUND = "triangle"

REMINDER_BODIES = {
    "reminder_2h": "Your dinner is in 2 hours.",
    "reminder_30m": "Your dinner is coming up.",
}


def is_reminder_recipient(guest: Dict[str, Any]) -> bool:
    """Linked guests who are going, or maybe and asked for reminders."""
    if not guest.get("user_id"):
        return False
    status = guest.get("rsvp_status")
    if status == "going":
        return True
    return status == "maybe" and guest.get("wants_reminders", True) is not False


def build_scheduled_message(token: str, notification_type: str, event: Dict[str, Any]) -> Dict[str, Any]:
    if notification_type == "bell":
        bell_sound = event.get("bell_sound") or DEFAULT_BELL_SOUND
        return build_message(token, "Dinner Bell!", "Time to eat.", {
            "type": "bell_ring",
            "eventId": event["id"],
            "bellSound": bell_sound,
            "url": build_bell_url(event["id"]),
        })
    return build_message(token, "Reminder", REMINDER_BODIES.get(notification_type, "Your dinner is coming up."), {
        "type": "reminder",
        "eventId": event["id"],
        "url": build_event_url(event["id"]),
    })


class NotificationSweeper:
    """Delivers due rows of notification_schedules and marks them sent."""

    def __init__(self, supabase: Client, push_client: PushClient, stale_after: Optional[timedelta] = None):
        self.supabase = supabase
        self.push_client = push_client
        self.stale_after = stale_after or timedelta(minutes=settings.notification_stale_after_minutes)

    def _due_rows(self, now: datetime) -> List[Dict[str, Any]]:
        result = self.supabase.table("notification_schedules")\
            .select("*")\
            .lte("scheduled_at", now.isoformat())\
            .is_("sent_at", "null")\
            .order("scheduled_at")\
            .limit(SWEEP_BATCH_SIZE)\
            .execute()
        return result.data or []

    def _events(self, event_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        result = self.supabase.table("events")\
            .select("id, title, is_cancelled, bell_sound")\
            .in_("id", event_ids)\
            .execute()
        return {row["id"]: row for row in (result.data or [])}

    def _recipient_tokens(self, event_id: str) -> List[str]:
        guests = self.supabase.table("event_guests")\
            .select("user_id, rsvp_status, wants_reminders")\
            .eq("event_id", event_id)\
            .execute()
        user_ids = [g["user_id"] for g in (guests.data or []) if is_reminder_recipient(g)]
        tokens = push_tokens_for_users(self.supabase, user_ids)
        return sorted(set(tokens.values()))

    def _mark_sent(self, row_id: str, now: datetime) -> None:
        self.supabase.table("notification_schedules")\
            .update({"sent_at": now.isoformat()})\
            .eq("id", row_id)\
            .is_("sent_at", "null")\
            .execute()

    def run_once(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Process every due row once.

        Rows past the staleness window and rows of cancelled or deleted events
        are marked sent without delivery. A row whose push fails outright stays
        pending for the next sweep; one that reached some devices is marked sent
        so those devices are not pushed twice.
        """
        now = as_utc(now) if now else utcnow()
        summary = {"processed": 0, "delivered": 0, "skipped": 0, "failed": 0}
        rows = self._due_rows(now)
        if not rows:
            return summary
        events = self._events(sorted({r["event_id"] for r in rows}))

        for row in rows:
            event = events.get(row["event_id"])
            stale = now - as_utc(row["scheduled_at"]) > self.stale_after
            if not event or event.get("is_cancelled") or stale:
                self._mark_sent(row["id"], now)
                summary["skipped"] += 1
                continue

            tokens = self._recipient_tokens(event["id"])
            try:
                delivered = self.push_client.send(
                    build_scheduled_message(t, row["type"], event) for t in tokens
                )
            except PartialPushError as e:
                logger.warning(f"Push for notification {row['id']} reached {e.sent} of {len(tokens)} devices: {e}")
                delivered = e.sent
            except requests.RequestException as e:
                logger.warning(f"Push for notification {row['id']} failed, will retry: {e}")
                summary["failed"] += 1
                continue
            self._mark_sent(row["id"], now)
            summary["processed"] += 1
            summary["delivered"] += delivered

        logger.info(
            f"Notification sweep: {summary['processed']} sent, {summary['skipped']} skipped, "
            f"{summary['failed']} failed, {summary['delivered']} pushes"
        )
        return summary


async def notification_sweep_loop(sweeper: NotificationSweeper, interval_sec: int):
    """Background task that periodically delivers due notifications"""
    while True:
        try:
            await asyncio.to_thread(sweeper.run_once)
        except Exception as e:
            logger.error(f"Error in notification sweep loop: {str(e)}")

        await asyncio.sleep(interval_sec)

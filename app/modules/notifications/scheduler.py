from datetime import datetime, timedelta
from typing import Dict, List, Optional, Union
import logging

from supabase import Client

from app.core.clock import as_utc, utcnow

logger = logging.getLogger(__name__)

REMINDER_2H_OFFSET = timedelta(hours=2)
REMINDER_30M_OFFSET = timedelta(minutes=30)


def build_schedule_rows(
    event_id: str,
    bell_time: Union[datetime, str],
    now: Optional[datetime] = None,
    skip_past_reminder_2h: bool = False,
) -> List[Dict[str, str]]:
    """Rows for the 2h reminder, the 30m reminder and the bell itself.

    With ``skip_past_reminder_2h`` the 2h reminder is left out once its time
    has passed. The 30m and bell rows are always produced.
    """
    bell = as_utc(bell_time)
    now = as_utc(now) if now else utcnow()
    reminder_2h = bell - REMINDER_2H_OFFSET
    reminder_30m = bell - REMINDER_30M_OFFSET

    rows = []
    if not skip_past_reminder_2h or reminder_2h > now:
        rows.append({"event_id": event_id, "scheduled_at": reminder_2h.isoformat(), "type": "reminder_2h"})
    rows.append({"event_id": event_id, "scheduled_at": reminder_30m.isoformat(), "type": "reminder_30m"})
    rows.append({"event_id": event_id, "scheduled_at": bell.isoformat(), "type": "bell"})
    return rows


class NotificationScheduler:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def schedule_new_event(self, event_id: str, bell_time: Union[datetime, str]) -> List[Dict[str, str]]:
        """Insert all three rows; the sweep skips the ones that are already stale."""
        rows = build_schedule_rows(event_id, bell_time)
        self.supabase.table("notification_schedules").insert(rows).execute()
        logger.info(f"Scheduled {len(rows)} notifications for new event {event_id}")
        return rows

    def reschedule_event(
        self,
        event_id: str,
        bell_time: Union[datetime, str],
        now: Optional[datetime] = None,
    ) -> List[Dict[str, str]]:
        """Replace pending rows after an edit, dropping a 2h reminder that can no longer fire."""
        self.clear_pending(event_id)
        rows = build_schedule_rows(event_id, bell_time, now=now, skip_past_reminder_2h=True)
        self.supabase.table("notification_schedules").insert(rows).execute()
        logger.info(f"Rescheduled {len(rows)} notifications for event {event_id}")
        return rows

    def clear_pending(self, event_id: str) -> None:
        self.supabase.table("notification_schedules")\
            .delete()\
            .eq("event_id", event_id)\
            .is_("sent_at", "null")\
            .execute()

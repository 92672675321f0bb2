from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from fastapi import HTTPException
from supabase import Client

from app.config import settings
from app.core.analytics import track
from app.core.clock import as_utc, utcnow
from app.core.dependencies import (
    check_event_host, check_event_manager, find_guest_for_user, get_co_host_ids, get_event_row
)
from app.modules.events.aggregate import assemble_event_view
from app.modules.events.links import build_invite_url, generate_invite_token
from app.modules.events.schemas import (
    CoHostResponse, EventCreate, EventCreatedResponse, EventFullResponse, EventResponse,
    EventsListResponse, EventUpdate, HostEventResponse, InviteLinkResponse
)
from app.modules.notifications.scheduler import NotificationScheduler

logger = logging.getLogger(__name__)

PAST_EVENTS_LIMIT = 10
PUBLIC_EVENTS_LIMIT = 50
ATTENDING_STATUSES = ["going", "maybe"]


def _serialize(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v.isoformat() if isinstance(v, datetime) else v for k, v in values.items()}


class EventService:
    def __init__(self, supabase: Client, scheduler: Optional[NotificationScheduler] = None):
        self.supabase = supabase
        self.scheduler = scheduler or NotificationScheduler(supabase)

    def create_event(self, event_data: EventCreate, user_id: str) -> EventCreatedResponse:
        """Create an event with its menu, bring list and schedule, then queue its notifications."""
        try:
            insert_data = _serialize(event_data.model_dump(
                exclude={"menu_sections", "bring_items", "schedule_blocks"}
            ))
            insert_data.update({
                "host_user_id": user_id,
                "invite_token": generate_invite_token(),
                "is_cancelled": False,
            })
            result = self.supabase.table("events").insert(insert_data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create event")
            event = result.data[0]
            event_id = event["id"]

            self._insert_menu(event_id, event_data)
            if event_data.bring_items:
                self.supabase.table("bring_items").insert([
                    {
                        **item.model_dump(),
                        "event_id": event_id,
                        "status": "unclaimed",
                        "sort_order": i,
                    }
                    for i, item in enumerate(event_data.bring_items)
                ]).execute()
            if event_data.schedule_blocks:
                self.supabase.table("schedule_blocks").insert([
                    {**block.model_dump(), "event_id": event_id, "sort_order": i}
                    for i, block in enumerate(event_data.schedule_blocks)
                ]).execute()

            self.scheduler.schedule_new_event(event_id, event_data.bell_time)
            track("create_published", {
                "event_id": event_id,
                "menu_sections": len(event_data.menu_sections),
                "bring_items": len(event_data.bring_items),
            })
            logger.info(f"Event {event_id} created by {user_id}")
            return EventCreatedResponse(
                event=HostEventResponse(**event),
                invite_url=build_invite_url(event_id, event["invite_token"]),
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Failed to create event: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def _insert_menu(self, event_id: str, event_data: EventCreate) -> None:
        for i, section in enumerate(event_data.menu_sections):
            result = self.supabase.table("menu_sections").insert({
                "event_id": event_id,
                "title": section.title,
                "sort_order": i,
            }).execute()
            if not result.data or not section.items:
                continue
            section_id = result.data[0]["id"]
            self.supabase.table("menu_items").insert([
                {**item.model_dump(), "section_id": section_id, "sort_order": j}
                for j, item in enumerate(section.items)
            ]).execute()

    def update_event(self, event_id: str, event_data: EventUpdate, user_data: dict) -> HostEventResponse:
        """Edit scalar fields. A new bell time regenerates the pending notifications."""
        event = check_event_manager(event_id, user_data, self.supabase)
        if event.get("is_cancelled"):
            raise HTTPException(status_code=410, detail="This event has been cancelled")

        changes = event_data.model_dump(exclude_unset=True)
        if not changes:
            return HostEventResponse(**event)

        start = changes.get("start_time") or event.get("start_time")
        bell = changes.get("bell_time") or event.get("bell_time")
        end = changes["end_time"] if "end_time" in changes else event.get("end_time")
        bell_changed = "bell_time" in changes and as_utc(bell) != as_utc(event["bell_time"])
        if bell_changed and as_utc(bell) <= utcnow():
            raise HTTPException(status_code=422, detail="Bell time must be in the future.")
        if start and as_utc(bell) < as_utc(start):
            raise HTTPException(status_code=422, detail="Bell time cannot be before the start time.")
        if end and as_utc(end) < as_utc(bell):
            raise HTTPException(status_code=422, detail="End time cannot be before the bell time.")

        try:
            update_data = _serialize(changes)
            update_data["updated_at"] = utcnow().isoformat()
            result = self.supabase.table("events")\
                .update(update_data)\
                .eq("id", event_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to update event")
            if bell_changed:
                self.scheduler.reschedule_event(event_id, bell)
            track("event_edited", {"event_id": event_id, "bell_changed": bell_changed})
            return HostEventResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Failed to update event {event_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def cancel_event(self, event_id: str, user_data: dict) -> HostEventResponse:
        event = check_event_host(event_id, user_data, self.supabase)
        if event.get("is_cancelled"):
            return HostEventResponse(**event)
        result = self.supabase.table("events")\
            .update({"is_cancelled": True, "updated_at": utcnow().isoformat()})\
            .eq("id", event_id)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to cancel event")
        self.scheduler.clear_pending(event_id)
        track("event_cancelled", {"event_id": event_id})
        logger.info(f"Event {event_id} cancelled")
        return HostEventResponse(**result.data[0])

    def list_events(self, user_id: str, now: Optional[datetime] = None) -> EventsListResponse:
        """Hosted and attending events split around ``now``.

        Upcoming ascending by bell time, past descending and capped.
        """
        now = now or utcnow()
        hosted = self.supabase.table("events")\
            .select("*")\
            .eq("host_user_id", user_id)\
            .eq("is_cancelled", False)\
            .execute()
        rows = {row["id"]: row for row in (hosted.data or [])}

        guest_rows = self.supabase.table("event_guests")\
            .select("event_id")\
            .eq("user_id", user_id)\
            .in_("rsvp_status", ATTENDING_STATUSES)\
            .execute()
        attending_ids = sorted({g["event_id"] for g in (guest_rows.data or [])} - set(rows))
        if attending_ids:
            attending = self.supabase.table("events")\
                .select("*")\
                .in_("id", attending_ids)\
                .eq("is_cancelled", False)\
                .execute()
            for row in attending.data or []:
                rows.setdefault(row["id"], row)

        upcoming = [r for r in rows.values() if as_utc(r["bell_time"]) >= now]
        past = [r for r in rows.values() if as_utc(r["bell_time"]) < now]
        upcoming.sort(key=lambda r: as_utc(r["bell_time"]))
        past.sort(key=lambda r: as_utc(r["bell_time"]), reverse=True)
        return EventsListResponse(
            upcoming=[EventResponse(**r) for r in upcoming],
            past=[EventResponse(**r) for r in past[:PAST_EVENTS_LIMIT]],
        )

    def list_public_events(self, now: Optional[datetime] = None) -> List[EventResponse]:
        now = now or utcnow()
        result = self.supabase.table("events")\
            .select("*")\
            .eq("is_public", True)\
            .eq("is_cancelled", False)\
            .gte("bell_time", now.isoformat())\
            .order("bell_time")\
            .limit(PUBLIC_EVENTS_LIMIT)\
            .execute()
        return [EventResponse(**r) for r in (result.data or [])]

    def _load_live_event(self, event_id: str) -> Dict[str, Any]:
        event = get_event_row(event_id, self.supabase)
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")
        if event.get("is_cancelled"):
            raise HTTPException(status_code=410, detail="This event has been cancelled")
        return event

    def _fetch_menu(self, event_id: str) -> Dict[str, List[Dict[str, Any]]]:
        sections = self.supabase.table("menu_sections")\
            .select("*")\
            .eq("event_id", event_id)\
            .execute().data or []
        items = []
        if sections:
            items = self.supabase.table("menu_items")\
                .select("*")\
                .in_("section_id", [s["id"] for s in sections])\
                .execute().data or []
        return {"sections": sections, "items": items}

    def _fetch_rows(self, table: str, event_id: str) -> List[Dict[str, Any]]:
        return self.supabase.table(table).select("*").eq("event_id", event_id).execute().data or []

    def _fetch_host_name(self, host_user_id: str) -> Optional[str]:
        result = self.supabase.table("profiles")\
            .select("name")\
            .eq("id", host_user_id)\
            .maybe_single()\
            .execute()
        return result.data.get("name") if result and result.data else None

    def fetch_children(self, event: Dict[str, Any]) -> Dict[str, Any]:
        """Read the event's children concurrently and wait for all of them."""
        event_id = event["id"]
        with ThreadPoolExecutor(max_workers=settings.aggregate_fetch_workers) as pool:
            menu = pool.submit(self._fetch_menu, event_id)
            bring_items = pool.submit(self._fetch_rows, "bring_items", event_id)
            schedule_blocks = pool.submit(self._fetch_rows, "schedule_blocks", event_id)
            guests = pool.submit(self._fetch_rows, "event_guests", event_id)
            co_hosts = pool.submit(get_co_host_ids, event_id, self.supabase)
            host_name = pool.submit(self._fetch_host_name, event["host_user_id"])
            return {
                "sections": menu.result()["sections"],
                "items": menu.result()["items"],
                "bring_items": bring_items.result(),
                "schedule_blocks": schedule_blocks.result(),
                "guests": guests.result(),
                "co_host_ids": co_hosts.result(),
                "host_name": host_name.result(),
            }

    def get_event_full(self, event_id: str, user_data: dict) -> EventFullResponse:
        """Aggregate view for a signed-in host, co-host or guest."""
        event = self._load_live_event(event_id)
        children = self.fetch_children(event)

        user_id = user_data["id"]
        current_guest = None
        if event["host_user_id"] != user_id and user_id not in children["co_host_ids"]:
            current_guest = find_guest_for_user(event_id, user_data, self.supabase)
            if not current_guest:
                raise HTTPException(status_code=404, detail="Event not found")
        return assemble_event_view(
            event,
            current_guest_id=current_guest["id"] if current_guest else None,
            **children,
        )

    def get_event_full_for_guest(self, event_id: str, guest_id: str) -> EventFullResponse:
        """Aggregate view for a guest without a session; the guest id must belong to the event."""
        event = self._load_live_event(event_id)
        guest = self.supabase.table("event_guests")\
            .select("id")\
            .eq("id", guest_id)\
            .eq("event_id", event_id)\
            .maybe_single()\
            .execute()
        if not guest or not guest.data:
            raise HTTPException(status_code=404, detail="Event not found")
        return assemble_event_view(event, current_guest_id=guest_id, **self.fetch_children(event))

    def add_co_host(self, event_id: str, email: str, user_data: dict) -> CoHostResponse:
        check_event_host(event_id, user_data, self.supabase)
        profile = self.supabase.table("profiles")\
            .select("id")\
            .eq("email", email.strip().lower())\
            .maybe_single()\
            .execute()
        if not profile or not profile.data:
            raise HTTPException(status_code=404, detail="No account found with that email.")
        co_host_id = profile.data["id"]
        if co_host_id == user_data["id"]:
            raise HTTPException(status_code=400, detail="You are already the host of this event.")
        if co_host_id in get_co_host_ids(event_id, self.supabase):
            raise HTTPException(status_code=409, detail="That person is already a co-host.")
        self.supabase.table("event_co_hosts").insert({
            "event_id": event_id,
            "user_id": co_host_id,
        }).execute()
        logger.info(f"User {co_host_id} added as co-host of event {event_id}")
        return CoHostResponse(event_id=event_id, user_id=co_host_id)

    def get_invite_link(self, event_id: str, user_data: dict) -> InviteLinkResponse:
        event = check_event_manager(event_id, user_data, self.supabase)
        return InviteLinkResponse(
            invite_url=build_invite_url(event_id, event["invite_token"]),
            invite_token=event["invite_token"],
        )

from typing import Any, Dict, Optional
import logging

from fastapi import HTTPException
from supabase import Client

from app.core.analytics import track
from app.core.dependencies import check_event_manager, get_event_row
from app.modules.events.aggregate import group_menu
from app.modules.events.links import tokens_match
from app.modules.events.schemas import BringItemResponse, EventResponse, GuestResponse
from app.modules.events.service import EventService
from app.modules.invites.schemas import (
    HostGuestAdd, HostGuestResponse, InvitePreviewResponse, RsvpRequest, RsvpResponse, normalize_contact
)

logger = logging.getLogger(__name__)

INVITE_INVALID = "Invite invalid or expired"
GUEST_ALREADY_INVITED = "That guest is already invited."


def invite_error_message(error: Exception) -> str:
    """Map a backend error on a guest write to a message fit for the guest."""
    lower = str(error).lower()
    if "duplicate" in lower or "already exists" in lower:
        return GUEST_ALREADY_INVITED
    if "invalid" in lower and "phone" in lower:
        return "Please enter a valid phone number."
    if "permission" in lower or "not authenticated" in lower:
        return "You do not have permission to send this invite."
    return "Unable to send the invitation right now. Please try again."


class InviteService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _check_token(self, event_id: str, token: Optional[str]) -> Dict[str, Any]:
        """The event when ``token`` opens it.

        Wrong token, unknown event and cancelled event are indistinguishable.
        """
        event = get_event_row(event_id, self.supabase)
        if not event or event.get("is_cancelled") or not tokens_match(event.get("invite_token"), token):
            raise HTTPException(status_code=404, detail=INVITE_INVALID)
        return event

    def resolve(self, event_id: str, token: Optional[str], include_guests: bool = False) -> InvitePreviewResponse:
        event = self._check_token(event_id, token)
        children = EventService(self.supabase).fetch_children(event)
        guests = children["guests"]
        return InvitePreviewResponse(
            event=EventResponse(**event),
            host_name=children["host_name"],
            guest_count=len(guests),
            menu_sections=group_menu(children["sections"], children["items"]),
            bring_items=[
                BringItemResponse(**i)
                for i in sorted(children["bring_items"], key=lambda r: r.get("sort_order") or 0)
            ],
            guests=[GuestResponse(**g) for g in guests] if include_guests else None,
        )

    def _find_guest(self, event_id: str, contact: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("event_guests")\
            .select("*")\
            .eq("event_id", event_id)\
            .eq("guest_phone_or_email", contact)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def record_rsvp(self, event_id: str, rsvp: RsvpRequest, user_data: Optional[dict] = None) -> RsvpResponse:
        """Insert the guest, or update the row already holding this contact on the event."""
        self._check_token(event_id, rsvp.token)
        contact = normalize_contact(rsvp.guest_phone_or_email)
        values = {
            "guest_name": rsvp.guest_name,
            "rsvp_status": rsvp.rsvp_status,
            "wants_reminders": rsvp.wants_reminders,
        }
        if user_data:
            values["user_id"] = user_data["id"]

        existing = self._find_guest(event_id, contact)
        if existing and existing.get("user_id") and existing["user_id"] != (user_data or {}).get("id"):
            # A row linked to an account only changes through that account
            logger.warning(f"RSVP for event {event_id} targeted a guest row linked to another account")
            raise HTTPException(status_code=404, detail=INVITE_INVALID)

        try:
            if existing:
                result = self.supabase.table("event_guests")\
                    .update(values)\
                    .eq("id", existing["id"])\
                    .execute()
            else:
                result = self.supabase.table("event_guests").insert({
                    **values,
                    "event_id": event_id,
                    "guest_phone_or_email": contact,
                }).execute()
        except Exception as e:
            logger.error(f"RSVP for event {event_id} failed: {e}")
            raise HTTPException(status_code=400, detail=invite_error_message(e))

        if not result.data:
            raise HTTPException(status_code=500, detail="Unable to save your RSVP right now. Please try again.")
        guest_id = result.data[0]["id"]
        track("rsvp_submitted", {"event_id": event_id, "rsvp_status": rsvp.rsvp_status, "updated": bool(existing)})
        logger.info(f"RSVP {rsvp.rsvp_status} recorded for guest {guest_id} on event {event_id}")
        return RsvpResponse(guest_id=guest_id)

    def add_guest_by_host(self, event_id: str, guest: HostGuestAdd, user_data: dict) -> HostGuestResponse:
        check_event_manager(event_id, user_data, self.supabase)
        contact = guest.contact
        if self._find_guest(event_id, contact):
            raise HTTPException(status_code=409, detail=GUEST_ALREADY_INVITED)
        try:
            result = self.supabase.table("event_guests").insert({
                "event_id": event_id,
                "guest_name": (guest.guest_name or "").strip() or contact,
                "guest_phone_or_email": contact,
                "rsvp_status": "maybe",
                "wants_reminders": True,
            }).execute()
        except Exception as e:
            message = invite_error_message(e)
            status_code = 409 if message == GUEST_ALREADY_INVITED else 400
            raise HTTPException(status_code=status_code, detail=message)
        if not result.data:
            raise HTTPException(status_code=500, detail="Unable to send the invitation right now. Please try again.")
        track("guest_added", {"event_id": event_id, "channel": "email" if guest.email else "phone"})
        return HostGuestResponse(guest_id=result.data[0]["id"])

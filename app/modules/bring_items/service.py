from typing import Any, Dict, Optional
import logging

from fastapi import HTTPException
from supabase import Client

from app.core.analytics import track
from app.core.dependencies import check_event_host, get_event_row
from app.modules.bring_items.schemas import ClaimRequest, ClaimResult
from app.modules.events.schemas import BringItemResponse

logger = logging.getLogger(__name__)


class BringItemService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_item(self, item_id: str) -> Dict[str, Any]:
        result = self.supabase.table("bring_items")\
            .select("*")\
            .eq("id", item_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Item not found")
        return result.data

    def get_claiming_guest(self, item: Dict[str, Any], guest_id: str, user_data: Optional[dict] = None) -> Dict[str, Any]:
        """The guest row claiming ``item``; it must belong to the item's event."""
        result = self.supabase.table("event_guests")\
            .select("id, event_id, user_id, guest_name")\
            .eq("id", guest_id)\
            .eq("event_id", item["event_id"])\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=403, detail="Guest is not part of this event")
        guest = result.data[0]
        # A guest row linked to an account can only be used by that account
        if guest.get("user_id") and user_data and guest["user_id"] != user_data["id"]:
            raise HTTPException(status_code=403, detail="Forbidden")
        return guest

    def claim(self, item_id: str, claim: ClaimRequest, user_data: Optional[dict] = None) -> ClaimResult:
        """Claim an item for a guest.

        The checks before the update only produce friendlier errors. The
        conditional update is what guarantees a single winner: when it matches
        no row another guest got there first.
        """
        item = self.get_item(item_id)
        self.get_claiming_guest(item, claim.guest_id, user_data)
        event = get_event_row(item["event_id"], self.supabase, "id, is_cancelled")
        if not event or event.get("is_cancelled"):
            raise HTTPException(status_code=410, detail="This event has been cancelled")
        if not item.get("is_claimable", True):
            return ClaimResult(claimed=False, reason="not_claimable", item=BringItemResponse(**item))
        if item.get("status") != "unclaimed":
            return ClaimResult(claimed=False, reason="already_claimed", item=BringItemResponse(**item))

        result = self.supabase.table("bring_items")\
            .update({
                "status": "claimed",
                "claimed_by_guest_id": claim.guest_id,
                "claimed_quantity": claim.claimed_quantity or item.get("quantity") or "1",
            })\
            .eq("id", item_id)\
            .eq("status", "unclaimed")\
            .eq("is_claimable", True)\
            .execute()
        if not result.data:
            logger.info(f"Claim on item {item_id} by guest {claim.guest_id} lost the race")
            return ClaimResult(claimed=False, reason="already_claimed")

        updated = result.data[0]
        track("bring_claimed", {"event_id": item["event_id"], "category": item.get("category")})
        logger.info(f"Item {item_id} claimed by guest {claim.guest_id}")
        return ClaimResult(claimed=True, item=BringItemResponse(**updated))

    def mark_provided(self, item_id: str, user_data: dict) -> BringItemResponse:
        """Host confirms a claimed item arrived."""
        item = self.get_item(item_id)
        check_event_host(item["event_id"], user_data, self.supabase)
        if item.get("status") == "provided":
            return BringItemResponse(**item)

        result = self.supabase.table("bring_items")\
            .update({"status": "provided"})\
            .eq("id", item_id)\
            .eq("status", "claimed")\
            .execute()
        if not result.data:
            raise HTTPException(status_code=409, detail="Item must be claimed before it can be marked provided")
        return BringItemResponse(**result.data[0])

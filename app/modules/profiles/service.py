from supabase import Client
from app.core.analytics import track
from app.core.clock import utcnow
from app.modules.profiles.schemas import ProfileResponse, ProfileStats, ProfileUpdate
from typing import Any, Dict, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _get_profile_row(self, user_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("profiles")\
            .select("*")\
            .eq("id", user_id)\
            .maybe_single()\
            .execute()
        return result.data if result else None

    def get_stats(self, user_id: str) -> ProfileStats:
        """Events hosted, events attended as going, and items claimed through any of the user's guest rows."""
        hosted = self.supabase.table("events")\
            .select("id", count="exact")\
            .eq("host_user_id", user_id)\
            .execute()
        guest_rows = self.supabase.table("event_guests")\
            .select("id, rsvp_status")\
            .eq("user_id", user_id)\
            .execute().data or []
        attended = sum(1 for g in guest_rows if g.get("rsvp_status") == "going")

        claimed = 0
        if guest_rows:
            claimed_result = self.supabase.table("bring_items")\
                .select("id", count="exact")\
                .in_("claimed_by_guest_id", [g["id"] for g in guest_rows])\
                .execute()
            claimed = claimed_result.count or 0
        return ProfileStats(hosted=hosted.count or 0, attended=attended, claimed=claimed)

    def get_profile(self, user_data: dict) -> ProfileResponse:
        """Get the signed-in user's profile with stats"""
        user_id = user_data["id"]
        profile = self._get_profile_row(user_id) or {}
        return ProfileResponse(
            id=user_id,
            name=profile.get("name") or (user_data.get("user_metadata") or {}).get("name"),
            email=user_data.get("email") or profile.get("email"),
            phone_number=profile.get("phone"),
            avatar_url=profile.get("avatar_url"),
            stats=self.get_stats(user_id),
        )

    def update_profile(self, user_data: dict, profile_data: ProfileUpdate) -> ProfileResponse:
        """Update profile fields, creating the row on first save"""
        user_id = user_data["id"]
        update_data = profile_data.model_dump(exclude_unset=True)
        try:
            if update_data:
                update_data["updated_at"] = utcnow().isoformat()
                if self._get_profile_row(user_id):
                    self.supabase.table("profiles").update(update_data).eq("id", user_id).execute()
                else:
                    self.supabase.table("profiles").insert({
                        **update_data,
                        "id": user_id,
                        "email": (user_data.get("email") or "").lower() or None,
                    }).execute()
        except Exception as e:
            logger.error(f"Failed to update profile {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        track("profile_updated", {"fields": ",".join(sorted(k for k in update_data if k != "updated_at"))})
        return self.get_profile(user_data)

    def set_push_token(self, user_data: dict, push_token: Optional[str]) -> None:
        """Register (or clear with None) the device push token"""
        user_id = user_data["id"]
        values = {"push_token": push_token, "updated_at": utcnow().isoformat()}
        if self._get_profile_row(user_id):
            self.supabase.table("profiles").update(values).eq("id", user_id).execute()
        else:
            self.supabase.table("profiles").insert({
                **values,
                "id": user_id,
                "email": (user_data.get("email") or "").lower() or None,
            }).execute()
        logger.info(f"Push token {'registered' if push_token else 'cleared'} for user {user_id}")

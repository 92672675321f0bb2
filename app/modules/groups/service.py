from supabase import Client
from app.core.analytics import track
from app.core.clock import utcnow
from app.modules.groups.schemas import (
    GroupCreate, GroupUpdate, GroupResponse, GroupWithMembersResponse,
    GroupMemberAdd, GroupMemberResponse
)
from typing import Any, Dict, List
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class GroupService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def fetch_groups(self, user_id: str) -> List[GroupWithMembersResponse]:
        """Every group of the user with its members, newest first.

        Contact lists are a convenience, so a backend error yields an empty list.
        """
        try:
            groups = self.supabase.table("guest_groups")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .execute().data or []
            if not groups:
                return []
            members = self.supabase.table("guest_group_members")\
                .select("*")\
                .in_("group_id", [g["id"] for g in groups])\
                .order("sort_order")\
                .execute().data or []
        except Exception as e:
            logger.warning(f"Failed to fetch groups for user {user_id}: {e}")
            return []

        by_group: Dict[str, List[Dict[str, Any]]] = {}
        for member in members:
            by_group.setdefault(member["group_id"], []).append(member)
        return [
            GroupWithMembersResponse(**group, members=by_group.get(group["id"], []))
            for group in groups
        ]

    def get_owned_group(self, group_id: str, user_id: str) -> Dict[str, Any]:
        """Group row when ``user_id`` owns it; 404 otherwise."""
        result = self.supabase.table("guest_groups")\
            .select("*")\
            .eq("id", group_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data or result.data.get("user_id") != user_id:
            raise HTTPException(status_code=404, detail="Group not found")
        return result.data

    def get_group(self, group_id: str, user_id: str) -> GroupWithMembersResponse:
        group = self.get_owned_group(group_id, user_id)
        members = self.supabase.table("guest_group_members")\
            .select("*")\
            .eq("group_id", group_id)\
            .order("sort_order")\
            .execute().data or []
        return GroupWithMembersResponse(**group, members=members)

    def create_group(self, group_data: GroupCreate, user_id: str) -> GroupResponse:
        """Create a new group"""
        try:
            result = self.supabase.table("guest_groups").insert({
                "user_id": user_id,
                "name": group_data.name.strip(),
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create group")
            track("group_created")
            return GroupResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def rename_group(self, group_id: str, group_data: GroupUpdate, user_id: str) -> GroupResponse:
        self.get_owned_group(group_id, user_id)
        result = self.supabase.table("guest_groups")\
            .update({"name": group_data.name.strip(), "updated_at": utcnow().isoformat()})\
            .eq("id", group_id)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Group not found")
        return GroupResponse(**result.data[0])

    def delete_group(self, group_id: str, user_id: str) -> None:
        """Delete a group; members go with it"""
        self.get_owned_group(group_id, user_id)
        self.supabase.table("guest_group_members").delete().eq("group_id", group_id).execute()
        self.supabase.table("guest_groups").delete().eq("id", group_id).execute()
        track("group_deleted")

    def add_member(self, group_id: str, member_data: GroupMemberAdd, user_id: str) -> GroupMemberResponse:
        self.get_owned_group(group_id, user_id)
        existing = self.supabase.table("guest_group_members")\
            .select("id, sort_order")\
            .eq("group_id", group_id)\
            .execute().data or []
        if self._members_with_contact(group_id, member_data.contact_value):
            raise HTTPException(status_code=409, detail="That contact is already in this group.")
        result = self.supabase.table("guest_group_members").insert({
            "group_id": group_id,
            "contact_type": member_data.contact_type,
            "contact_value": member_data.contact_value,
            "display_name": member_data.display_name,
            "sort_order": max((m.get("sort_order") or 0 for m in existing), default=-1) + 1,
        }).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to add member")
        return GroupMemberResponse(**result.data[0])

    def _members_with_contact(self, group_id: str, contact_value: str) -> List[Dict[str, Any]]:
        return self.supabase.table("guest_group_members")\
            .select("id, contact_value")\
            .eq("group_id", group_id)\
            .eq("contact_value", contact_value)\
            .execute().data or []

    def remove_member(self, group_id: str, member_id: str, user_id: str) -> None:
        self.get_owned_group(group_id, user_id)
        result = self.supabase.table("guest_group_members")\
            .delete()\
            .eq("id", member_id)\
            .eq("group_id", group_id)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Member not found")

from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.groups.schemas import (
    GroupCreate, GroupUpdate, GroupResponse, GroupWithMembersResponse,
    GroupMemberAdd, GroupMemberResponse
)
from app.modules.groups.service import GroupService
from app.core.dependencies import get_current_user
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/groups", tags=["groups"])


def get_group_service(supabase: Client = Depends(get_supabase)) -> GroupService:
    return GroupService(supabase)


@router.get("", response_model=List[GroupWithMembersResponse])
async def list_groups(
    user_data: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """List the user's guest groups with their members"""
    return service.fetch_groups(user_data["id"])


@router.post("", response_model=GroupResponse, status_code=201)
async def create_group(
    group_data: GroupCreate,
    user_data: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    return service.create_group(group_data, user_data["id"])


@router.get("/{group_id}", response_model=GroupWithMembersResponse)
async def get_group(
    group_id: str,
    user_data: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    return service.get_group(group_id, user_data["id"])


@router.put("/{group_id}", response_model=GroupResponse)
async def rename_group(
    group_id: str,
    group_data: GroupUpdate,
    user_data: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    return service.rename_group(group_id, group_data, user_data["id"])


@router.delete("/{group_id}", status_code=204)
async def delete_group(
    group_id: str,
    user_data: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Delete group and its members"""
    service.delete_group(group_id, user_data["id"])


@router.post("/{group_id}/members", response_model=GroupMemberResponse, status_code=201)
async def add_group_member(
    group_id: str,
    member_data: GroupMemberAdd,
    user_data: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    return service.add_member(group_id, member_data, user_data["id"])


@router.delete("/{group_id}/members/{member_id}", status_code=204)
async def remove_group_member(
    group_id: str,
    member_id: str,
    user_data: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    service.remove_member(group_id, member_id, user_data["id"])

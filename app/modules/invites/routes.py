from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from app.config import settings
from app.core.dependencies import get_current_user, get_optional_user
from app.core.rate_limit import limiter
from app.database.supabase_client import get_supabase
from app.modules.invites.schemas import (
    HostGuestAdd, HostGuestResponse, InvitePreviewResponse, RsvpRequest, RsvpResponse
)
from app.modules.invites.service import InviteService
from app.modules.notifications.host_notifier import HostNotifier
from app.modules.notifications.push import PushClient, get_push_client
from app.core.analytics import track
from supabase import Client
from typing import Dict, Optional

router = APIRouter(tags=["invites"])


def get_invite_service(supabase: Client = Depends(get_supabase)) -> InviteService:
    return InviteService(supabase)


def get_host_notifier(
    supabase: Client = Depends(get_supabase),
    push_client: PushClient = Depends(get_push_client)
) -> HostNotifier:
    return HostNotifier(supabase, push_client)


@router.get("/invites/{event_id}", response_model=InvitePreviewResponse)
@limiter.limit(settings.invite_rate_limit)
async def get_invite(
    request: Request,
    event_id: str,
    token: str = Query(default=""),
    service: InviteService = Depends(get_invite_service)
):
    """Event preview for an invite link"""
    preview = service.resolve(event_id, token)
    track("invite_opened", {"event_id": event_id})
    return preview


@router.get("/invites/{event_id}/full", response_model=InvitePreviewResponse)
@limiter.limit(settings.invite_rate_limit)
async def get_invite_full(
    request: Request,
    event_id: str,
    token: str = Query(default=""),
    service: InviteService = Depends(get_invite_service)
):
    """Invite preview including the guest list"""
    return service.resolve(event_id, token, include_guests=True)


@router.post("/invites/{event_id}/rsvp", response_model=RsvpResponse)
@limiter.limit(settings.invite_rate_limit)
async def rsvp(
    request: Request,
    event_id: str,
    rsvp_data: RsvpRequest,
    background_tasks: BackgroundTasks,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: InviteService = Depends(get_invite_service),
    notifier: HostNotifier = Depends(get_host_notifier)
):
    """Record an RSVP through an invite link"""
    response = service.record_rsvp(event_id, rsvp_data, user_data)
    background_tasks.add_task(
        notifier.send_best_effort, event_id, "rsvp_change", guest_name=rsvp_data.guest_name
    )
    return response


@router.post("/events/{event_id}/guests", response_model=HostGuestResponse, status_code=201)
async def add_guest(
    event_id: str,
    guest: HostGuestAdd,
    user_data: Dict = Depends(get_current_user),
    service: InviteService = Depends(get_invite_service)
):
    """Host invites a guest by email or phone"""
    return service.add_guest_by_host(event_id, guest, user_data)

from fastapi import APIRouter, Depends, Query
from app.database.supabase_client import get_supabase
from app.modules.events.schemas import (
    CoHostAdd, CoHostResponse, EventCreate, EventCreatedResponse, EventFullResponse, EventResponse,
    EventsListResponse, EventUpdate, HostEventResponse, InviteLinkResponse
)
from app.modules.events.service import EventService
from app.core.dependencies import get_current_user
from supabase import Client
from typing import Dict, List

router = APIRouter(prefix="/events", tags=["events"])


def get_event_service(supabase: Client = Depends(get_supabase)) -> EventService:
    return EventService(supabase)


@router.post("", response_model=EventCreatedResponse, status_code=201)
async def create_event(
    event_data: EventCreate,
    user_data: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    """Create an event with its menu, bring list and schedule"""
    return service.create_event(event_data, user_data["id"])


@router.get("", response_model=EventsListResponse)
async def list_events(
    user_data: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    """Upcoming and past events the user hosts or attends"""
    return service.list_events(user_data["id"])


@router.get("/public", response_model=List[EventResponse])
async def list_public_events(service: EventService = Depends(get_event_service)):
    """Public upcoming events"""
    return service.list_public_events()


@router.get("/{event_id}", response_model=EventFullResponse)
async def get_event(
    event_id: str,
    user_data: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    """Full event view for its host, co-hosts and signed-in guests"""
    return service.get_event_full(event_id, user_data)


@router.get("/{event_id}/guest-view", response_model=EventFullResponse)
async def get_event_for_guest(
    event_id: str,
    guest_id: str = Query(..., min_length=1),
    service: EventService = Depends(get_event_service)
):
    """Full event view for a guest without an account"""
    return service.get_event_full_for_guest(event_id, guest_id)


@router.put("/{event_id}", response_model=HostEventResponse)
async def update_event(
    event_id: str,
    event_data: EventUpdate,
    user_data: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    return service.update_event(event_id, event_data, user_data)


@router.post("/{event_id}/cancel", response_model=HostEventResponse)
async def cancel_event(
    event_id: str,
    user_data: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    return service.cancel_event(event_id, user_data)


@router.post("/{event_id}/co-hosts", response_model=CoHostResponse, status_code=201)
async def add_co_host(
    event_id: str,
    co_host: CoHostAdd,
    user_data: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    return service.add_co_host(event_id, co_host.email, user_data)


@router.get("/{event_id}/invite-link", response_model=InviteLinkResponse)
async def get_invite_link(
    event_id: str,
    user_data: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    return service.get_invite_link(event_id, user_data)

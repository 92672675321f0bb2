import secrets
import requests
from fastapi import APIRouter, Depends, Header, HTTPException
from app.config import settings
from app.database.supabase_client import get_supabase
from app.modules.notifications.bell import BellService
from app.modules.notifications.delivery import InviteDeliveryService
from app.modules.notifications.host_notifier import HostNotifier
from app.modules.notifications.push import PushClient, get_http_session, get_push_client
from app.modules.notifications.schemas import (
    BellRequest, BellResponse, DeliveryResponse, InviteEmailRequest, InvitePushRequest,
    InviteSmsRequest, NotifyHostRequest, SweepResponse
)
from app.modules.notifications.sweep import NotificationSweeper
from app.core.dependencies import get_current_user
from supabase import Client
from typing import Dict, Optional

router = APIRouter(tags=["notifications"])


def get_bell_service(
    supabase: Client = Depends(get_supabase),
    push_client: PushClient = Depends(get_push_client)
) -> BellService:
    return BellService(supabase, push_client)


def get_delivery_service(
    supabase: Client = Depends(get_supabase),
    push_client: PushClient = Depends(get_push_client),
    session: requests.Session = Depends(get_http_session)
) -> InviteDeliveryService:
    return InviteDeliveryService(supabase, push_client, session)


def get_host_notifier(
    supabase: Client = Depends(get_supabase),
    push_client: PushClient = Depends(get_push_client)
) -> HostNotifier:
    return HostNotifier(supabase, push_client)


def get_sweeper(
    supabase: Client = Depends(get_supabase),
    push_client: PushClient = Depends(get_push_client)
) -> NotificationSweeper:
    return NotificationSweeper(supabase, push_client)


def verify_cron_secret(x_cron_secret: Optional[str] = Header(default=None)) -> None:
    if not settings.cron_secret:
        raise HTTPException(status_code=503, detail="Sweep trigger not configured")
    if not x_cron_secret or not secrets.compare_digest(x_cron_secret, settings.cron_secret):
        raise HTTPException(status_code=401, detail="Unauthorized")


@router.post("/events/{event_id}/bell", response_model=BellResponse)
async def ring_bell(
    event_id: str,
    bell: Optional[BellRequest] = None,
    user_data: Dict = Depends(get_current_user),
    service: BellService = Depends(get_bell_service)
):
    """Ring the dinner bell for everyone who is going"""
    return service.ring(event_id, user_data, bell.message if bell else None)


@router.post("/events/{event_id}/invites/email", response_model=DeliveryResponse)
async def send_invite_email(
    event_id: str,
    invite: InviteEmailRequest,
    user_data: Dict = Depends(get_current_user),
    service: InviteDeliveryService = Depends(get_delivery_service)
):
    return service.send_email(event_id, user_data, invite.email, invite.guest_name)


@router.post("/events/{event_id}/invites/sms", response_model=DeliveryResponse)
async def send_invite_sms(
    event_id: str,
    invite: InviteSmsRequest,
    user_data: Dict = Depends(get_current_user),
    service: InviteDeliveryService = Depends(get_delivery_service)
):
    return service.send_sms(event_id, user_data, invite.phone, invite.guest_name)


@router.post("/events/{event_id}/invites/push", response_model=DeliveryResponse)
async def send_invite_push(
    event_id: str,
    invite: InvitePushRequest,
    user_data: Dict = Depends(get_current_user),
    service: InviteDeliveryService = Depends(get_delivery_service)
):
    return service.send_push(event_id, user_data, invite.email, invite.phone)


@router.post("/notifications/notify-host", response_model=DeliveryResponse)
async def notify_host(
    request: NotifyHostRequest,
    user_data: Dict = Depends(get_current_user),
    notifier: HostNotifier = Depends(get_host_notifier)
):
    """Push an RSVP or bring-list update to the event's host"""
    sent = notifier.send_for_caller(
        request.event_id,
        request.type,
        user_data,
        message=request.message,
        guest_name=request.guest_name,
        item_name=request.item_name,
    )
    return DeliveryResponse(sent=sent)


@router.post("/notifications/sweep", response_model=SweepResponse, dependencies=[Depends(verify_cron_secret)])
async def sweep_notifications(sweeper: NotificationSweeper = Depends(get_sweeper)):
    """Deliver due reminders and bells; called by an external scheduler"""
    return sweeper.run_once()

import logging
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from supabase import Client

from app.core.dependencies import get_event_row
from app.database.supabase_client import get_supabase
from app.modules.events.links import tokens_match
from app.modules.realtime.manager import RealtimeManager, get_realtime_manager
from typing import Optional

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


def can_follow_event(event_id: str, supabase: Client, guest_id: Optional[str], token: Optional[str]) -> bool:
    """A guest id on the event or the event's invite token opens the feed."""
    event = get_event_row(event_id, supabase, "id, invite_token, is_cancelled")
    if not event or event.get("is_cancelled"):
        return False
    if token and tokens_match(event.get("invite_token"), token):
        return True
    if guest_id:
        guest = supabase.table("event_guests")\
            .select("id")\
            .eq("id", guest_id)\
            .eq("event_id", event_id)\
            .limit(1)\
            .execute()
        return bool(guest.data)
    return False


@router.websocket("/ws/events/{event_id}/bring-items")
async def bring_items_feed(
    websocket: WebSocket,
    event_id: str,
    guest_id: Optional[str] = None,
    token: Optional[str] = None,
    supabase: Client = Depends(get_supabase),
    manager: RealtimeManager = Depends(get_realtime_manager)
):
    """Pushes each changed bring item of the event as it happens"""
    if not can_follow_event(event_id, supabase, guest_id, token):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await manager.connect(websocket, event_id)
    try:
        while True:
            # Clients only listen; incoming frames are ignored
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(websocket, event_id)

from fastapi import APIRouter, BackgroundTasks, Depends
from app.database.supabase_client import get_supabase
from app.modules.bring_items.schemas import ClaimRequest, ClaimResult
from app.modules.bring_items.service import BringItemService
from app.modules.events.schemas import BringItemResponse
from app.modules.notifications.host_notifier import HostNotifier
from app.modules.notifications.push import PushClient, get_push_client
from app.modules.realtime.manager import RealtimeManager, get_realtime_manager
from app.core.dependencies import get_current_user, get_optional_user
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/bring-items", tags=["bring-items"])


def get_bring_item_service(supabase: Client = Depends(get_supabase)) -> BringItemService:
    return BringItemService(supabase)


def get_host_notifier(
    supabase: Client = Depends(get_supabase),
    push_client: PushClient = Depends(get_push_client)
) -> HostNotifier:
    return HostNotifier(supabase, push_client)


@router.post("/{item_id}/claim", response_model=ClaimResult)
async def claim_item(
    item_id: str,
    claim: ClaimRequest,
    background_tasks: BackgroundTasks,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: BringItemService = Depends(get_bring_item_service),
    notifier: HostNotifier = Depends(get_host_notifier),
    realtime: RealtimeManager = Depends(get_realtime_manager)
):
    """Claim a bring item for a guest; a lost race returns claimed=false"""
    result = service.claim(item_id, claim, user_data)
    if result.claimed:
        item = result.item
        await realtime.broadcast_bring_item(item.model_dump())
        guest = service.get_claiming_guest(item.model_dump(), claim.guest_id)
        background_tasks.add_task(
            notifier.send_best_effort,
            item.event_id,
            "bring_claimed",
            message=claim.message,
            guest_name=guest.get("guest_name"),
            item_name=item.name,
        )
    return result


@router.post("/{item_id}/provided", response_model=BringItemResponse)
async def mark_item_provided(
    item_id: str,
    user_data: Dict = Depends(get_current_user),
    service: BringItemService = Depends(get_bring_item_service),
    realtime: RealtimeManager = Depends(get_realtime_manager)
):
    """Host marks a claimed item as provided"""
    item = service.mark_provided(item_id, user_data)
    await realtime.broadcast_bring_item(item.model_dump())
    return item

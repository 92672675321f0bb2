"""
Core dependencies for route protection and event access checks
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import SupabaseClients, get_supabase_clients
from app.modules.auth.service import AuthService
from supabase import Client
from typing import List, Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def get_auth_service(clients: SupabaseClients = Depends(get_supabase_clients)) -> AuthService:
    return AuthService(clients.anon)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(credentials.credentials)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(optional_security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[dict]:
    """Current user when a bearer token is sent; None for session-less guests."""
    if credentials is None:
        return None
    return auth_service.get_current_user(credentials.credentials)


def get_event_row(event_id: str, supabase: Client, columns: str = "*") -> Optional[Dict[str, Any]]:
    result = supabase.table("events")\
        .select(columns)\
        .eq("id", event_id)\
        .maybe_single()\
        .execute()
    return result.data if result else None


def get_co_host_ids(event_id: str, supabase: Client) -> List[str]:
    result = supabase.table("event_co_hosts")\
        .select("user_id")\
        .eq("event_id", event_id)\
        .execute()
    return [r["user_id"] for r in (result.data or [])]


def check_event_host(event_id: str, user_data: dict, supabase: Client) -> Dict[str, Any]:
    """Return the event row when the caller is its host.

    Missing events and non-hosts get the same 403 so ids can't be probed.
    """
    event = get_event_row(event_id, supabase)
    if not event or event.get("host_user_id") != user_data["id"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden"
        )
    return event


def check_event_manager(event_id: str, user_data: dict, supabase: Client) -> Dict[str, Any]:
    """Host or co-host of the event."""
    event = get_event_row(event_id, supabase)
    if event:
        if event.get("host_user_id") == user_data["id"]:
            return event
        if user_data["id"] in get_co_host_ids(event_id, supabase):
            return event
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Forbidden"
    )


def find_guest_for_user(event_id: str, user_data: dict, supabase: Client) -> Optional[Dict[str, Any]]:
    """Guest row linked to the user by id, falling back to a contact match on e-mail."""
    result = supabase.table("event_guests")\
        .select("*")\
        .eq("event_id", event_id)\
        .eq("user_id", user_data["id"])\
        .limit(1)\
        .execute()
    if result.data:
        return result.data[0]
    email = (user_data.get("email") or "").strip().lower()
    if not email:
        return None
    result = supabase.table("event_guests")\
        .select("*")\
        .eq("event_id", event_id)\
        .eq("guest_phone_or_email", email)\
        .limit(1)\
        .execute()
    return result.data[0] if result.data else None


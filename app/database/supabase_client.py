from typing import Any, Optional
import logging

from fastapi import HTTPException
from starlette.requests import HTTPConnection
from supabase import Client, ClientOptions, create_client

from app.config import Settings

logger = logging.getLogger(__name__)


def create_supabase_client(url: str, key: str, storage: Optional[Any] = None) -> Client:
    """Build a Supabase client.

    ``storage`` is the auth session store (any object implementing the
    supabase auth ``SyncSupportedStorage`` interface). Server-side clients
    don't need to persist sessions, so without one the session lives in
    memory for the lifetime of the client.
    """
    if storage is not None:
        options = ClientOptions(storage=storage, persist_session=True, auto_refresh_token=True)
    else:
        options = ClientOptions(persist_session=False, auto_refresh_token=False)
    return create_client(url, key, options=options)


class SupabaseClients:
    """Clients built once at startup and handed out through dependencies."""

    def __init__(self, anon: Client, service: Optional[Client] = None):
        self.anon = anon
        self._service = service

    @property
    def service(self) -> Client:
        """Client with service_role key; bypasses RLS. Falls back to the anon client."""
        return self._service or self.anon

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseClients":
        anon = create_supabase_client(settings.supabase_url, settings.supabase_key)
        service = None
        if settings.supabase_service_role_key:
            service = create_supabase_client(settings.supabase_url, settings.supabase_service_role_key)
        return cls(anon, service)


def get_supabase_clients(connection: HTTPConnection) -> SupabaseClients:
    clients = getattr(connection.app.state, "supabase", None)
    if clients is None:
        logger.error("Supabase client requested but backend is not configured")
        raise HTTPException(status_code=503, detail="Backend not configured")
    return clients


def get_supabase(connection: HTTPConnection) -> Client:
    """Server-side client used by services (service role when configured)."""
    return get_supabase_clients(connection).service

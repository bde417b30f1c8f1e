"""
Hosted store (Supabase) client management.

One service-role async client is shared by the whole process. Password sign-in
uses a short-lived anon-key client: signing in switches a client's PostgREST
headers to the user's token, which must never happen to the shared client.
"""
import asyncio
from typing import Optional

from supabase import AsyncClient, AsyncClientOptions, acreate_client

from core.config import config
from core.observability import get_logger

logger = get_logger(__name__)

_client: Optional[AsyncClient] = None
_client_lock = asyncio.Lock()


def _options() -> AsyncClientOptions:
    return AsyncClientOptions(
        postgrest_client_timeout=config.supabase.postgrest_timeout,
        auto_refresh_token=False,
        persist_session=False,
    )


async def get_client() -> AsyncClient:
    """Get (or lazily create) the shared service-role client."""
    global _client
    if _client is not None:
        return _client

    async with _client_lock:
        if _client is None:
            _client = await acreate_client(
                config.supabase.url,
                config.supabase.service_role_key,
                options=_options(),
            )
            logger.info(f"Supabase client connected: {config.supabase.url}")
    return _client


async def close_client() -> None:
    """Drop the shared client (its HTTP sessions are closed with it)."""
    global _client
    async with _client_lock:
        if _client is not None:
            await _client.postgrest.aclose()
            _client = None
            logger.info("Supabase client closed")


async def create_auth_client() -> AsyncClient:
    """Create a throwaway anon-key client for a single password sign-in."""
    return await acreate_client(
        config.supabase.url,
        config.supabase.anon_key,
        options=_options(),
    )

"""FastAPI dependency providing the shared Neynar client."""
from functools import lru_cache

from gamelink.clients.neynar import NeynarClient
from gamelink.config import settings


@lru_cache
def get_neynar_client() -> NeynarClient:
    return NeynarClient(
        api_key=settings.NEYNAR_API_KEY,
        base_url=settings.NEYNAR_BASE_URL,
        timeout=settings.NEYNAR_TIMEOUT_SECONDS,
        max_retries=settings.NEYNAR_MAX_RETRIES,
    )

"""Farcaster social-graph lookups with a short in-process cache."""
import logging
import threading
import time
from typing import Callable, Optional

from gamelink.clients.neynar import FarcasterUser, NeynarClient
from gamelink.config import settings

logger = logging.getLogger(__name__)

MAX_MUTUAL_PROFILES = 5000


class MutualFollowersCache:
    """Per-FID TTL cache. Entries are dropped lazily on read."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[int, tuple[float, list[FarcasterUser]]] = {}
        self._lock = threading.Lock()

    def get(self, fid: int) -> Optional[list[FarcasterUser]]:
        with self._lock:
            entry = self._entries.get(fid)
            if entry is None:
                return None
            expires_at, users = entry
            if self._clock() >= expires_at:
                del self._entries[fid]
                return None
            return users

    def set(self, fid: int, users: list[FarcasterUser]) -> None:
        with self._lock:
            self._entries[fid] = (self._clock() + self.ttl_seconds, users)

    def invalidate(self, fid: Optional[int] = None) -> None:
        with self._lock:
            if fid is None:
                self._entries.clear()
            else:
                self._entries.pop(fid, None)


mutual_followers_cache = MutualFollowersCache(settings.MUTUAL_FOLLOWERS_CACHE_SECONDS)


def get_mutual_followers(
    client: NeynarClient,
    fid: int,
    use_cache: bool = True,
    cache: MutualFollowersCache = mutual_followers_cache,
) -> list[FarcasterUser]:
    """Users who both follow ``fid`` and are followed by it."""
    if use_cache:
        cached = cache.get(fid)
        if cached is not None:
            logger.info("Returning cached mutual followers for FID %s", fid)
            return cached

    followers = client.fetch_followers(fid)
    following = set(client.fetch_following(fid))
    mutual_fids = [f for f in dict.fromkeys(followers) if f in following]
    if len(mutual_fids) > MAX_MUTUAL_PROFILES:
        logger.warning("FID %s has %d mutual followers, fetching the first %d", fid, len(mutual_fids), MAX_MUTUAL_PROFILES)
        mutual_fids = mutual_fids[:MAX_MUTUAL_PROFILES]

    users = client.fetch_bulk_users(mutual_fids) if mutual_fids else []
    cache.set(fid, users)
    logger.info("Found %d mutual followers for FID %s", len(users), fid)
    return users

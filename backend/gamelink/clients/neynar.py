"""Neynar REST client: Farcaster user lookups, social graph and frame notifications.

Thin synchronous wrapper over ``httpx``. Rate-limited calls (HTTP 429) are
retried with exponential backoff; every other failure surfaces as
``NeynarError`` so callers decide whether it is fatal.
"""
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

BULK_USERS_LIMIT = 100
GRAPH_PAGE_SIZE = 100
MAX_GRAPH_PAGES = 500


class NeynarError(Exception):
    """Raised when the Neynar API cannot satisfy a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class FarcasterUser:
    fid: int
    username: str
    display_name: str
    pfp_url: str = ""
    bio: str = ""
    follower_count: int = 0
    following_count: int = 0
    custody_address: Optional[str] = None
    is_verified: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "FarcasterUser":
        profile = data.get("profile") or {}
        bio = (profile.get("bio") or {}).get("text") or ""
        return cls(
            fid=data["fid"],
            username=data.get("username", ""),
            display_name=data.get("display_name") or data.get("username", ""),
            pfp_url=data.get("pfp_url") or "",
            bio=bio,
            follower_count=data.get("follower_count") or 0,
            following_count=data.get("following_count") or 0,
            custody_address=data.get("custody_address"),
            is_verified=bool(data.get("power_badge")),
        )


@dataclass
class NotificationPayload:
    title: str
    body: str
    target_url: str
    uuid: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_api(self) -> dict[str, str]:
        return {"title": self.title, "body": self.body, "target_url": self.target_url, "uuid": self.uuid}


class NeynarClient:
    """Synchronous Neynar v2 client."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.neynar.com",
        timeout: float = 10.0,
        max_retries: int = 3,
        backoff_seconds: float = 1.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self._http = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers={"x-api-key": api_key, "accept": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        if not self.api_key:
            raise NeynarError("NEYNAR_API_KEY is not configured")

        attempt = 0
        while True:
            try:
                response = self._http.request(method, path, **kwargs)
            except httpx.HTTPError as e:
                raise NeynarError(f"Neynar request failed: {e}") from e

            if response.status_code == 429 and attempt < self.max_retries:
                delay = self.backoff_seconds * (2 ** attempt)
                attempt += 1
                logger.info("Neynar rate limited on %s, retrying in %.1fs (attempt %d/%d)",
                            path, delay, attempt, self.max_retries)
                time.sleep(delay)
                continue

            if response.status_code >= 400:
                raise NeynarError(
                    f"Neynar {method} {path} returned {response.status_code}: {response.text[:200]}",
                    status_code=response.status_code,
                )
            return response.json()

    def fetch_bulk_users(self, fids: list[int]) -> list[FarcasterUser]:
        """Fetch profiles for up to any number of FIDs, chunked to the API limit."""
        users: list[FarcasterUser] = []
        for i in range(0, len(fids), BULK_USERS_LIMIT):
            chunk = fids[i:i + BULK_USERS_LIMIT]
            data = self._request("GET", "/v2/farcaster/user/bulk", params={"fids": ",".join(str(f) for f in chunk)})
            users.extend(FarcasterUser.from_api(u) for u in data.get("users", []))
        return users

    def fetch_user(self, fid: int) -> Optional[FarcasterUser]:
        users = self.fetch_bulk_users([fid])
        return users[0] if users else None

    def _fetch_graph(self, path: str, fid: int, max_results: Optional[int]) -> list[int]:
        fids: list[int] = []
        cursor = None
        for _ in range(MAX_GRAPH_PAGES):
            params: dict[str, Any] = {"fid": fid, "limit": GRAPH_PAGE_SIZE}
            if cursor:
                params["cursor"] = cursor
            data = self._request("GET", path, params=params)
            for item in data.get("users", []):
                user = item.get("user", item)
                fids.append(user["fid"])
            cursor = (data.get("next") or {}).get("cursor")
            if not cursor or (max_results is not None and len(fids) >= max_results):
                break
        else:
            logger.warning("Stopped paging %s for FID %s after %d pages", path, fid, MAX_GRAPH_PAGES)
        return fids[:max_results] if max_results is not None else fids

    def fetch_followers(self, fid: int, max_results: Optional[int] = None) -> list[int]:
        """FIDs of users who follow ``fid``."""
        return self._fetch_graph("/v2/farcaster/followers", fid, max_results)

    def fetch_following(self, fid: int, max_results: Optional[int] = None) -> list[int]:
        """FIDs of users ``fid`` follows."""
        return self._fetch_graph("/v2/farcaster/following", fid, max_results)

    def publish_frame_notifications(
        self,
        target_fids: list[int],
        notification: NotificationPayload,
        filters: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Publish a Mini App notification. An empty ``target_fids`` means every enabled user."""
        body = {
            "target_fids": target_fids,
            "filters": filters or {},
            "notification": notification.to_api(),
        }
        return self._request("POST", "/v2/farcaster/frame/notifications/", json=body)

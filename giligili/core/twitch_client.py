"""
Rate-limited Twitch Helix API client.

============================================================================
This is the ONLY source of content (streams, videos, clips) and of game
popularity. Nothing it returns is cached or persisted here; items only reach
the local database when a user favorites them (see FavoriteService).

Endpoints used:
- GET /games/top           popular games, ordered by current viewers
- GET /games?name=         game lookup by display name
- GET /streams?game_id=    live streams for a game
- GET /videos?game_id=     VODs/highlights for a game
- GET /clips?game_id=      clips for a game
============================================================================
"""

import asyncio
import logging
from collections import deque
from time import time

import httpx

from giligili.config import get_settings
from giligili.core.retry import RetryConfig, async_retry
from giligili.db.schemas import Game, Item, ItemType

logger = logging.getLogger(__name__)
settings = get_settings()

TWITCH_WEB_URL = "https://www.twitch.tv/"

BOX_ART_SIZE = ("285", "380")
THUMBNAIL_SIZE = ("320", "180")

TYPE_ENDPOINTS = {
    ItemType.STREAM: "/streams",
    ItemType.VIDEO: "/videos",
    ItemType.CLIP: "/clips",
}


class TwitchError(Exception):
    """Twitch could not be reached or returned an unusable response."""


class RateLimiter:
    """Sliding-window rate limiter for the Helix API."""

    def __init__(self, max_requests: int = 800, window_seconds: int = 60):
        self.max_requests = max_requests
        self.window = window_seconds
        self.requests: deque[float] = deque()
        self._lock = asyncio.Lock()

    async def acquire(self):
        """Wait until a request can be made within rate limits."""
        async with self._lock:
            while True:
                now = time()

                while self.requests and self.requests[0] < now - self.window:
                    self.requests.popleft()

                if len(self.requests) < self.max_requests:
                    self.requests.append(now)
                    return

                sleep_time = self.requests[0] + self.window - now
                if sleep_time > 0:
                    logger.info(f"Twitch rate limit reached, waiting {sleep_time:.2f}s")
                    await asyncio.sleep(sleep_time)


def _resolve_size(template: str | None, size: tuple[str, str]) -> str:
    """Fill the width/height placeholders Twitch puts in image URLs."""
    if not template:
        return ""
    width, height = size
    return (
        template
        .replace("%{width}", width).replace("%{height}", height)
        .replace("{width}", width).replace("{height}", height)
    )


def _to_game(data: dict) -> Game:
    return Game(
        id=data["id"],
        name=data.get("name", ""),
        box_art_url=_resolve_size(data.get("box_art_url"), BOX_ART_SIZE),
    )


def _to_item(data: dict, game_id: str, item_type: ItemType) -> Item:
    """Convert one Helix stream/video/clip object into an Item.

    Videos carry no game_id in their payload, so the queried game is used
    for every type. Streams have no url; it is derived from the login name.
    """
    url = data.get("url") or ""
    if item_type == ItemType.STREAM and not url:
        url = TWITCH_WEB_URL + data.get("user_login", "")

    return Item(
        id=data["id"],
        title=data.get("title") or "",
        url=url,
        thumbnail_url=_resolve_size(data.get("thumbnail_url"), THUMBNAIL_SIZE),
        broadcaster_name=data.get("broadcaster_name") or data.get("user_name") or "",
        game_id=game_id,
        item_type=item_type,
    )


class TwitchClient:
    """Async client for the Twitch Helix API with rate limiting."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = settings.twitch_api_url
        self.client_id = settings.twitch_client_id
        self.token = settings.twitch_access_token
        self.rate_limiter = RateLimiter(
            max_requests=settings.twitch_rate_limit_requests,
            window_seconds=settings.twitch_rate_limit_window,
        )
        self.retry_config = RetryConfig(
            max_attempts=settings.max_retry_attempts,
            base_delay=settings.retry_base_delay,
            max_delay=settings.retry_max_delay,
        )
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"Client-Id": self.client_id}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"

            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=float(settings.http_request_timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _get(self, endpoint: str, params: dict) -> list[dict]:
        """
        Rate-limited GET returning the `data` array of a Helix response.

        Transient errors (timeouts, network issues, 429, 5xx) are retried.
        Whatever still fails is raised as TwitchError.
        """

        @async_retry(self.retry_config)
        async def do_request() -> dict:
            await self.rate_limiter.acquire()
            client = await self._get_client()
            response = await client.get(endpoint, params=params)
            if response.is_error:
                logger.warning(
                    f"Twitch API error: {response.status_code} - {response.text[:200]}"
                )
            response.raise_for_status()
            return response.json()

        try:
            payload = await do_request()
        except (httpx.HTTPError, ConnectionError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Twitch request failed: {endpoint} {params} - {e}")
            raise TwitchError(f"Failed to get result from Twitch API: {endpoint}") from e

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            raise TwitchError(f"Unexpected response from Twitch API: {endpoint}")
        return data

    async def top_games(self, limit: int) -> list[Game]:
        """Get the currently most watched games, most popular first."""
        data = await self._get("/games/top", {"first": limit})
        try:
            return [_to_game(g) for g in data[:limit]]
        except KeyError as e:
            raise TwitchError("Malformed game entry from Twitch API") from e

    async def search_game(self, name: str) -> Game | None:
        """Look up a game by its exact display name."""
        data = await self._get("/games", {"name": name})
        if not data:
            return None
        try:
            return _to_game(data[0])
        except KeyError as e:
            raise TwitchError("Malformed game entry from Twitch API") from e

    async def search_by_type(self, game_id: str, item_type: ItemType, limit: int) -> list[Item]:
        """Get up to `limit` items of one type for a game, in Twitch's order."""
        data = await self._get(TYPE_ENDPOINTS[item_type], {"game_id": game_id, "first": limit})
        try:
            return [_to_item(d, game_id, item_type) for d in data[:limit]]
        except KeyError as e:
            raise TwitchError(f"Malformed {item_type.value} entry from Twitch API") from e

    async def search_items(self, game_id: str, limit: int | None = None) -> dict[str, list[Item]]:
        """Get items of every type for a game, keyed by type name."""
        limit = limit or settings.search_limit
        results = {}
        for item_type in ItemType:
            results[item_type.value] = await self.search_by_type(game_id, item_type, limit)
        return results


# Singleton client instance
_client: TwitchClient | None = None


def get_twitch_client() -> TwitchClient:
    """Get the singleton Twitch client."""
    global _client
    if _client is None:
        _client = TwitchClient()
    return _client

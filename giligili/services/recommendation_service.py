"""
Item recommendation service.

============================================================================
TWO FLOWS, SAME SHAPE OF RESULT
============================================================================
Both flows return {"STREAM": [...], "VIDEO": [...], "CLIP": [...]}.

- Popular games (anonymous / cold start): the current top games on Twitch,
  in popularity order.
- Favorite history (signed-in user): the games behind the user's favorited
  items of that type, most favorited first. Items the user already
  favorited are never recommended again. A type without any favorites falls
  back to the popular games.

Per type, games are consumed in order and each contributes its whole batch
until the total limit is reached, so the best game's content comes first.

Any upstream failure fails the whole call with RecommendationError. There
is no partial result.
============================================================================
"""

import asyncio
import logging
from collections import Counter
from collections.abc import Coroutine
from typing import Any

from sqlalchemy.ext.asyncio import async_sessionmaker

from giligili.config import get_settings
from giligili.core.twitch_client import TwitchClient, TwitchError
from giligili.db.schemas import Item, ItemType
from giligili.services.favorite_service import DB_ERRORS, FavoriteService, StoreError

logger = logging.getLogger(__name__)
settings = get_settings()


class RecommendationError(Exception):
    """A recommendation could not be computed."""


def rank_favorite_games(favorite_game_ids: list[str], limit: int) -> list[str]:
    """
    Rank games by how many favorited items point at them.

    Ties keep the order in which games first appear in the input.

        ["g1", "g1", "g2", "g3", "g1", "g2"] -> ["g1", "g2", "g3"]
    """
    if limit <= 0:
        return []
    return [game_id for game_id, _ in Counter(favorite_game_ids).most_common(limit)]


class ItemRecommender:
    """Builds per-type recommendation lists from Twitch and favorite history."""

    def __init__(
        self,
        twitch: TwitchClient,
        session_factory: async_sessionmaker,
        game_limit: int | None = None,
        per_game_limit: int | None = None,
        total_limit: int | None = None,
    ):
        self.twitch = twitch
        self.session_factory = session_factory
        self.game_limit = settings.recommendation_game_limit if game_limit is None else game_limit
        self.per_game_limit = (
            settings.recommendation_per_game_limit if per_game_limit is None else per_game_limit
        )
        self.total_limit = settings.recommendation_total_limit if total_limit is None else total_limit

    async def _get_top_game_ids(self) -> list[str]:
        try:
            games = await self.twitch.top_games(self.game_limit)
        except TwitchError as e:
            raise RecommendationError("Failed to get game data for recommendation") from e
        return [game.id for game in games[:self.game_limit]]

    async def _collect_items(
        self,
        item_type: ItemType,
        game_ids: list[str],
        excluded_ids: set[str] | frozenset[str] = frozenset(),
    ) -> list[Item]:
        """Fill one type's list game by game until the total limit."""
        recommended: list[Item] = []
        seen: set[str] = set()

        for game_id in game_ids:
            if len(recommended) >= self.total_limit:
                break
            try:
                items = await self.twitch.search_by_type(game_id, item_type, self.per_game_limit)
            except TwitchError as e:
                raise RecommendationError("Failed to get recommendation result") from e

            for item in items:
                if len(recommended) >= self.total_limit:
                    break
                if item.id in excluded_ids or item.id in seen:
                    continue
                seen.add(item.id)
                recommended.append(item)

        return recommended

    async def _gather_by_type(
        self,
        jobs: list[tuple[ItemType, Coroutine[Any, Any, list[Item]]]],
    ) -> dict[str, list[Item]]:
        """Run one job per type concurrently; any failure fails them all."""
        results = await asyncio.gather(*(job for _, job in jobs), return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return {item_type.value: items for (item_type, _), items in zip(jobs, results)}

    async def recommend_by_top_games(self) -> dict[str, list[Item]]:
        """Recommend items of every type from the current top games."""
        top_game_ids = await self._get_top_game_ids()
        logger.info(f"Recommending from top games {top_game_ids}")
        return await self._gather_by_type([
            (item_type, self._collect_items(item_type, top_game_ids)) for item_type in ItemType
        ])

    async def recommend_by_user(self, user_id: str) -> dict[str, list[Item]]:
        """Recommend items of every type from a user's favorite history."""
        try:
            async with self.session_factory() as session:
                store = FavoriteService(session)
                favorite_item_ids = await store.get_favorite_item_ids(user_id)
                favorite_game_ids = await store.get_favorite_game_ids(favorite_item_ids)
        except (StoreError, *DB_ERRORS) as e:
            raise RecommendationError("Failed to get user favorite history for recommendation") from e

        # One top-games snapshot serves every type without history
        top_game_ids: list[str] = []
        if any(not favorite_game_ids.get(item_type.value) for item_type in ItemType):
            top_game_ids = await self._get_top_game_ids()

        jobs = []
        for item_type in ItemType:
            game_ids = favorite_game_ids.get(item_type.value) or []
            if game_ids:
                ranked = rank_favorite_games(game_ids, self.game_limit)
                logger.info(f"User {user_id} {item_type.value}: favorite games {ranked}")
                jobs.append((item_type, self._collect_items(item_type, ranked, favorite_item_ids)))
            else:
                logger.info(f"User {user_id} {item_type.value}: no history, using top games")
                jobs.append((item_type, self._collect_items(item_type, top_game_ids)))

        return await self._gather_by_type(jobs)

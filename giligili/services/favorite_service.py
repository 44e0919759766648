"""Service for reading and writing users' favorite items."""

import logging
from datetime import datetime

from sqlalchemy import select, delete
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from giligili.db.models import FavoriteRecord, Item
from giligili.db import schemas
from giligili.db.schemas import ItemType

logger = logging.getLogger(__name__)

# asyncpg raises OSError subclasses when the server cannot be reached
DB_ERRORS = (SQLAlchemyError, OSError)

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class StoreError(Exception):
    """Favorite history could not be read or written."""


def _empty_by_type() -> dict[str, list]:
    return {item_type.value: [] for item_type in ItemType}


class FavoriteService:
    """Favorites for one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _insert_if_absent(self, model, **values):
        """INSERT ... ON CONFLICT DO NOTHING for the session's database."""
        insert = _UPSERT_INSERTS[self.db.get_bind().dialect.name]
        return insert(model).values(**values).on_conflict_do_nothing()

    async def set_favorite(self, user_id: str, item: schemas.Item) -> None:
        """
        Record that a user favorited an item. Repeating it is a no-op.

        Both rows are written with conflict-ignoring inserts, so concurrent
        favorites of the same item (a double click) do not collide.
        """
        try:
            await self.db.execute(self._insert_if_absent(
                Item,
                id=item.id,
                title=item.title,
                url=item.url,
                thumbnail_url=item.thumbnail_url,
                broadcaster_name=item.broadcaster_name,
                game_id=item.game_id,
                item_type=item.item_type.value,
            ))
            await self.db.execute(self._insert_if_absent(
                FavoriteRecord,
                user_id=user_id,
                item_id=item.id,
                last_favor_time=datetime.utcnow(),
            ))
            await self.db.commit()
        except DB_ERRORS as e:
            await self.db.rollback()
            logger.error(f"Failed to save favorite {item.id} for user {user_id}: {e}")
            raise StoreError("Failed to save favorite item") from e

        logger.info(f"User {user_id} favorited {item.item_type.value} {item.id}")

    async def unset_favorite(self, user_id: str, item_id: str) -> None:
        """Remove a favorite. The item row is kept for other users."""
        try:
            await self.db.execute(
                delete(FavoriteRecord).where(
                    FavoriteRecord.user_id == user_id,
                    FavoriteRecord.item_id == item_id,
                )
            )
            await self.db.commit()
        except DB_ERRORS as e:
            await self.db.rollback()
            logger.error(f"Failed to remove favorite {item_id} for user {user_id}: {e}")
            raise StoreError("Failed to remove favorite item") from e

    async def get_favorite_item_ids(self, user_id: str) -> set[str]:
        """Get the ids of every item the user has favorited."""
        try:
            result = await self.db.execute(
                select(FavoriteRecord.item_id).where(FavoriteRecord.user_id == user_id)
            )
        except DB_ERRORS as e:
            raise StoreError("Failed to get favorite item ids") from e
        return {row[0] for row in result.all()}

    async def get_favorite_items(self, user_id: str) -> dict[str, list[schemas.Item]]:
        """Get the user's favorite items grouped by type, newest first."""
        try:
            result = await self.db.execute(
                select(Item)
                .join(FavoriteRecord, FavoriteRecord.item_id == Item.id)
                .where(FavoriteRecord.user_id == user_id)
                .order_by(FavoriteRecord.last_favor_time.desc(), Item.id)
            )
        except DB_ERRORS as e:
            raise StoreError("Failed to get favorite items") from e

        items = _empty_by_type()
        for row in result.scalars().all():
            items[row.item_type].append(schemas.Item.model_validate(row))
        return items

    async def get_favorite_game_ids(self, item_ids: set[str]) -> dict[str, list[str]]:
        """
        Get the game behind each favorited item, grouped by item type.

        Every type is present in the result. Each list has one entry per
        item, so a game repeats once for every favorited item about it.
        """
        game_ids = _empty_by_type()
        if not item_ids:
            return game_ids

        try:
            result = await self.db.execute(
                select(Item.game_id, Item.item_type)
                .where(Item.id.in_(item_ids))
                .order_by(Item.id)
            )
        except DB_ERRORS as e:
            raise StoreError("Failed to get favorite game ids") from e

        for game_id, item_type in result.all():
            game_ids[item_type].append(game_id)
        return game_ids

"""Pydantic schemas for API request/response validation."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ItemType(str, Enum):
    """Kinds of recommendable content. The set is closed."""
    STREAM = "STREAM"
    VIDEO = "VIDEO"
    CLIP = "CLIP"


# ============ Game Schemas ============

class Game(BaseModel):
    """A game as reported by Twitch.

    The metadata fields below ``box_art_url`` are informational only.
    """
    id: str
    name: str
    box_art_url: str | None = None
    developer: str | None = None
    release_time: str | None = None
    website: str | None = None
    price: float | None = None


# ============ Item Schemas ============

class Item(BaseModel):
    """A stream, video or clip about one game."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str = ""
    url: str = ""
    thumbnail_url: str = ""
    broadcaster_name: str = ""
    game_id: str
    item_type: ItemType


class FavoriteRequest(BaseModel):
    """Body of favorite set/unset requests."""
    favorite: Item


# Keys are ItemType values; list order is presentation order
TypeGroupedItems = dict[str, list[Item]]


class TopGamesResponse(BaseModel):
    games: list[Game]
    total: int


class SearchResponse(BaseModel):
    """Items of every type for one game."""
    game_id: str
    items: TypeGroupedItems = Field(default_factory=dict)


class FavoritesResponse(BaseModel):
    user_id: str
    items: TypeGroupedItems = Field(default_factory=dict)


class RecommendationsResponse(BaseModel):
    """Recommendation result; `user_id` is None for the popular-games flow."""
    user_id: str | None = None
    personalized: bool = False
    items: TypeGroupedItems = Field(default_factory=dict)

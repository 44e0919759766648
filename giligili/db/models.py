"""
SQLAlchemy ORM models for user favorites.

============================================================================
ONLY FAVORITES ARE STORED LOCALLY
============================================================================
Streams, videos and clips live on Twitch. An item is copied into the `items`
table the first time a user favorites it, so the favorites page and the
personalized recommender can work without calling Twitch again:

- Item: snapshot of a favorited stream/video/clip (keeps its game_id)
- FavoriteRecord: which user favorited which item, and when

Data flow: Twitch API -> frontend -> POST /favorite -> THIS DATABASE
           THIS DATABASE -> FavoriteService -> ItemRecommender
============================================================================
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from giligili.db.database import Base


class Item(Base):
    """A favorited stream, video or clip."""

    __tablename__ = "items"

    id = Column(String(255), primary_key=True)  # Twitch id, unique across types
    title = Column(Text)
    url = Column(String(512))
    thumbnail_url = Column(String(512))
    broadcaster_name = Column(String(255))
    game_id = Column(String(255), nullable=False)
    item_type = Column(String(16), nullable=False)  # STREAM, VIDEO or CLIP

    favorites = relationship("FavoriteRecord", back_populates="item", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_items_game_type", "game_id", "item_type"),
    )


class FavoriteRecord(Base):
    """A user's favorite. One row per (user, item)."""

    __tablename__ = "favorite_records"

    user_id = Column(String(255), primary_key=True)
    item_id = Column(String(255), ForeignKey("items.id", ondelete="CASCADE"), primary_key=True)
    last_favor_time = Column(DateTime, default=datetime.utcnow)

    item = relationship("Item", back_populates="favorites")

    __table_args__ = (
        Index("idx_favorite_records_user", "user_id"),
    )

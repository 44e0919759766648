"""
Recommendation endpoints.

============================================================================
DATA SOURCES: TWITCH API + LOCAL FAVORITES
============================================================================
- Anonymous requests get items from the current top games on Twitch.
- Requests with a user_id get items from the games behind that user's
  favorites (local database), excluding what they already favorited.

Results are computed per request; nothing is cached.
============================================================================
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import async_sessionmaker

from giligili.core.twitch_client import TwitchClient, get_twitch_client
from giligili.db import schemas
from giligili.db.database import get_session_factory
from giligili.services.recommendation_service import ItemRecommender, RecommendationError

logger = logging.getLogger(__name__)

# Rate limiter for the recommendation endpoint; each call fans out into
# several Twitch requests
limiter = Limiter(key_func=get_remote_address)

router = APIRouter()


@router.get("", response_model=schemas.RecommendationsResponse)
@limiter.limit("10/minute")
async def get_recommendations(
    request: Request,
    user_id: str | None = Query(
        default=None,
        min_length=1,
        description="Personalize from this user's favorites; omit for popular games",
    ),
    twitch: TwitchClient = Depends(get_twitch_client),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """
    Get recommended streams, videos and clips.

    The response always holds the three types STREAM, VIDEO and CLIP,
    each with at most 20 items.
    """
    recommender = ItemRecommender(twitch, session_factory)

    try:
        if user_id:
            items = await recommender.recommend_by_user(user_id)
        else:
            items = await recommender.recommend_by_top_games()
    except RecommendationError as e:
        logger.error(f"Recommendation failed (user_id={user_id}): {e} ({e.__cause__})")
        raise HTTPException(status_code=502, detail=str(e))

    return schemas.RecommendationsResponse(
        user_id=user_id,
        personalized=user_id is not None,
        items=items,
    )

"""Item search endpoint: streams, videos and clips for one game."""

from fastapi import APIRouter, Depends, HTTPException, Query

from giligili.core.twitch_client import TwitchClient, TwitchError, get_twitch_client
from giligili.db import schemas

router = APIRouter()


@router.get("", response_model=schemas.SearchResponse)
async def search_items(
    game_id: str = Query(..., min_length=1),
    twitch: TwitchClient = Depends(get_twitch_client),
):
    try:
        items = await twitch.search_items(game_id)
    except TwitchError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return schemas.SearchResponse(game_id=game_id, items=items)

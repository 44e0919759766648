"""Game discovery endpoints (Twitch top games and lookup by name)."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from giligili.core.twitch_client import TwitchClient, TwitchError, get_twitch_client
from giligili.db import schemas

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=schemas.TopGamesResponse)
async def get_top_games(
    limit: int = Query(default=20, ge=1, le=100, description="Number of games"),
    twitch: TwitchClient = Depends(get_twitch_client),
):
    """Get the most watched games on Twitch right now."""
    try:
        games = await twitch.top_games(limit)
    except TwitchError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return schemas.TopGamesResponse(games=games, total=len(games))


@router.get("/search", response_model=schemas.Game)
async def search_game(
    name: str = Query(..., min_length=1, description="Exact game name"),
    twitch: TwitchClient = Depends(get_twitch_client),
):
    """Look up a single game by name."""
    try:
        game = await twitch.search_game(name)
    except TwitchError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if game is None:
        raise HTTPException(status_code=404, detail=f"Game {name} not found")
    return game

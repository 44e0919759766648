"""API v1 router - aggregates all endpoint routers."""

from fastapi import APIRouter

from giligili.api.v1 import favorites, games, recommendations, search

api_router = APIRouter()

api_router.include_router(games.router, prefix="/game", tags=["games"])
api_router.include_router(search.router, prefix="/search", tags=["search"])
api_router.include_router(favorites.router, prefix="/favorite", tags=["favorites"])
api_router.include_router(recommendations.router, prefix="/recommendation", tags=["recommendations"])

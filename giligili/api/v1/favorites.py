"""Favorite endpoints. Favorites are the only input to personalization."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from giligili.db import schemas
from giligili.db.database import get_db
from giligili.services.favorite_service import FavoriteService, StoreError

router = APIRouter()


@router.get("/{user_id}", response_model=schemas.FavoritesResponse)
async def get_favorites(user_id: str, db: AsyncSession = Depends(get_db)):
    """Get a user's favorite items grouped by type, newest first."""
    try:
        items = await FavoriteService(db).get_favorite_items(user_id)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return schemas.FavoritesResponse(user_id=user_id, items=items)


@router.post("/{user_id}")
async def set_favorite(
    user_id: str,
    payload: schemas.FavoriteRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        await FavoriteService(db).set_favorite(user_id, payload.favorite)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"status": "ok"}


@router.delete("/{user_id}")
async def unset_favorite(
    user_id: str,
    payload: schemas.FavoriteRequest,
    db: AsyncSession = Depends(get_db),
):
    try:
        await FavoriteService(db).unset_favorite(user_id, payload.favorite.id)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"status": "ok"}

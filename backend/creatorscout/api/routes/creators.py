from fastapi import APIRouter, Depends, HTTPException

from creatorscout.api.deps import get_store
from creatorscout.db.store import CreatorStore

router = APIRouter(prefix="/api", tags=["creators"])


@router.get("/creators")
async def list_creators(store: CreatorStore = Depends(get_store)):
    """All Instagram creators with engagement rate, tier and niches."""
    return await store.list_creators_with_metrics()


@router.get("/creators/{username}")
async def get_creator(username: str, store: CreatorStore = Depends(get_store)):
    creator = await store.get_creator(username)
    if not creator:
        raise HTTPException(status_code=404, detail="Creator not found")
    posts = await store.list_posts(username)
    return {**creator, "posts": posts}


@router.get("/stats")
async def stats(store: CreatorStore = Depends(get_store)):
    return await store.get_stats()

import os
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from creatorscout.api.deps import get_store
from creatorscout.db.store import CreatorStore
from creatorscout.models.enums import Platform
from creatorscout.services.profiles import load_ideal_profiles

router = APIRouter(prefix="/api/analysis", tags=["analysis"])


@router.get("")
async def list_results(
    platform: Optional[Platform] = Query(None, description="instagram or youtube"),
    store: CreatorStore = Depends(get_store),
):
    return await store.list_analysis_results(platform)


@router.get("/stats")
async def analysis_stats(store: CreatorStore = Depends(get_store)):
    return await store.get_analysis_stats()


@router.get("/profiles")
async def ideal_profiles(request: Request):
    csv_path = request.app.state.settings.ideal_profiles_csv
    if not os.path.exists(csv_path):
        raise HTTPException(status_code=404, detail="Ideal profiles sheet not found")
    return [p.to_dict() for p in load_ideal_profiles(csv_path)]

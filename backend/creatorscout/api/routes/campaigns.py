from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import Optional

from creatorscout.api.deps import get_store
from creatorscout.db.store import (
    CreatorStore,
    InvalidCampaignStatusError,
    UnknownCreatorError,
    parse_campaign_state,
)
from creatorscout.models.enums import Platform

router = APIRouter(prefix="/api/campaigns", tags=["campaigns"])


class CampaignUpdate(BaseModel):
    status: Optional[str] = None
    notes: Optional[str] = ""


async def update_campaign_status(
    store: CreatorStore,
    platform: Platform,
    creator_id: str,
    body: CampaignUpdate,
) -> dict:
    # Reject bad states before touching the store
    try:
        state = parse_campaign_state(body.status)
    except InvalidCampaignStatusError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        await store.set_campaign_status(platform, creator_id, state, body.notes)
    except UnknownCreatorError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "status": state.value, "notes": body.notes or ""}


@router.get("")
async def list_campaigns(store: CreatorStore = Depends(get_store)):
    return await store.list_campaign_statuses(Platform.INSTAGRAM)


@router.get("/stats")
async def campaign_stats(store: CreatorStore = Depends(get_store)):
    return await store.get_campaign_stats(Platform.INSTAGRAM)


@router.put("/{username}")
async def update_campaign(
    username: str,
    body: CampaignUpdate,
    store: CreatorStore = Depends(get_store),
):
    result = await update_campaign_status(store, Platform.INSTAGRAM, username, body)
    return {**result, "username": username}

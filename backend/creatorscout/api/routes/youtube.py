from fastapi import APIRouter, Depends, HTTPException

from creatorscout.api.routes.campaigns import CampaignUpdate, update_campaign_status
from creatorscout.api.deps import get_store
from creatorscout.db.store import CreatorStore
from creatorscout.models.enums import Platform

router = APIRouter(prefix="/api/yt", tags=["youtube"])


@router.get("/creators")
async def list_channels(store: CreatorStore = Depends(get_store)):
    return await store.list_channels_with_metrics()


@router.get("/creators/{channel_id}")
async def get_channel(channel_id: str, store: CreatorStore = Depends(get_store)):
    channel = await store.get_channel(channel_id)
    if not channel:
        raise HTTPException(status_code=404, detail="Channel not found")
    videos = await store.list_videos(channel_id)
    return {**channel, "videos": videos}


@router.get("/stats")
async def stats(store: CreatorStore = Depends(get_store)):
    return await store.get_youtube_stats()


@router.get("/campaigns")
async def list_campaigns(store: CreatorStore = Depends(get_store)):
    return await store.list_campaign_statuses(Platform.YOUTUBE)


@router.get("/campaigns/stats")
async def campaign_stats(store: CreatorStore = Depends(get_store)):
    return await store.get_campaign_stats(Platform.YOUTUBE)


@router.put("/campaigns/{channel_id}")
async def update_campaign(
    channel_id: str,
    body: CampaignUpdate,
    store: CreatorStore = Depends(get_store),
):
    result = await update_campaign_status(store, Platform.YOUTUBE, channel_id, body)
    return {**result, "channelId": channel_id}

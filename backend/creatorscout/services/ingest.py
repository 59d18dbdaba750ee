import json
import logging
from dataclasses import dataclass, field
from typing import Iterable

from creatorscout.db.store import CreatorStore, UnknownCreatorError
from creatorscout.services.records import (
    InstagramPostRecord,
    InstagramProfileRecord,
    RecordError,
    YouTubeChannelRecord,
    YouTubeVideoRecord,
)

logger = logging.getLogger(__name__)


@dataclass
class IngestSummary:
    creators: int = 0
    content_items: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    def skip(self, reason: str) -> None:
        self.skipped += 1
        self.errors.append(reason)


@dataclass
class ChannelBundle:
    """One YouTube channel with the videos scraped alongside it."""

    channel: YouTubeChannelRecord
    videos: list[YouTubeVideoRecord] = field(default_factory=list)


class IngestReconciler:
    """Merge scraped records into the store.

    Pure upsert: re-running on the same input leaves every row unchanged
    apart from its ``scraped_at`` refresh timestamp.
    """

    def __init__(self, store: CreatorStore):
        self.store = store

    async def import_instagram_profiles(self, raw_profiles: Iterable[dict]) -> IngestSummary:
        summary = IngestSummary()
        for raw in raw_profiles:
            try:
                profile = InstagramProfileRecord.from_raw(raw)
            except RecordError as e:
                summary.skip(str(e))
                logger.warning("Skipping profile: %s", e)
                continue

            await self.store.upsert_creator(profile)
            summary.creators += 1
            await self._import_posts(profile.username, profile.latest_posts, summary)

        logger.info(
            "Imported %d creators and %d posts (%d skipped)",
            summary.creators, summary.content_items, summary.skipped,
        )
        return summary

    async def import_instagram_posts(self, username: str, raw_posts: Iterable[dict]) -> IngestSummary:
        summary = IngestSummary()
        await self._import_posts(username, raw_posts, summary)
        return summary

    async def _import_posts(self, username: str, raw_posts: Iterable[dict], summary: IngestSummary) -> None:
        for raw in raw_posts:
            try:
                post = InstagramPostRecord.from_raw(raw)
                await self.store.upsert_post(post, username)
            except (RecordError, UnknownCreatorError) as e:
                summary.skip(str(e))
                logger.warning("Skipping post for %s: %s", username, e)
                continue
            summary.content_items += 1

    async def import_instagram_file(self, path: str) -> IngestSummary:
        with open(path, "r", encoding="utf-8") as fh:
            profiles = json.load(fh)
        if not isinstance(profiles, list):
            raise ValueError(f"{path} does not contain a list of profiles")
        return await self.import_instagram_profiles(p for p in profiles if isinstance(p, dict))

    async def import_youtube_channels(self, bundles: Iterable[ChannelBundle]) -> IngestSummary:
        summary = IngestSummary()
        for bundle in bundles:
            await self.store.upsert_channel(bundle.channel)
            summary.creators += 1
            for video in bundle.videos:
                try:
                    await self.store.upsert_video(video, bundle.channel.channel_id)
                except UnknownCreatorError as e:
                    summary.skip(str(e))
                    logger.warning("Skipping video %s: %s", video.video_id, e)
                    continue
                summary.content_items += 1

        logger.info(
            "Imported %d channels and %d videos (%d skipped)",
            summary.creators, summary.content_items, summary.skipped,
        )
        return summary

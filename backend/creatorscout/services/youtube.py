import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote_plus

from creatorscout.config import Settings, get_settings
from creatorscout.db.store import CreatorStore
from creatorscout.services.apify import ApifyService
from creatorscout.services.avatars import AvatarService
from creatorscout.services.ingest import ChannelBundle, IngestReconciler, IngestSummary
from creatorscout.services.instagram import chunk, write_snapshot
from creatorscout.services.records import RecordError, YouTubeChannelRecord, YouTubeVideoRecord
from creatorscout.services.runner import BoundedTask, count_failures, run_bounded

logger = logging.getLogger(__name__)

CHANNEL_ACTOR = "streamers/youtube-channel-scraper"

# Search queries aligned with the ideal creator profiles
SEARCH_QUERIES = [
    # Workflow tutorials
    "video editing workflow tutorial",
    "how I edit my videos premiere pro",
    "davinci resolve editing workflow",
    "color grading workflow tutorial",
    # UGC / ad creative
    "ai ugc video maker",
    "how to make ugc ads",
    "performance creative video ads",
    # AI video tools
    "ai video generation tools 2025",
    "ai filmmaking tools review",
    "kling ai video tutorial",
    "runway ml tutorial",
    "ai tools for content creators 2025",
    # Reviews and comparisons
    "best ai tools for video creators",
    "ai image to video tools ranked",
    # Cinematic breakdowns
    "cinematic video breakdown tutorial",
    "how this ad was made breakdown",
    "recreating famous movie shots",
    # Creator business
    "creator economy tools 2025",
    "online course video production",
    # Short form / motion
    "short form video editing tips",
    "motion graphics tutorial beginner",
    "vfx breakdown youtube",
    # Brand mentions
    "higgsfield ai",
    "higgsfield ai video",
]


def search_url(query: str) -> str:
    return f"https://www.youtube.com/results?search_query={quote_plus(query)}"


def extract_unique_channels(videos: list[dict], max_channels: int) -> list[dict]:
    """Distinct channels behind a list of search results, keyed by id or URL."""
    seen = set()
    channels = []
    for video in videos:
        channel_id = video.get("channelId")
        url = video.get("channelUrl")
        key = channel_id or url
        if not key or key in seen:
            continue
        seen.add(key)

        if not url and video.get("channelUsername"):
            url = f"https://www.youtube.com/@{video['channelUsername']}"
        if not url and channel_id:
            url = f"https://www.youtube.com/channel/{channel_id}"
        if not url:
            continue

        channels.append({
            "channelUrl": url,
            "channelId": channel_id,
            "channelName": video.get("channelName"),
        })
    return channels[:max_channels]


def group_channel_items(items: list[dict]) -> dict[str, ChannelBundle]:
    """The channel actor emits one item per video; fold them per channel.

    The first item seen for a channel supplies its profile fields; every item
    with an id and a title is one of its videos.
    """
    bundles: dict[str, ChannelBundle] = {}
    for item in items:
        channel_id = item.get("channelId")
        if not channel_id:
            continue
        if channel_id not in bundles:
            try:
                bundles[channel_id] = ChannelBundle(channel=YouTubeChannelRecord.from_raw(item))
            except RecordError as e:
                logger.warning("Skipping channel item: %s", e)
                continue
        if item.get("id") and item.get("title"):
            bundles[channel_id].videos.append(YouTubeVideoRecord.from_raw(item))
    return bundles


def within_subscriber_range(bundle: ChannelBundle, minimum: int, maximum: int) -> bool:
    return minimum <= bundle.channel.subscribers <= maximum


@dataclass
class YouTubeCollectResult:
    videos_found: int
    channels_found: int
    channels_kept: int
    channels_out_of_range: int
    ingest: IngestSummary
    avatar_failures: int


class YouTubeScraper:
    """Search -> channels -> channel pages, then into the store."""

    def __init__(
        self,
        store: CreatorStore,
        apify: Optional[ApifyService] = None,
        avatars: Optional[AvatarService] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.apify = apify or ApifyService()
        self.avatars = avatars or AvatarService()
        self.reconciler = IngestReconciler(store)

    def _actor_input(self, urls: list[str], max_results: int) -> dict:
        return {
            "startUrls": [{"url": u} for u in urls],
            "maxResults": max_results,
            "maxResultsShorts": 0,
            "maxResultStreams": 0,
        }

    async def search_videos(self, queries: list[str]) -> list[dict]:
        logger.info("Searching YouTube with %d queries", len(queries))
        return await self.apify.run_actor(
            CHANNEL_ACTOR,
            self._actor_input([search_url(q) for q in queries], self.settings.youtube_results_per_query),
        )

    async def scrape_channels(self, channel_urls: list[str]) -> list[dict]:
        """Scrape channel pages in batches; a failed batch yields no items."""
        tasks = [
            BoundedTask(
                name=f"channels:batch-{n}",
                run=lambda batch=batch: self.apify.run_actor(CHANNEL_ACTOR, self._actor_input(batch, 20)),
            )
            for n, batch in enumerate(chunk(channel_urls, self.settings.youtube_channel_batch_size), start=1)
        ]
        outcomes = await run_bounded(tasks, concurrency=self.settings.scrape_concurrency)
        items = []
        for outcome in outcomes:
            if outcome.ok:
                items.extend(outcome.result or [])
        return items

    async def collect(self, queries: Optional[list[str]] = None) -> YouTubeCollectResult:
        videos = await self.search_videos(queries or SEARCH_QUERIES)
        write_snapshot(self.settings.data_dir, "yt_search_results.json", videos)

        channels = extract_unique_channels(videos, self.settings.youtube_max_channels)
        logger.info("Found %d videos from %d unique channels", len(videos), len(channels))

        items = await self.scrape_channels([c["channelUrl"] for c in channels])
        bundles = group_channel_items(items)

        kept = [
            b for b in bundles.values()
            if within_subscriber_range(
                b, self.settings.youtube_min_subscribers, self.settings.youtube_max_subscribers
            )
        ]
        skipped = len(bundles) - len(kept)
        if skipped:
            logger.info(
                "Skipped %d channels outside %d-%d subscribers",
                skipped, self.settings.youtube_min_subscribers, self.settings.youtube_max_subscribers,
            )

        summary = await self.reconciler.import_youtube_channels(kept)
        write_snapshot(
            self.settings.data_dir, "yt_channel_profiles.json", [b.channel.model_dump() for b in kept]
        )

        outcomes = await self.avatars.download_avatars(
            [(b.channel.channel_id, b.channel.thumbnail_url) for b in kept],
            self.settings.yt_avatars_dir,
            concurrency=self.settings.download_concurrency,
        )
        return YouTubeCollectResult(
            videos_found=len(videos),
            channels_found=len(channels),
            channels_kept=len(kept),
            channels_out_of_range=skipped,
            ingest=summary,
            avatar_failures=count_failures(outcomes),
        )

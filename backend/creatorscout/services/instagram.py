import json
import logging
import os
from dataclasses import dataclass
from typing import Optional

from creatorscout.config import Settings, get_settings
from creatorscout.db.store import CreatorStore
from creatorscout.services.apify import ApifyService
from creatorscout.services.avatars import AvatarService
from creatorscout.services.ingest import IngestReconciler, IngestSummary
from creatorscout.services.runner import BoundedTask, count_failures, run_bounded

logger = logging.getLogger(__name__)

HASHTAG_ACTOR = "apify/instagram-hashtag-scraper"
PROFILE_ACTOR = "apify/instagram-profile-scraper"


def unique_owner_usernames(posts: list[dict]) -> list[str]:
    """Post owners in first-seen order, without duplicates."""
    seen = set()
    usernames = []
    for post in posts:
        username = post.get("ownerUsername")
        if username and username not in seen:
            seen.add(username)
            usernames.append(username)
    return usernames


def chunk(items: list, size: int) -> list[list]:
    return [items[i:i + size] for i in range(0, len(items), size)]


def write_snapshot(data_dir: str, filename: str, payload) -> str:
    os.makedirs(data_dir, exist_ok=True)
    path = os.path.join(data_dir, filename)
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2, ensure_ascii=False)
    return path


@dataclass
class InstagramCollectResult:
    posts_found: int
    usernames: int
    profiles: int
    ingest: IngestSummary
    avatar_failures: int


class InstagramScraper:
    """Hashtag -> owners -> profiles, then into the store."""

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

    async def scrape_hashtag_posts(self, hashtags: list[str], limit: int) -> list[dict]:
        return await self.apify.run_actor(
            HASHTAG_ACTOR, {"hashtags": hashtags, "resultsLimit": limit}
        )

    async def scrape_profiles(self, usernames: list[str]) -> list[dict]:
        """Scrape profiles in username chunks, a few chunks at a time.

        A failed chunk is logged by the runner and simply contributes no
        profiles.
        """
        tasks = [
            BoundedTask(
                name=f"profiles:{group[0]}..({len(group)})",
                run=lambda group=group: self.apify.run_actor(
                    PROFILE_ACTOR, {"usernames": group, "resultsLimit": 1}
                ),
            )
            for group in chunk(usernames, self.settings.instagram_profile_batch_size)
        ]
        outcomes = await run_bounded(tasks, concurrency=self.settings.scrape_concurrency)
        profiles = []
        for outcome in outcomes:
            if outcome.ok:
                profiles.extend(outcome.result or [])
        return profiles

    async def download_avatars(self, profiles: list[dict]) -> int:
        outcomes = await self.avatars.download_avatars(
            [(p["username"], p.get("profilePicUrl")) for p in profiles if p.get("username")],
            self.settings.avatars_dir,
            concurrency=self.settings.download_concurrency,
        )
        return count_failures(outcomes)

    async def collect(self, hashtags: Optional[list[str]] = None, limit: Optional[int] = None) -> InstagramCollectResult:
        hashtags = hashtags or self.settings.instagram_hashtags
        limit = limit or self.settings.instagram_hashtag_limit

        logger.info("Starting hashtag scrape for %s", ", ".join(f"#{h}" for h in hashtags))
        posts = await self.scrape_hashtag_posts(hashtags, limit)
        write_snapshot(self.settings.data_dir, "hashtag_posts.json", posts)
        usernames = unique_owner_usernames(posts)
        logger.info("Found %d posts from %d unique creators", len(posts), len(usernames))

        profiles = await self.scrape_profiles(usernames)
        write_snapshot(self.settings.data_dir, "creator_profiles.json", profiles)
        logger.info("Scraped %d creator profiles", len(profiles))

        summary = await self.reconciler.import_instagram_profiles(profiles)
        avatar_failures = await self.download_avatars(profiles)
        return InstagramCollectResult(
            posts_found=len(posts),
            usernames=len(usernames),
            profiles=len(profiles),
            ingest=summary,
            avatar_failures=avatar_failures,
        )

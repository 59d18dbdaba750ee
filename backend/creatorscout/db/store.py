"""Persistent store for creators, content, campaign status and analysis results.

Every write is an upsert keyed on the row's natural key: insert, or overwrite
all mutable fields on conflict (last write wins). Derived metrics are never
stored; the ``list_*_with_metrics`` reads aggregate content items and compute
them on the fly.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import Integer, cast, delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError

from creatorscout.db.database import Database
from creatorscout.models.analysis import AnalysisResult
from creatorscout.models.campaign import CampaignStatus, YouTubeCampaignStatus
from creatorscout.models.creator import InstagramCreator, InstagramPost
from creatorscout.models.enums import CampaignState, Platform
from creatorscout.models.youtube import YouTubeChannel, YouTubeVideo
from creatorscout.services.metrics import classify_tier, engagement_rate, extract_niches
from creatorscout.services.records import (
    InstagramPostRecord,
    InstagramProfileRecord,
    YouTubeChannelRecord,
    YouTubeVideoRecord,
)

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when a store operation cannot be completed."""


class UnknownCreatorError(StoreError):
    """A row references a creator that does not exist."""

    def __init__(self, platform: Platform, creator_id: str):
        self.platform = Platform(platform)
        self.creator_id = creator_id
        super().__init__(f"Unknown {self.platform.value} creator: {creator_id}")


class InvalidCampaignStatusError(ValueError):
    def __init__(self, status: Any):
        self.status = status
        super().__init__(
            f"Invalid status {status!r}. Must be one of: {', '.join(CampaignState.values())}"
        )


def parse_campaign_state(status: Any) -> CampaignState:
    try:
        return CampaignState(status)
    except ValueError:
        raise InvalidCampaignStatusError(status) from None


# platform -> (campaign model, campaign key column, creator model, creator key column)
_CAMPAIGN_TABLES = {
    Platform.INSTAGRAM: (CampaignStatus, "username", InstagramCreator, "username"),
    Platform.YOUTUBE: (YouTubeCampaignStatus, "channel_id", YouTubeChannel, "channel_id"),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _row_to_dict(obj) -> dict:
    return {col.name: getattr(obj, col.name) for col in obj.__table__.columns}


def _integrity_error(error: IntegrityError, platform: Platform, creator_id: Any) -> StoreError:
    # SQLite: "FOREIGN KEY constraint failed"; PostgreSQL: "violates foreign key constraint"
    if "foreign key" in str(error.orig).lower():
        return UnknownCreatorError(platform, creator_id)
    return StoreError(f"Write rejected by the database: {error.orig}")


class CreatorStore:
    def __init__(self, database: Database):
        self.db = database

    def _insert(self, model):
        if self.db.dialect_name == "postgresql":
            return postgresql.insert(model)
        return sqlite.insert(model)

    async def _upsert(self, model, values: dict, key: str, update_keys: Optional[list[str]] = None) -> None:
        stmt = self._insert(model).values(**values)
        update_keys = update_keys or [k for k in values if k != key]
        stmt = stmt.on_conflict_do_update(
            index_elements=[key],
            set_={k: stmt.excluded[k] for k in update_keys},
        )
        async with self.db.session() as session:
            await session.execute(stmt)
            await session.commit()

    async def _upsert_owned(self, model, values: dict, key: str, owner_key: str, platform: Platform) -> None:
        # The owner column is fixed at insert time; re-scrapes only refresh content fields
        update_keys = [k for k in values if k not in (key, owner_key)]
        try:
            await self._upsert(model, values, key, update_keys)
        except IntegrityError as e:
            raise _integrity_error(e, platform, values[owner_key]) from e

    # ---------- Instagram ----------

    async def upsert_creator(self, record: InstagramProfileRecord) -> None:
        values = record.columns()
        values["scraped_at"] = _utcnow()
        await self._upsert(InstagramCreator, values, "username")

    async def upsert_post(self, record: InstagramPostRecord, creator_username: str) -> None:
        values = record.model_dump()
        values["creator_username"] = creator_username
        await self._upsert_owned(InstagramPost, values, "id", "creator_username", Platform.INSTAGRAM)

    async def get_creator(self, username: str) -> Optional[dict]:
        async with self.db.session() as session:
            creator = await session.get(InstagramCreator, username)
            return _row_to_dict(creator) if creator else None

    async def list_creators(self) -> list[dict]:
        async with self.db.session() as session:
            result = await session.execute(
                select(InstagramCreator).order_by(InstagramCreator.followers.desc())
            )
            return [_row_to_dict(c) for c in result.scalars().all()]

    async def list_posts(self, username: str) -> list[dict]:
        async with self.db.session() as session:
            result = await session.execute(
                select(InstagramPost)
                .where(InstagramPost.creator_username == username)
                .order_by(InstagramPost.timestamp.desc())
            )
            return [_row_to_dict(p) for p in result.scalars().all()]

    async def list_creators_with_metrics(self) -> list[dict]:
        total_likes = func.coalesce(func.sum(InstagramPost.likes_count), 0)
        total_comments = func.coalesce(func.sum(InstagramPost.comments_count), 0)
        stmt = (
            select(InstagramCreator, total_likes.label("total_likes"), total_comments.label("total_comments"))
            .outerjoin(InstagramPost, InstagramPost.creator_username == InstagramCreator.username)
            .group_by(InstagramCreator.username)
            .order_by(InstagramCreator.followers.desc())
        )
        async with self.db.session() as session:
            rows = (await session.execute(stmt)).all()

        creators = []
        for creator, likes, comments in rows:
            data = _row_to_dict(creator)
            data["total_likes"] = int(likes)
            data["total_comments"] = int(comments)
            data["engagement_rate"] = engagement_rate(likes + comments, creator.followers)
            data["tier"] = classify_tier(creator.followers, Platform.INSTAGRAM)
            data["niches"] = extract_niches(creator.biography)
            creators.append(data)
        return creators

    async def get_stats(self) -> dict:
        stmt = select(
            func.count().label("total_creators"),
            func.coalesce(func.sum(InstagramCreator.followers), 0).label("total_followers"),
            func.avg(InstagramCreator.followers).label("avg_followers"),
            func.coalesce(func.max(InstagramCreator.followers), 0).label("max_followers"),
            func.coalesce(func.sum(cast(InstagramCreator.is_verified, Integer)), 0).label("verified_count"),
            func.coalesce(func.sum(InstagramCreator.posts_count), 0).label("total_posts"),
        ).select_from(InstagramCreator)
        async with self.db.session() as session:
            row = (await session.execute(stmt)).one()
        stats = dict(row._mapping)
        stats["avg_followers"] = round(stats["avg_followers"] or 0)
        return stats

    # ---------- YouTube ----------

    async def upsert_channel(self, record: YouTubeChannelRecord) -> None:
        values = record.model_dump()
        values["scraped_at"] = _utcnow()
        await self._upsert(YouTubeChannel, values, "channel_id")

    async def upsert_video(self, record: YouTubeVideoRecord, channel_id: str) -> None:
        values = record.model_dump()
        values["channel_id"] = channel_id
        await self._upsert_owned(YouTubeVideo, values, "video_id", "channel_id", Platform.YOUTUBE)

    async def get_channel(self, channel_id: str) -> Optional[dict]:
        async with self.db.session() as session:
            channel = await session.get(YouTubeChannel, channel_id)
            return _row_to_dict(channel) if channel else None

    async def list_videos(self, channel_id: str) -> list[dict]:
        async with self.db.session() as session:
            result = await session.execute(
                select(YouTubeVideo)
                .where(YouTubeVideo.channel_id == channel_id)
                .order_by(YouTubeVideo.published_at.desc())
            )
            return [_row_to_dict(v) for v in result.scalars().all()]

    async def list_channels_with_metrics(self) -> list[dict]:
        avg_views = func.coalesce(func.avg(YouTubeVideo.views), 0)
        avg_likes = func.coalesce(func.avg(YouTubeVideo.likes), 0)
        avg_comments = func.coalesce(func.avg(YouTubeVideo.comments), 0)
        stmt = (
            select(
                YouTubeChannel,
                avg_views.label("avg_views"),
                avg_likes.label("avg_likes"),
                avg_comments.label("avg_comments"),
            )
            .outerjoin(YouTubeVideo, YouTubeVideo.channel_id == YouTubeChannel.channel_id)
            .group_by(YouTubeChannel.channel_id)
            .order_by(YouTubeChannel.subscribers.desc())
        )
        async with self.db.session() as session:
            rows = (await session.execute(stmt)).all()

        channels = []
        for channel, views, likes, comments in rows:
            views, likes, comments = float(views), float(likes), float(comments)
            data = _row_to_dict(channel)
            data["avg_views"] = views
            data["avg_likes"] = likes
            data["avg_comments"] = comments
            # YouTube engagement is measured against views, not subscribers
            data["engagement_rate"] = engagement_rate(likes + comments, views)
            data["tier"] = classify_tier(channel.subscribers, Platform.YOUTUBE)
            data["niches"] = extract_niches(channel.description)
            channels.append(data)
        return channels

    async def get_youtube_stats(self) -> dict:
        stmt = select(
            func.count().label("total_channels"),
            func.coalesce(func.sum(YouTubeChannel.subscribers), 0).label("total_subscribers"),
            func.avg(YouTubeChannel.subscribers).label("avg_subscribers"),
            func.coalesce(func.max(YouTubeChannel.subscribers), 0).label("max_subscribers"),
            func.coalesce(func.sum(cast(YouTubeChannel.is_verified, Integer)), 0).label("verified_count"),
            func.coalesce(func.sum(YouTubeChannel.video_count), 0).label("total_videos"),
        ).select_from(YouTubeChannel)
        async with self.db.session() as session:
            row = (await session.execute(stmt)).one()
        stats = dict(row._mapping)
        stats["avg_subscribers"] = round(stats["avg_subscribers"] or 0)
        return stats

    # ---------- Campaigns ----------

    async def get_campaign_status(self, platform: Platform, creator_id: str) -> Optional[dict]:
        model, _, _, _ = _CAMPAIGN_TABLES[Platform(platform)]
        async with self.db.session() as session:
            row = await session.get(model, creator_id)
            return _row_to_dict(row) if row else None

    async def set_campaign_status(
        self,
        platform: Platform,
        creator_id: str,
        status: Any,
        notes: Optional[str] = None,
    ) -> dict:
        state = parse_campaign_state(status)
        platform = Platform(platform)
        model, key, _, _ = _CAMPAIGN_TABLES[platform]
        values = {
            key: creator_id,
            "status": state.value,
            "notes": notes or "",
            "updated_at": _utcnow(),
        }
        try:
            await self._upsert(model, values, key)
        except IntegrityError as e:
            raise _integrity_error(e, platform, creator_id) from e
        return values

    async def list_campaign_statuses(self, platform: Platform) -> list[dict]:
        platform = Platform(platform)
        model, key, creator_model, creator_key = _CAMPAIGN_TABLES[platform]
        if platform is Platform.INSTAGRAM:
            extra = [InstagramCreator.full_name, InstagramCreator.followers, InstagramCreator.profile_pic_url]
        else:
            extra = [YouTubeChannel.channel_name, YouTubeChannel.subscribers, YouTubeChannel.thumbnail_url]
        stmt = (
            select(model, *extra)
            .join(creator_model, getattr(creator_model, creator_key) == getattr(model, key))
            .order_by(model.updated_at.desc())
        )
        async with self.db.session() as session:
            rows = (await session.execute(stmt)).all()

        statuses = []
        for row in rows:
            data = _row_to_dict(row[0])
            for column, value in zip(extra, row[1:]):
                data[column.key] = value
            statuses.append(data)
        return statuses

    async def get_campaign_stats(self, platform: Platform) -> dict:
        model, _, _, _ = _CAMPAIGN_TABLES[Platform(platform)]
        async with self.db.session() as session:
            result = await session.execute(
                select(model.status, func.count()).group_by(model.status)
            )
            counts = dict(result.all())
        stats = {state: int(counts.get(state, 0)) for state in CampaignState.values()}
        stats["total"] = sum(int(c) for c in counts.values())
        return stats

    # ---------- Analysis ----------

    async def upsert_analysis_result(self, result: dict) -> None:
        values = {
            "id": result["id"],
            "platform": Platform(result["platform"]).value,
            "creator_id": result["creator_id"],
            "creator_name": result.get("creator_name"),
            "profile_scores": result.get("profile_scores") or {},
            "best_fit_profile": result.get("best_fit_profile"),
            "best_fit_score": int(result.get("best_fit_score") or 0),
            "reasoning": result.get("reasoning") or None,
            "analyzed_at": _utcnow(),
        }
        await self._upsert(AnalysisResult, values, "id")

    async def get_analysis_result(self, result_id: str) -> Optional[dict]:
        async with self.db.session() as session:
            row = await session.get(AnalysisResult, result_id)
            return _row_to_dict(row) if row else None

    async def list_analysis_results(self, platform: Optional[Platform] = None) -> list[dict]:
        stmt = select(AnalysisResult).order_by(AnalysisResult.best_fit_score.desc())
        if platform is not None:
            stmt = stmt.where(AnalysisResult.platform == Platform(platform).value)
        async with self.db.session() as session:
            result = await session.execute(stmt)
            return [_row_to_dict(r) for r in result.scalars().all()]

    async def get_analysis_stats(self) -> dict:
        avg_score = func.round(func.avg(AnalysisResult.best_fit_score), 1)
        by_profile_stmt = (
            select(
                AnalysisResult.best_fit_profile,
                func.count().label("count"),
                avg_score.label("avg_score"),
            )
            .group_by(AnalysisResult.best_fit_profile)
            .order_by(func.count().desc())
        )
        totals_stmt = select(func.count().label("total"), avg_score.label("avg_score")).select_from(AnalysisResult)
        async with self.db.session() as session:
            by_profile = [dict(r._mapping) for r in (await session.execute(by_profile_stmt)).all()]
            totals = (await session.execute(totals_stmt)).one()
        return {"by_profile": by_profile, "total": totals.total, "avg_score": totals.avg_score}

    async def clear_analysis_results(self) -> None:
        async with self.db.session() as session:
            await session.execute(delete(AnalysisResult))
            await session.commit()

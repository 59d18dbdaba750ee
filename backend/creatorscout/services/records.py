"""Normalization of raw scraper records into strict internal records.

Scraper payloads rename, omit or null out fields depending on the actor and
its version. Each ``from_raw`` maps every known spelling onto one field and
defaults what is missing; only the identity key is mandatory.
"""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class RecordError(ValueError):
    """A raw record cannot be normalized (usually a missing identity key)."""


def _first(raw: dict, *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return None


def _nested(raw: dict, parent: str, key: str) -> Any:
    value = raw.get(parent)
    if isinstance(value, dict):
        return value.get(key)
    return None


def _as_int(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _as_str(value: Any) -> Optional[str]:
    if value in (None, ""):
        return None
    return str(value)


def _as_list(value: Any) -> list:
    if isinstance(value, list):
        return value
    return []


class InstagramPostRecord(BaseModel):
    id: str
    type: Optional[str] = None
    short_code: Optional[str] = None
    caption: Optional[str] = None
    hashtags: list[str] = Field(default_factory=list)
    url: Optional[str] = None
    likes_count: int = 0
    comments_count: int = 0
    timestamp: Optional[str] = None
    display_url: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: dict) -> "InstagramPostRecord":
        post_id = _as_str(_first(raw, "id", "shortCode"))
        if not post_id:
            raise RecordError("Instagram post without id")
        return cls(
            id=post_id,
            type=_as_str(raw.get("type")),
            short_code=_as_str(raw.get("shortCode")),
            caption=_as_str(raw.get("caption")),
            hashtags=[str(tag) for tag in _as_list(raw.get("hashtags"))],
            url=_as_str(raw.get("url")),
            likes_count=_as_int(raw.get("likesCount")),
            comments_count=_as_int(raw.get("commentsCount")),
            timestamp=_as_str(raw.get("timestamp")),
            display_url=_as_str(raw.get("displayUrl")),
        )


class InstagramProfileRecord(BaseModel):
    username: str
    id: Optional[str] = None
    full_name: Optional[str] = None
    biography: Optional[str] = None
    followers: int = 0
    following: int = 0
    posts_count: int = 0
    is_verified: bool = False
    is_business: bool = False
    business_category: Optional[str] = None
    private: bool = False
    profile_pic_url: Optional[str] = None
    profile_pic_url_hd: Optional[str] = None
    external_urls: list = Field(default_factory=list)
    latest_posts: list[dict] = Field(default_factory=list)

    @classmethod
    def from_raw(cls, raw: dict) -> "InstagramProfileRecord":
        username = _as_str(raw.get("username"))
        if not username:
            raise RecordError("Instagram profile without username")
        return cls(
            username=username,
            id=_as_str(raw.get("id")),
            full_name=_as_str(raw.get("fullName")),
            biography=_as_str(raw.get("biography")),
            followers=_as_int(raw.get("followersCount")),
            following=_as_int(raw.get("followsCount")),
            posts_count=_as_int(raw.get("postsCount")),
            is_verified=bool(raw.get("verified")),
            is_business=bool(raw.get("isBusinessAccount")),
            business_category=_as_str(raw.get("businessCategoryName")),
            private=bool(raw.get("private")),
            profile_pic_url=_as_str(raw.get("profilePicUrl")),
            profile_pic_url_hd=_as_str(raw.get("profilePicUrlHD")),
            external_urls=_as_list(raw.get("externalUrls")),
            latest_posts=[p for p in _as_list(raw.get("latestPosts")) if isinstance(p, dict)],
        )

    def columns(self) -> dict:
        return self.model_dump(exclude={"latest_posts"})


class YouTubeChannelRecord(BaseModel):
    channel_id: str
    channel_name: Optional[str] = None
    handle: Optional[str] = None
    description: Optional[str] = None
    subscribers: int = 0
    total_views: int = 0
    video_count: int = 0
    is_verified: bool = False
    channel_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    country: Optional[str] = None
    joined_date: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: dict) -> "YouTubeChannelRecord":
        channel_id = _as_str(_first(raw, "channelId", "id"))
        if not channel_id:
            raise RecordError("YouTube channel without channel id")
        return cls(
            channel_id=channel_id,
            channel_name=_as_str(
                _nested(raw, "aboutChannelInfo", "channelName")
                or _first(raw, "channelName", "name", "title")
            ),
            handle=_as_str(
                _first(raw, "channelUsername", "handle", "userName")
                or _nested(raw, "aboutChannelInfo", "channelHandle")
            ),
            description=_as_str(
                _first(raw, "channelDescription")
                or _nested(raw, "aboutChannelInfo", "channelDescription")
                or raw.get("description")
            ),
            subscribers=_as_int(_first(raw, "numberOfSubscribers", "subscriberCount", "subscribers")),
            total_views=_as_int(_first(raw, "channelTotalViews", "viewCount", "totalViews")),
            video_count=_as_int(_first(raw, "channelTotalVideos", "videoCount", "videos")),
            is_verified=bool(_first(raw, "isChannelVerified", "isVerified")),
            channel_url=_as_str(_first(raw, "inputChannelUrl", "channelUrl", "url")),
            thumbnail_url=_as_str(_first(raw, "channelAvatarUrl", "thumbnailUrl", "profilePicUrl")),
            country=_as_str(
                _first(raw, "channelLocation", "country")
                or _nested(raw, "aboutChannelInfo", "channelLocation")
            ),
            joined_date=_as_str(
                _first(raw, "channelJoinedDate", "joinedDate")
                or _nested(raw, "aboutChannelInfo", "channelJoinedDate")
            ),
        )


class YouTubeVideoRecord(BaseModel):
    video_id: str
    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    views: int = 0
    likes: int = 0
    comments: int = 0
    duration: Optional[str] = None
    published_at: Optional[str] = None
    thumbnail_url: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: dict) -> "YouTubeVideoRecord":
        video_id = _as_str(_first(raw, "videoId", "id"))
        if not video_id:
            raise RecordError("YouTube video without id")
        return cls(
            video_id=video_id,
            title=_as_str(raw.get("title")),
            description=_as_str(raw.get("description")),
            url=_as_str(raw.get("url")),
            views=_as_int(_first(raw, "viewCount", "views")),
            likes=_as_int(_first(raw, "likeCount", "likes")),
            comments=_as_int(_first(raw, "commentCount", "commentsCount", "comments")),
            duration=_as_str(raw.get("duration")),
            published_at=_as_str(_first(raw, "publishedAt", "date")),
            thumbnail_url=_as_str(raw.get("thumbnailUrl")),
        )

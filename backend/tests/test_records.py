"""
Raw scraper item -> internal record normalization.
"""

from __future__ import annotations

import pytest

from creatorscout.services.records import (
    InstagramPostRecord,
    InstagramProfileRecord,
    RecordError,
    YouTubeChannelRecord,
    YouTubeVideoRecord,
)
from samples import make_instagram_profile, make_youtube_item


class TestInstagramProfileRecord:
    def test_maps_scraper_fields(self):
        record = InstagramProfileRecord.from_raw(make_instagram_profile("alice", 1234))
        assert record.username == "alice"
        assert record.full_name == "Alice"
        assert record.followers == 1234
        assert record.following == 321
        assert record.is_business is True
        assert record.profile_pic_url == "https://cdn.example.com/alice.jpg"

    def test_missing_optional_fields_get_defaults(self):
        """Only the username is mandatory."""
        record = InstagramProfileRecord.from_raw({"username": "bare"})
        assert record.followers == 0
        assert record.full_name is None
        assert record.is_verified is False
        assert record.external_urls == []
        assert record.latest_posts == []

    @pytest.mark.parametrize("raw", [{}, {"username": ""}, {"username": None, "followersCount": 10}])
    def test_username_is_required(self, raw):
        with pytest.raises(RecordError):
            InstagramProfileRecord.from_raw(raw)

    def test_null_and_garbage_counters_become_zero(self):
        record = InstagramProfileRecord.from_raw(
            {"username": "x", "followersCount": None, "followsCount": "n/a", "postsCount": "17"}
        )
        assert (record.followers, record.following, record.posts_count) == (0, 0, 17)

    def test_columns_exclude_latest_posts(self):
        record = InstagramProfileRecord.from_raw(make_instagram_profile(posts=[{"id": "1"}]))
        assert len(record.latest_posts) == 1
        assert "latest_posts" not in record.columns()


class TestInstagramPostRecord:
    def test_short_code_stands_in_for_missing_id(self):
        record = InstagramPostRecord.from_raw({"shortCode": "abc", "likesCount": 3})
        assert record.id == "abc"
        assert record.likes_count == 3
        assert record.comments_count == 0

    def test_id_is_required(self):
        with pytest.raises(RecordError):
            InstagramPostRecord.from_raw({"caption": "orphan"})


class TestYouTubeRecords:
    def test_channel_alternate_keys(self):
        record = YouTubeChannelRecord.from_raw({
            "id": "UCalt",
            "aboutChannelInfo": {"channelName": "Nested Name", "channelDescription": "about text"},
            "subscriberCount": "2500",
        })
        assert record.channel_id == "UCalt"
        assert record.channel_name == "Nested Name"
        assert record.description == "about text"
        assert record.subscribers == 2500

    def test_channel_from_scraper_item(self):
        record = YouTubeChannelRecord.from_raw(make_youtube_item("UC9", 75_000))
        assert record.channel_id == "UC9"
        assert record.subscribers == 75_000
        assert record.handle == "uc9"
        assert record.thumbnail_url == "https://yt.example.com/UC9.jpg"

    def test_channel_id_is_required(self):
        with pytest.raises(RecordError):
            YouTubeChannelRecord.from_raw({"channelName": "nameless"})

    def test_video_counter_spellings(self):
        a = YouTubeVideoRecord.from_raw({"videoId": "v", "views": 10, "likeCount": 2, "comments": 1, "date": "d"})
        b = YouTubeVideoRecord.from_raw({"id": "v", "viewCount": 10, "likes": 2, "commentCount": 1, "publishedAt": "d"})
        assert a == b

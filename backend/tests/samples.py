"""Raw scraper items shaped like the Apify actor outputs."""

from __future__ import annotations


def make_instagram_profile(username: str = "aifilmmaker", followers: int = 100_000, posts=None, **extra) -> dict:
    """Raw item shaped like the instagram-profile-scraper output."""
    raw = {
        "id": f"id-{username}",
        "username": username,
        "fullName": username.title(),
        "biography": "I'm an AI filmmaker and designer",
        "followersCount": followers,
        "followsCount": 321,
        "postsCount": 42,
        "verified": False,
        "isBusinessAccount": True,
        "businessCategoryName": "Video Creator",
        "private": False,
        "profilePicUrl": f"https://cdn.example.com/{username}.jpg",
        "profilePicUrlHD": f"https://cdn.example.com/{username}_hd.jpg",
        "externalUrls": [{"url": "https://example.com"}],
        "latestPosts": posts if posts is not None else [],
    }
    raw.update(extra)
    return raw


def make_instagram_post(post_id: str, likes: int = 0, comments: int = 0, **extra) -> dict:
    raw = {
        "id": post_id,
        "type": "Video",
        "shortCode": f"sc{post_id}",
        "caption": "new workflow #higgsfield",
        "hashtags": ["higgsfield"],
        "url": f"https://www.instagram.com/p/sc{post_id}/",
        "likesCount": likes,
        "commentsCount": comments,
        "timestamp": "2025-01-01T12:00:00.000Z",
        "displayUrl": f"https://cdn.example.com/p/{post_id}.jpg",
    }
    raw.update(extra)
    return raw


def make_youtube_item(channel_id: str = "UC123", subscribers: int = 50_000, video_id=None, **extra) -> dict:
    """Raw item shaped like the youtube-channel-scraper output (one per video)."""
    raw = {
        "channelId": channel_id,
        "channelName": f"Channel {channel_id}",
        "channelUsername": channel_id.lower(),
        "channelDescription": "AI video tutorials and editing workflow breakdowns",
        "numberOfSubscribers": subscribers,
        "channelTotalViews": 1_000_000,
        "channelTotalVideos": 120,
        "isChannelVerified": False,
        "inputChannelUrl": f"https://www.youtube.com/channel/{channel_id}",
        "channelAvatarUrl": f"https://yt.example.com/{channel_id}.jpg",
        "channelLocation": "US",
        "channelJoinedDate": "Jan 1, 2020",
    }
    if video_id:
        raw.update({
            "id": video_id,
            "title": f"Video {video_id}",
            "url": f"https://www.youtube.com/watch?v={video_id}",
            "viewCount": 1000,
            "likes": 50,
            "commentsCount": 10,
            "duration": "10:00",
            "date": "2025-01-01",
        })
    raw.update(extra)
    return raw

"""Read-time creator metrics: engagement rate, audience tier and niche tags.

Nothing here is persisted. The store recomputes these from raw counters on
every read so they always agree with the latest scrape.
"""
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from creatorscout.models.enums import Platform


# Lower bounds (inclusive), highest first
TIER_THRESHOLDS = {
    Platform.INSTAGRAM: [
        ("macro", 200_000),
        ("mid-tier", 50_000),
        ("micro", 10_000),
    ],
    Platform.YOUTUBE: [
        ("macro", 1_000_000),
        ("mid-tier", 100_000),
        ("micro", 10_000),
    ],
}

NICHE_KEYWORDS = {
    "AI": ["ai", "artificial intelligence", "machine learning", "ml", "deep learning", "gpt", "neural"],
    "Video": ["video", "film", "filmmaker", "cinema", "vfx", "animation", "motion"],
    "Design": ["design", "designer", "graphic", "ui", "ux", "illustration", "illustrator"],
    "Fashion": ["fashion", "style", "stylist", "model", "outfit", "clothing", "beauty"],
    "Marketing": ["marketing", "growth", "brand", "ads", "social media", "digital marketing"],
    "Creator": ["creator", "content creator", "influencer", "creative"],
    "Photography": ["photo", "photographer", "photography", "portrait", "landscape"],
    "Music": ["music", "musician", "producer", "dj", "singer", "songwriter"],
    "Tech": ["tech", "developer", "software", "coding", "programming", "startup", "saas"],
    "Fitness": ["fitness", "gym", "workout", "health", "nutrition", "wellness", "yoga"],
}


def round_rate(value: float) -> float:
    """Round to 2 decimals, halves away from zero (matches SQL ROUND)."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def engagement_rate(interactions: float, audience: Optional[float]) -> float:
    """Percentage of ``audience`` represented by ``interactions``.

    An empty or zero audience yields 0 instead of dividing by zero.
    """
    if not audience or audience <= 0:
        return 0.0
    return round_rate(100.0 * (interactions or 0) / audience)


def classify_tier(audience_size: Optional[int], platform: Platform = Platform.INSTAGRAM) -> str:
    audience_size = audience_size or 0
    for tier, lower_bound in TIER_THRESHOLDS[Platform(platform)]:
        if audience_size >= lower_bound:
            return tier
    return "nano"


def extract_niches(text: Optional[str]) -> list[str]:
    """Every niche with at least one keyword appearing in ``text``.

    Matching is a case-insensitive substring test; niches are independent so
    a bio can land in several of them.
    """
    if not text:
        return []
    lowered = text.lower()
    return [
        niche
        for niche, keywords in NICHE_KEYWORDS.items()
        if any(kw in lowered for kw in keywords)
    ]

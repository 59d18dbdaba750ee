"""Batch scoring of every stored creator against the ideal creator profiles.

Creators from both platforms are snapshotted once, split into fixed-size
batches and sent to the oracle one batch at a time. Each verdict is matched
back to its creator, its best fit is recomputed from the scores, and the
result is upserted as ``<platform>:<creator id>``.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence

from creatorscout.db.store import CreatorStore
from creatorscout.models.enums import Platform
from creatorscout.services.oracle import OracleError, OracleVerdict
from creatorscout.services.profiles import IdealProfile, build_profile_descriptions

logger = logging.getLogger(__name__)

BIO_LIMIT = 300


class ScoringOracle(Protocol):
    async def score_batch(
        self, batch: list[dict], profile_descriptions: str, profile_names: list[str]
    ) -> list[OracleVerdict]:
        ...


@dataclass
class AnalysisProgress:
    batch: int  # 1-based
    total_batches: int
    analyzed: int
    total: int


@dataclass
class AnalysisSummary:
    success: bool
    analyzed_count: int
    total_creators: int = 0
    total_batches: int = 0
    skipped_batches: int = 0
    duration_ms: int = 0
    cancelled: bool = False


ProgressCallback = Callable[[AnalysisProgress], None]


def partition(items: Sequence, size: int) -> list[list]:
    """Contiguous batches of ``size``; only the last one may be shorter."""
    if size < 1:
        raise ValueError("batch size must be a positive integer")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def prepare_creator(creator: dict) -> dict:
    """Platform-agnostic view of a creator row, as shown to the oracle."""
    niches = ", ".join(creator.get("niches") or [])
    if creator.get("channel_id"):
        return {
            "id": creator["channel_id"],
            "name": creator.get("channel_name") or creator.get("handle") or "Unknown",
            "platform": Platform.YOUTUBE.value,
            "bio": (creator.get("description") or "")[:BIO_LIMIT],
            "followers": creator.get("subscribers") or 0,
            "engagement_rate": creator.get("engagement_rate") or 0,
            "niches": niches,
        }
    return {
        "id": creator["username"],
        "name": creator.get("full_name") or creator["username"],
        "platform": Platform.INSTAGRAM.value,
        "bio": (creator.get("biography") or "")[:BIO_LIMIT],
        "followers": creator.get("followers") or 0,
        "engagement_rate": creator.get("engagement_rate") or 0,
        "niches": niches,
    }


def order_scores(scores: dict[str, int], profile_names: Sequence[str]) -> dict[str, int]:
    """Keep only known profiles, in the order the profile sheet declares them."""
    return {name: scores[name] for name in profile_names if name in scores}


def pick_best_fit(scores: dict[str, int], claimed: str, profile_names: Sequence[str]) -> tuple[str, int]:
    """Best-fit profile and score for one verdict.

    Scores win whenever there are any: profiles are visited in declared order
    and the first strictly greater score takes the lead, so ties go to the
    earlier profile. The oracle's own ``best_fit`` label is only used when it
    returned no usable scores, and then with a score of 0.
    """
    best_name: Optional[str] = None
    best_score = 0
    for name in profile_names:
        if name not in scores:
            continue
        if best_name is None or scores[name] > best_score:
            best_name, best_score = name, scores[name]
    if best_name is None:
        return claimed, 0
    return best_name, best_score


class AnalysisPipeline:
    def __init__(
        self,
        store: CreatorStore,
        oracle: ScoringOracle,
        profiles: list[IdealProfile],
        batch_size: int = 10,
        max_retries: int = 2,
        retry_delay: float = 2.0,
    ):
        if not profiles:
            raise ValueError("At least one ideal profile is required")
        self.store = store
        self.oracle = oracle
        self.profiles = profiles
        self.profile_names = [p.name for p in profiles]
        self.profile_descriptions = build_profile_descriptions(profiles)
        self.batch_size = batch_size
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    async def load_creators(self) -> list[dict]:
        instagram = await self.store.list_creators_with_metrics()
        youtube = await self.store.list_channels_with_metrics()
        return instagram + youtube

    async def _score(self, batch: list[dict], batch_number: int) -> list[OracleVerdict]:
        attempt = 0
        while True:
            try:
                return await self.oracle.score_batch(batch, self.profile_descriptions, self.profile_names)
            except OracleError as e:
                if not e.transient or attempt >= self.max_retries:
                    raise
                delay = self.retry_delay * (2 ** attempt)
                attempt += 1
                logger.warning(
                    "Batch %d: oracle unavailable (%s), retry %d/%d in %.1fs",
                    batch_number, e, attempt, self.max_retries, delay,
                )
                await asyncio.sleep(delay)

    async def _save_verdicts(self, batch: list[dict], verdicts: list[OracleVerdict]) -> int:
        by_id = {c["id"]: c for c in batch}
        seen = set()
        saved = 0
        for verdict in verdicts:
            creator = by_id.get(verdict.creator_id)
            if creator is None:
                logger.debug("Ignoring verdict for unknown creator id %s", verdict.creator_id)
                continue
            if verdict.creator_id in seen:
                logger.debug("Ignoring duplicate verdict for creator id %s", verdict.creator_id)
                continue
            seen.add(verdict.creator_id)

            scores = order_scores(verdict.scores, self.profile_names)
            best_profile, best_score = pick_best_fit(scores, verdict.best_fit, self.profile_names)
            await self.store.upsert_analysis_result({
                "id": f"{creator['platform']}:{creator['id']}",
                "platform": creator["platform"],
                "creator_id": creator["id"],
                "creator_name": creator["name"],
                "profile_scores": scores,
                "best_fit_profile": best_profile,
                "best_fit_score": best_score,
                "reasoning": verdict.reasoning,
            })
            saved += 1
        return saved

    async def run(
        self,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AnalysisSummary:
        creators = await self.load_creators()
        if not creators:
            return AnalysisSummary(success=True, analyzed_count=0)

        started = time.monotonic()
        batches = partition(creators, self.batch_size)
        analyzed = 0
        skipped = 0
        cancelled = False

        for number, batch_creators in enumerate(batches, start=1):
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                logger.info("Analysis cancelled before batch %d/%d", number, len(batches))
                break
            if on_progress:
                on_progress(AnalysisProgress(number, len(batches), analyzed, len(creators)))

            batch = [prepare_creator(c) for c in batch_creators]
            try:
                verdicts = await self._score(batch, number)
            except OracleError as e:
                skipped += 1
                logger.error("Skipping batch %d/%d: %s", number, len(batches), e)
                continue
            analyzed += await self._save_verdicts(batch, verdicts)
            logger.info("Batch %d/%d done, %d/%d creators analyzed", number, len(batches), analyzed, len(creators))

        return AnalysisSummary(
            # a run where every batch was skipped scored nothing
            success=not cancelled and skipped < len(batches),
            analyzed_count=analyzed,
            total_creators=len(creators),
            total_batches=len(batches),
            skipped_batches=skipped,
            duration_ms=int((time.monotonic() - started) * 1000),
            cancelled=cancelled,
        )

"""
Analysis pipeline: batching, best-fit selection, retries, failure isolation,
progress reporting and cancellation, with a scripted oracle.
"""

from __future__ import annotations

import asyncio
import math

import pytest

from creatorscout.services.analysis import (
    BIO_LIMIT,
    AnalysisPipeline,
    order_scores,
    partition,
    pick_best_fit,
    prepare_creator,
)
from creatorscout.services.ingest import ChannelBundle, IngestReconciler
from creatorscout.services.oracle import OracleError, OracleResponseError, OracleUnavailableError, OracleVerdict
from creatorscout.services.profiles import IdealProfile
from creatorscout.services.records import YouTubeChannelRecord
from samples import make_instagram_profile, make_youtube_item

PROFILES = [IdealProfile("A", "first"), IdealProfile("B", "second"), IdealProfile("C", "third")]


class ScriptedOracle:
    """Scores every creator in a batch; ``failures`` maps call number -> exception."""

    def __init__(self, failures=None, extra_ids=(), scores=None):
        self.failures = failures or {}
        self.extra_ids = extra_ids
        self.scores = scores or {"A": 3, "B": 8, "C": 5}
        self.calls = 0
        self.batches: list[list[str]] = []
        self.in_flight = 0
        self.peak = 0

    async def score_batch(self, batch, profile_descriptions, profile_names):
        self.calls += 1
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(0)
            if self.calls in self.failures:
                raise self.failures[self.calls]
            self.batches.append([c["id"] for c in batch])
            ids = [c["id"] for c in batch] + list(self.extra_ids)
            return [OracleVerdict(i, dict(self.scores), "A", f"reason {i}") for i in ids]
        finally:
            self.in_flight -= 1


async def seed_instagram(store, count: int) -> list[str]:
    usernames = [f"user{i:02d}" for i in range(count)]
    await IngestReconciler(store).import_instagram_profiles(
        make_instagram_profile(u, followers=1000 * (count - i)) for i, u in enumerate(usernames)
    )
    return usernames


def pipeline(store, oracle, batch_size=5, max_retries=2) -> AnalysisPipeline:
    return AnalysisPipeline(store, oracle, PROFILES, batch_size=batch_size, max_retries=max_retries, retry_delay=0)


# =============================================================================
# PURE HELPERS
# =============================================================================


class TestPartition:
    @pytest.mark.parametrize("n", range(0, 23))
    def test_contiguous_batches(self, n):
        """ceil(N/B) non-empty batches that concatenate back to the input."""
        items = list(range(n))
        batches = partition(items, 5)
        assert len(batches) == math.ceil(n / 5)
        assert all(batches)
        assert all(len(b) == 5 for b in batches[:-1])
        assert [x for b in batches for x in b] == items

    @pytest.mark.parametrize("size", [0, -2])
    def test_size_must_be_positive(self, size):
        with pytest.raises(ValueError):
            partition([1, 2], size)


class TestBestFit:
    def test_highest_score_wins_ties_go_to_earlier_profile(self):
        assert pick_best_fit({"A": 7, "B": 9, "C": 9}, "A", ["A", "B", "C"]) == ("B", 9)

    def test_independent_of_dict_order(self):
        assert pick_best_fit({"C": 9, "B": 9, "A": 7}, "C", ["A", "B", "C"]) == ("B", 9)

    def test_scores_override_claimed_label(self):
        assert pick_best_fit({"A": 2, "B": 6}, "A", ["A", "B"]) == ("B", 6)

    def test_all_zero_picks_first_declared(self):
        assert pick_best_fit({"B": 0, "A": 0}, "B", ["A", "B"]) == ("A", 0)

    def test_empty_scores_fall_back_to_claimed(self):
        assert pick_best_fit({}, "B", ["A", "B"]) == ("B", 0)

    def test_order_scores_drops_unknown_profiles(self):
        assert list(order_scores({"Z": 4, "B": 2, "A": 1}, ["A", "B"]).items()) == [("A", 1), ("B", 2)]


class TestPrepareCreator:
    def test_instagram(self):
        creator = {
            "username": "alice", "full_name": None, "biography": "x" * 500,
            "followers": 1200, "engagement_rate": 3.5, "niches": ["AI", "Video"],
        }
        prepared = prepare_creator(creator)
        assert prepared["id"] == "alice"
        assert prepared["name"] == "alice"
        assert prepared["platform"] == "instagram"
        assert len(prepared["bio"]) == BIO_LIMIT
        assert prepared["niches"] == "AI, Video"

    def test_youtube(self):
        prepared = prepare_creator({"channel_id": "UC1", "channel_name": "Chan", "subscribers": 9, "niches": []})
        assert prepared == {
            "id": "UC1", "name": "Chan", "platform": "youtube", "bio": "",
            "followers": 9, "engagement_rate": 0, "niches": "",
        }


# =============================================================================
# PIPELINE
# =============================================================================


class TestAnalysisPipeline:
    async def test_requires_profiles(self, store):
        with pytest.raises(ValueError):
            AnalysisPipeline(store, ScriptedOracle(), [])

    async def test_empty_population_short_circuits(self, store):
        oracle = ScriptedOracle()
        summary = await pipeline(store, oracle).run()
        assert summary.success
        assert summary.analyzed_count == 0
        assert oracle.calls == 0

    async def test_scores_everyone_and_ignores_unknown_ids(self, store):
        await seed_instagram(store, 12)
        oracle = ScriptedOracle(extra_ids=["hallucinated"])

        summary = await pipeline(store, oracle).run()

        assert summary.success
        assert summary.analyzed_count == 12
        assert summary.total_batches == 3
        assert [len(b) for b in oracle.batches] == [5, 5, 2]
        results = await store.list_analysis_results()
        assert len(results) == 12
        assert all(r["id"].startswith("instagram:user") for r in results)

        row = await store.get_analysis_result("instagram:user00")
        assert row["best_fit_profile"] == "B"
        assert row["best_fit_score"] == 8
        assert row["profile_scores"] == {"A": 3, "B": 8, "C": 5}
        assert row["reasoning"] == "reason user00"

    async def test_batches_run_one_at_a_time(self, store):
        await seed_instagram(store, 12)
        oracle = ScriptedOracle()
        await pipeline(store, oracle).run()
        assert oracle.peak == 1

    async def test_both_platforms_are_scored(self, store):
        await seed_instagram(store, 2)
        channel = YouTubeChannelRecord.from_raw(make_youtube_item("UC1"))
        await IngestReconciler(store).import_youtube_channels([ChannelBundle(channel=channel)])

        summary = await pipeline(store, ScriptedOracle()).run()

        assert summary.analyzed_count == 3
        assert (await store.get_analysis_result("youtube:UC1"))["creator_name"] == "Channel UC1"

    async def test_failed_batch_is_skipped(self, store):
        """A non-transient failure costs one batch, not the run."""
        await seed_instagram(store, 12)
        oracle = ScriptedOracle(failures={2: OracleResponseError("garbled")})

        summary = await pipeline(store, oracle).run()

        assert summary.success
        assert summary.skipped_batches == 1
        assert summary.analyzed_count == 7
        assert oracle.calls == 3

    async def test_transient_failure_is_retried(self, store):
        await seed_instagram(store, 6)
        oracle = ScriptedOracle(failures={1: OracleUnavailableError("429")})

        summary = await pipeline(store, oracle).run()

        assert summary.analyzed_count == 6
        assert summary.skipped_batches == 0
        assert oracle.calls == 3

    async def test_retries_are_bounded(self, store):
        await seed_instagram(store, 3)
        oracle = ScriptedOracle(failures={n: OracleUnavailableError("down") for n in (1, 2, 3)})

        summary = await pipeline(store, oracle, max_retries=2).run()

        assert oracle.calls == 3
        assert summary.skipped_batches == 1
        assert summary.analyzed_count == 0
        assert not summary.success

    async def test_progress_is_one_based_and_monotonic(self, store):
        await seed_instagram(store, 12)
        seen = []

        await pipeline(store, ScriptedOracle()).run(on_progress=seen.append)

        assert [(p.batch, p.total_batches, p.analyzed, p.total) for p in seen] == [
            (1, 3, 0, 12),
            (2, 3, 5, 12),
            (3, 3, 10, 12),
        ]

    async def test_rerun_overwrites_results(self, store):
        await seed_instagram(store, 3)
        await pipeline(store, ScriptedOracle(scores={"A": 9})).run()
        await pipeline(store, ScriptedOracle(scores={"C": 4})).run()

        results = await store.list_analysis_results()
        assert len(results) == 3
        assert {r["best_fit_profile"] for r in results} == {"C"}

    async def test_cancel_between_batches(self, store):
        await seed_instagram(store, 12)
        cancel = asyncio.Event()

        def on_progress(progress):
            if progress.batch == 2:
                cancel.set()

        summary = await pipeline(store, ScriptedOracle()).run(on_progress=on_progress, cancel_event=cancel)

        # batch 2 was already underway when the event was set
        assert summary.cancelled
        assert not summary.success
        assert summary.analyzed_count == 10

    async def test_every_batch_failing_is_not_a_success(self, store):
        """A rejected API key skips every batch; the run must report failure."""
        await seed_instagram(store, 12)
        oracle = ScriptedOracle(failures={n: OracleError("401 invalid api key") for n in (1, 2, 3)})

        summary = await pipeline(store, oracle).run()

        assert not summary.success
        assert not summary.cancelled
        assert summary.skipped_batches == 3
        assert summary.total_batches == 3
        assert summary.analyzed_count == 0
        assert await store.list_analysis_results() == []

    async def test_duplicate_verdicts_count_once(self, store):
        """Repeated creator ids in one reply: the first verdict is kept, the rest ignored."""
        await seed_instagram(store, 4)

        class RepeatingOracle:
            async def score_batch(self, batch, profile_descriptions, profile_names):
                first = [OracleVerdict(c["id"], {"A": 9}, "A", "first") for c in batch]
                again = [OracleVerdict(c["id"], {"C": 2}, "C", "second") for c in batch]
                return first + again

        progress = []
        summary = await pipeline(store, RepeatingOracle(), batch_size=2).run(on_progress=progress.append)

        assert summary.analyzed_count == 4
        assert summary.total_creators == 4
        assert [p.analyzed for p in progress] == [0, 2]
        results = await store.list_analysis_results()
        assert len(results) == 4
        assert {(r["best_fit_profile"], r["reasoning"]) for r in results} == {("A", "first")}

"""Command line entry point: scrape, import, analyze, serve."""
import argparse
import asyncio
import logging
import sys
from typing import Optional

from creatorscout.config import Settings, get_settings
from creatorscout.db.database import Database
from creatorscout.db.store import CreatorStore
from creatorscout.services.analysis import AnalysisPipeline, AnalysisProgress
from creatorscout.services.avatars import AvatarService
from creatorscout.services.ingest import IngestReconciler
from creatorscout.services.instagram import InstagramScraper
from creatorscout.services.oracle import OpenAIScoringOracle
from creatorscout.services.profiles import load_ideal_profiles
from creatorscout.services.runner import count_failures
from creatorscout.services.youtube import YouTubeScraper

logger = logging.getLogger("creatorscout")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


async def _scrape_instagram(settings: Settings, store: CreatorStore, args) -> int:
    result = await InstagramScraper(store, settings=settings).collect(args.hashtag, args.limit)
    logger.info(
        "Instagram: %d posts, %d creators scraped, %d imported, %d avatar failures",
        result.posts_found, result.profiles, result.ingest.creators, result.avatar_failures,
    )
    return 0


async def _scrape_youtube(settings: Settings, store: CreatorStore, args) -> int:
    result = await YouTubeScraper(store, settings=settings).collect()
    logger.info(
        "YouTube: %d videos, %d channels found, %d kept, %d imported, %d avatar failures",
        result.videos_found, result.channels_found, result.channels_kept,
        result.ingest.creators, result.avatar_failures,
    )
    return 0


async def _import_instagram(settings: Settings, store: CreatorStore, args) -> int:
    summary = await IngestReconciler(store).import_instagram_file(args.path)
    logger.info("Imported %d creators and %d posts", summary.creators, summary.content_items)

    creators = await store.list_creators()
    outcomes = await AvatarService().download_avatars(
        [(c["username"], c["profile_pic_url"]) for c in creators],
        settings.avatars_dir,
        concurrency=settings.download_concurrency,
    )
    logger.info("Avatar download complete (%d failed)", count_failures(outcomes))
    return 0


async def _analyze(settings: Settings, store: CreatorStore, args) -> int:
    profiles = load_ideal_profiles(args.profiles or settings.ideal_profiles_csv)
    pipeline = AnalysisPipeline(
        store,
        OpenAIScoringOracle(),
        profiles,
        batch_size=args.batch_size or settings.analysis_batch_size,
        max_retries=settings.oracle_max_retries,
        retry_delay=settings.oracle_retry_delay,
    )

    def report(progress: AnalysisProgress) -> None:
        logger.info(
            "Batch %d/%d (%d/%d analyzed)",
            progress.batch, progress.total_batches, progress.analyzed, progress.total,
        )

    summary = await pipeline.run(on_progress=report)
    logger.info(
        "Analysis finished: %d creators analyzed in %.1fs, %d batches skipped",
        summary.analyzed_count, summary.duration_ms / 1000, summary.skipped_batches,
    )
    return 0 if summary.success else 1


COMMANDS = {
    "scrape-instagram": _scrape_instagram,
    "scrape-youtube": _scrape_youtube,
    "import-instagram": _import_instagram,
    "analyze": _analyze,
}


async def _run(command: str, settings: Settings, args) -> int:
    async with Database(settings.database_url) as database:
        return await COMMANDS[command](settings, CreatorStore(database), args)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="creatorscout", description="Creator discovery and scoring")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("scrape-instagram", help="Scrape hashtag posts and their owners' profiles")
    p.add_argument("--hashtag", action="append", help="Hashtag to scrape (repeatable)")
    p.add_argument("--limit", type=int, help="Max hashtag posts")

    sub.add_parser("scrape-youtube", help="Search YouTube and scrape matching channels")

    p = sub.add_parser("import-instagram", help="Import a saved profile-scraper JSON file")
    p.add_argument("path")

    p = sub.add_parser("analyze", help="Score every creator against the ideal profiles")
    p.add_argument("--profiles", help="Path to the ideal profiles CSV")
    p.add_argument("--batch-size", type=int)

    p = sub.add_parser("serve", help="Run the dashboard API")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=3000)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    if args.command == "serve":
        import uvicorn

        uvicorn.run("creatorscout.main:app", host=args.host, port=args.port, log_level=settings.log_level.lower())
        return 0

    return asyncio.run(_run(args.command, settings, args))


if __name__ == "__main__":
    sys.exit(main())

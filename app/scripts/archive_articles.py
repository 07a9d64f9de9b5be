import argparse
import asyncio
import logging
import sys
from app.core.config import settings
from app.dependencies import build_services
from app.schemas.archive import ArchivalResult
from app.services.archive import archive_old_articles

logger = logging.getLogger(__name__)


async def run(batch_size: int, dry_run: bool) -> ArchivalResult:
    services = await build_services(settings)
    try:
        return await archive_old_articles(services.store, batch_size=batch_size, dry_run=dry_run)
    finally:
        await services.aclose()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Move day-old ingested articles into the archive tables")
    parser.add_argument("--batch-size", type=int, default=50, help="Maximum number of articles to archive")
    parser.add_argument("--dry-run", action="store_true", help="Only report how many articles would be archived")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    try:
        result = asyncio.run(run(args.batch_size, args.dry_run))
    except Exception as e:
        logger.error(f"Archival script failed: {e}")
        return 1

    print(f"Articles processed: {result.processed}")
    print(f"Articles archived: {result.archived}")
    print(f"Articles failed: {result.failed}")
    print(f"AI scores archived: {result.scores_archived}")
    for error in result.errors:
        print(f"Article {error.article_id} ({error.state}): {error.error}", file=sys.stderr)

    if result.failed:
        print(f"{result.failed} article(s) failed to archive")
        return 1
    print("All articles archived successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())

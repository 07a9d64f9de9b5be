import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from app.core.exceptions import ArchivalError
from app.schemas.archive import ArchivalResult, ArchiveFailure
from app.services.store import MediaStore

logger = logging.getLogger(__name__)

ARCHIVE_AFTER = timedelta(days=1)


class ArchiveState(str, Enum):
    PENDING = "pending"
    COPIED = "copied"
    SCORES_COPIED = "scores_copied"
    SCORES_DELETED = "scores_deleted"
    DELETED = "deleted"


async def archive_old_articles(
    store: MediaStore,
    batch_size: int = 50,
    dry_run: bool = False,
) -> ArchivalResult:
    """Moves ingested articles older than a day, and their scores, to the archive tables.

    Each article goes through copy, copy scores, delete scores, delete media
    in that order. Steps are not transactional: a failure stops that article
    where it is, gets recorded in the result, and the next article proceeds.

    Args:
        store (MediaStore): Database access.
        batch_size (int): Maximum number of articles handled in one call.
        dry_run (bool): Only count the candidates.

    Raises:
        ArchivalError: If the candidate articles cannot be queried.

    Returns:
        ArchivalResult: Counters and per-article errors.
    """
    result = ArchivalResult()
    cutoff = datetime.now(timezone.utc) - ARCHIVE_AFTER

    logger.info(f"[Archive] Cutoff date: {cutoff.isoformat()} | batch size: {batch_size} | dry run: {dry_run}")

    try:
        candidates = await store.find_archivable_media(cutoff, batch_size)
    except Exception as e:
        logger.error(f"[Archive] Query error: {e}")
        raise ArchivalError(f"Failed to query old articles: {e}") from e

    if not candidates:
        logger.info("[Archive] No articles to archive")
        return result

    result.processed = len(candidates)
    logger.info(f"[Archive] Found {len(candidates)} articles to archive")

    if dry_run:
        logger.info(f"[Archive] DRY RUN - would archive: {[str(a.id) for a in candidates]}")
        return result

    for article in candidates:
        state = ArchiveState.PENDING
        try:
            scores = await store.list_scores(article.id)

            await store.insert_archived_media(article)
            state = ArchiveState.COPIED
            logger.debug(f"[Archive] {article.id}: {state.value}")

            if scores:
                await store.insert_archived_scores(scores)
                result.scores_archived += len(scores)
            else:
                logger.warning(f"[Archive] No AI scores for article: {article.id}")
            state = ArchiveState.SCORES_COPIED
            logger.debug(f"[Archive] {article.id}: {state.value}")

            # Children first, and only the rows that were copied
            if scores:
                await store.delete_scores([score.id for score in scores])
            state = ArchiveState.SCORES_DELETED
            logger.debug(f"[Archive] {article.id}: {state.value}")

            await store.delete_media(article.id)
            state = ArchiveState.DELETED

            result.archived += 1
            logger.info(f"[Archive] Successfully archived: {article.id}")

        except Exception as e:
            result.failed += 1
            message = str(e) or e.__class__.__name__
            logger.error(f"[Archive] Failed to archive article {article.id} in state {state.value}: {message}")
            result.errors.append(ArchiveFailure(article_id=article.id, error=message, state=state.value))

    logger.info(
        f"[Archive] Archival complete: processed={result.processed} archived={result.archived} "
        f"failed={result.failed} scores_archived={result.scores_archived}"
    )
    return result

import logging
import secrets
import time
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse
from app.core.config import settings
from app.dependencies import Services, get_services
from app.schemas.archive import ArchivalReport
from app.services.archive import archive_old_articles
from app.services.gnews import run_init_articles

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix='/api/cron',
    tags=["cron"]
)


def _secret_matches(authorization: Optional[str]) -> bool:
    if not settings.cron_secret or not authorization:
        return False
    expected = f"Bearer {settings.cron_secret}".encode("utf-8")
    return secrets.compare_digest(authorization.encode("utf-8"), expected)


def verify_cron_secret(authorization: Optional[str] = Header(default=None)):
    if not _secret_matches(authorization):
        logger.error("[Cron] Unauthorized access attempt")
        raise HTTPException(status_code=401, detail="Unauthorized")


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/daily", dependencies=[Depends(verify_cron_secret)])
async def daily_job(services: Services = Depends(get_services)):
    """Archives yesterday's articles, then ingests and analyzes fresh headlines."""
    start = time.monotonic()
    logger.info(f"[Cron] Starting daily job: {_now_iso()}")

    try:
        archive_start = time.monotonic()
        archival = await archive_old_articles(services.store, batch_size=settings.cron_archive_batch_size)
        archival_report = {"success": True, "duration_ms": _elapsed_ms(archive_start), **archival.model_dump(mode="json")}
        logger.info(f"[Cron] Archival complete in {archival_report['duration_ms']}ms")

        ingest_start = time.monotonic()
        try:
            summary = await run_init_articles(
                services.store,
                services.gnews,
                services.extractor,
                services.adapters,
                request_delay=settings.gnews_request_delay,
                analysis_delay=settings.analysis_delay,
            )
            ingestion_report = summary.model_dump(mode="json")
        except Exception as e:
            logger.error(f"[Cron] Ingestion failed: {e}")
            ingestion_report = {"success": False, "error": str(e), "duration_ms": _elapsed_ms(ingest_start)}

        return {
            "success": True,
            "timestamp": _now_iso(),
            "duration_ms": _elapsed_ms(start),
            "archival": archival_report,
            "ingestion": ingestion_report,
        }

    except Exception as e:
        logger.exception(f"[Cron] Daily job failed: {e}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Daily job failed",
                "message": str(e),
                "timestamp": _now_iso(),
                "duration_ms": _elapsed_ms(start),
            },
        )


@router.get("/archive-articles", dependencies=[Depends(verify_cron_secret)])
async def archive_articles(
    batch_size: Optional[int] = None,
    dry_run: bool = False,
    services: Services = Depends(get_services),
):
    start = time.monotonic()
    try:
        result = await archive_old_articles(
            services.store,
            batch_size=batch_size or settings.cron_archive_batch_size,
            dry_run=dry_run,
        )
        logger.info(f"[Cron] Archival complete in {_elapsed_ms(start)}ms")
        return ArchivalReport(
            timestamp=_now_iso(),
            duration_ms=_elapsed_ms(start),
            dry_run=dry_run,
            **result.model_dump(),
        )
    except Exception as e:
        logger.error(f"[Cron] Archival failed: {e}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Archival failed",
                "message": str(e),
                "timestamp": _now_iso(),
                "duration_ms": _elapsed_ms(start),
            },
        )

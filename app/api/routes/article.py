from fastapi import APIRouter, Request, HTTPException, Depends
from urllib.parse import urlparse
from uuid import UUID
from slowapi import Limiter
from slowapi.util import get_remote_address
from app.core.config import settings
from app.core.exceptions import AnalysisError, MediaNotFoundError
from app.dependencies import Services, get_services
from app.schemas.analysis import AnalyzeInput, AnalyzeResponse, MediaSummary
from app.schemas.scores import ArticleScoresResponse
from app.services.analysis import analyze_submission
from app.services.scores import summarize_scores, score_details
import logging
import asyncio


logger = logging.getLogger(__name__)
limiter = Limiter(key_func=get_remote_address)
router = APIRouter(
    prefix='/api',
    tags=["articles"]
)


def _is_valid_url(url) -> bool:
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


@router.post("/ai_analyze", response_model=AnalyzeResponse)
@limiter.limit(settings.analyze_rate_limit)
async def ai_analyze(request: Request, input: AnalyzeInput, services: Services = Depends(get_services)):
    if not input.media_id and not _is_valid_url(input.url):
        raise HTTPException(status_code=400, detail="Missing or invalid URL")

    logger.info(f"Bias analysis for: {input.media_id or input.url}")

    try:
        task = asyncio.create_task(analyze_submission(
            input.url,
            store=services.store,
            extractor=services.extractor,
            adapters=services.adapters,
            title=input.title,
            source=input.source,
            media_id=input.media_id,
        ))

        while not task.done():
            if await request.is_disconnected():
                logger.info(f"Client disconnected during analysis for: {input.url}")
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    logger.info(f"Successfully cancelled analysis for: {input.url}")
                raise HTTPException(status_code=499, detail="Client disconnected")

            await asyncio.sleep(0.1)

        media, results = await task

    except HTTPException:
        raise
    except asyncio.CancelledError:
        logger.info(f"Analysis cancelled for: {input.url}")
        raise HTTPException(status_code=499, detail="Request cancelled")
    except MediaNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AnalysisError as e:
        logger.error(f"Analysis failed for {input.url}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.exception(f"Unexpected analysis error for {input.url}: {e}")
        raise HTTPException(status_code=500, detail="Analysis failed")

    return AnalyzeResponse(
        success=True,
        media=MediaSummary.model_validate(media),
        analysis=results,
    )


@router.get("/articles/{media_id}", response_model=ArticleScoresResponse)
async def get_article(media_id: UUID, services: Services = Depends(get_services)):
    media = await services.store.get_media(media_id)
    if media is None:
        raise HTTPException(status_code=404, detail="Article not found")

    rows = await services.store.list_scores_with_categories(media_id)
    return ArticleScoresResponse(
        id=media.id,
        title=media.title,
        url=media.url,
        source=media.source,
        user_analyzed=media.user_analyzed,
        created_at=media.created_at,
        categories=summarize_scores(rows),
        scores=score_details(rows),
    )

import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID
from app.core.exceptions import AnalysisError, MediaNotFoundError
from app.models import Media
from app.schemas.analysis import BiasAnalysis, CategoryRubric, CategoryScore, ExtractedArticle
from app.services.extractor import ContentExtractor
from app.services.llm import ModelAdapter
from app.services.store import MediaStore

logger = logging.getLogger(__name__)

AnalysisResults = Dict[str, Optional[BiasAnalysis]]


def _normalize_name(name: str) -> str:
    return " ".join(name.split()).casefold()


def resolve_scores(
    analysis: BiasAnalysis, categories: Sequence[CategoryRubric]
) -> Tuple[List[Tuple[CategoryRubric, CategoryScore]], List[str]]:
    """Matches the category names a model returned against the canonical list.

    Exact names win, then a case and whitespace insensitive match.

    Returns:
        Tuple: (category, score) pairs in the order the model returned them, and
        the names that matched nothing.
    """
    by_name = {c.name: c for c in categories}
    by_normalized = {_normalize_name(c.name): c for c in categories}

    resolved = []
    unscoreable = []
    for score in analysis.scores:
        category = by_name.get(score.category) or by_normalized.get(_normalize_name(score.category))
        if category is None:
            unscoreable.append(score.category)
        else:
            resolved.append((category, score))
    return resolved, unscoreable


async def _save_model_scores(
    store: MediaStore,
    media_id: UUID,
    adapter_name: str,
    analysis: BiasAnalysis,
    categories: Sequence[CategoryRubric],
) -> int:
    resolved, unscoreable = resolve_scores(analysis, categories)
    for name in unscoreable:
        logger.warning(f"Category not found for score from {adapter_name}: {name!r}")

    model_name = analysis.model or adapter_name
    saved = 0
    # Sequential on purpose: rows keep the order the model listed them in
    for category, score in resolved:
        try:
            await store.insert_score(
                media_id=media_id,
                category_id=category.id,
                score=score.score,
                explanation=score.explanation,
                model_name=model_name,
            )
            saved += 1
        except Exception as e:
            logger.error(f"Error saving {model_name} score for {category.name} on {media_id}: {e}")
    return saved


async def save_scores(
    store: MediaStore,
    media_id: UUID,
    results: AnalysisResults,
    categories: Sequence[CategoryRubric],
) -> int:
    """Persists every resolvable score of every successful model.

    Models are saved concurrently. A failed insert is logged and skipped.

    Returns:
        int: Number of score rows written.
    """
    names = [name for name, analysis in results.items() if analysis]
    tasks = [_save_model_scores(store, media_id, name, results[name], categories) for name in names]
    counts = await asyncio.gather(*tasks, return_exceptions=True)

    total = 0
    for name, count in zip(names, counts):
        if isinstance(count, Exception):
            logger.error(f"Saving scores from {name} failed: {count}")
        else:
            total += count
    return total


async def analyze_article(
    media_id: UUID,
    url: str,
    title: str,
    source: str,
    *,
    store: MediaStore,
    extractor: ContentExtractor,
    adapters: Sequence[ModelAdapter],
    content: Optional[str] = None,
) -> AnalysisResults:
    """Scores one stored article with every model and saves the scores.

    Args:
        media_id (UUID): Id of the live media row the scores belong to.
        url (str): Article URL, fetched unless content is given.
        title (str): Article title.
        source (str): Source label.
        content (Optional[str]): Already extracted article text.

    Raises:
        ValueError: If a required field is missing.
        AnalysisError: If the content or categories cannot be loaded, or if
            every model failed.

    Returns:
        AnalysisResults: adapter name -> analysis, None for adapters that failed.
    """
    if not media_id or not url or not title or not source:
        raise ValueError("Missing required fields: mediaId, url, title, source")

    if content is None:
        content = await extractor.fetch_content(url)
    if not content:
        raise AnalysisError("Could not fetch article content")

    try:
        categories = [CategoryRubric.model_validate(c) for c in await store.list_bias_categories()]
    except Exception as e:
        logger.error(f"Could not fetch bias categories: {e}")
        raise AnalysisError("Could not fetch bias categories") from e

    outcomes = await asyncio.gather(
        *(adapter.score_article(content, categories) for adapter in adapters),
        return_exceptions=True,
    )

    results: AnalysisResults = {}
    for adapter, outcome in zip(adapters, outcomes):
        if isinstance(outcome, Exception):
            logger.error(f"Adapter {adapter.name} raised: {outcome}")
            outcome = None
        results[adapter.name] = outcome

    succeeded = [name for name, analysis in results.items() if analysis]
    if not succeeded:
        raise AnalysisError("All AI models failed")

    logger.info(f"{len(succeeded)}/{len(results)} models analyzed {media_id}: {', '.join(succeeded)}")

    saved = await save_scores(store, media_id, results, categories)
    logger.info(f"Saved {saved} scores for {media_id}")

    return results


async def analyze_submission(
    url: str,
    *,
    store: MediaStore,
    extractor: ContentExtractor,
    adapters: Sequence[ModelAdapter],
    title: Optional[str] = None,
    source: Optional[str] = None,
    media_id: Optional[UUID] = None,
) -> Tuple[Media, AnalysisResults]:
    """Runs a user submission: resolve or create the media row, then analyze it.

    Raises:
        ValueError: If the URL is missing or the article cannot be extracted.
        MediaNotFoundError: If media_id does not name a live article.
        AnalysisError: If the analysis itself fails.
    """
    if media_id:
        media = await store.get_media(media_id)
        if media is None:
            raise MediaNotFoundError(f"Article {media_id} not found")
        results = await analyze_article(
            media.id,
            media.url,
            media.title,
            media.source or source or "",
            store=store,
            extractor=extractor,
            adapters=adapters,
        )
        return media, results

    if not url:
        raise ValueError("Missing required field: url")

    extracted: Optional[ExtractedArticle] = await extractor.extract(url)
    if not extracted:
        raise ValueError("Could not extract article from URL")

    media = await store.insert_media(
        title=title or extracted.title or url,
        url=url,
        source=source or extracted.source,
        description=extracted.description,
        image_url=extracted.image_url,
        media_type="article",
        user_analyzed=True,
    )
    logger.info(f"Inserted user submitted article {media.id} from {media.source}")

    results = await analyze_article(
        media.id,
        media.url,
        media.title,
        media.source,
        store=store,
        extractor=extractor,
        adapters=adapters,
        content=extracted.content,
    )
    return media, results


async def analyze_articles_batch(
    articles: Sequence[Media],
    *,
    store: MediaStore,
    extractor: ContentExtractor,
    adapters: Sequence[ModelAdapter],
    delay_seconds: float = 15.0,
) -> List[Optional[AnalysisResults]]:
    """Analyzes articles one after another with a fixed pause between them.

    A fatal error on one article is logged and recorded as None.
    """
    results: List[Optional[AnalysisResults]] = []

    for i, article in enumerate(articles):
        if i > 0 and delay_seconds > 0:
            await asyncio.sleep(delay_seconds)
        try:
            analysis = await analyze_article(
                article.id,
                article.url,
                article.title,
                article.source,
                store=store,
                extractor=extractor,
                adapters=adapters,
            )
            results.append(analysis)
        except Exception as e:
            logger.error(f"Error analyzing article {article.title!r}: {e}")
            results.append(None)

    return results

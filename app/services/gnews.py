import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence
import httpx
from pydantic import ValidationError
from app.core.exceptions import IngestionError
from app.models import Media, NewsCategory
from app.schemas.gnews import GNewsArticle, IngestionSummary
from app.services.analysis import analyze_articles_batch
from app.services.extractor import ContentExtractor
from app.services.llm import ModelAdapter
from app.services.store import MediaStore

logger = logging.getLogger(__name__)


class GNewsClient:
    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        base_url: str = "https://gnews.io/api/v4",
        page_size: int = 10,
        timeout: float = 20.0,
    ):
        self.client = client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self.timeout = timeout

    async def fetch_category(self, category: NewsCategory) -> List[GNewsArticle]:
        """Top headlines for one category. Errors are logged and give an empty list."""
        params = {
            "category": category.name,
            "lang": "en",
            "max": self.page_size,
            "apikey": self.api_key,
        }
        try:
            response = await self.client.get(f"{self.base_url}/top-headlines", params=params, timeout=self.timeout)
            data = response.json()
        except httpx.RequestError as e:
            logger.error(f"Network error fetching GNews category {category.name}: {e}")
            return []
        except ValueError as e:
            logger.error(f"Invalid JSON from GNews for {category.name}: {e}")
            return []

        logger.info(f"Response status for {category.name}: {response.status_code}")
        if not isinstance(data, dict):
            logger.error(f"Unexpected GNews payload for {category.name}")
            return []
        if data.get("errors"):
            logger.error(f"API Error for {category.name}: {data['errors']}")

        articles = []
        for raw in data.get("articles") or []:
            try:
                article = GNewsArticle.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Skipping malformed GNews article in {category.name}: {e}")
                continue
            article.category_id = category.id
            articles.append(article)

        if articles:
            logger.info(f"Found {len(articles)} articles for {category.name}")
        else:
            logger.info(f"No articles found for {category.name}")
        return articles

    async def fetch_articles(self, categories: Sequence[NewsCategory], request_delay: float = 1.0) -> List[GNewsArticle]:
        """Top headlines across all categories, deduplicated by GNews id."""
        all_articles: List[GNewsArticle] = []

        for category in categories:
            # Rate limit courtesy towards the GNews API
            if request_delay > 0:
                await asyncio.sleep(request_delay)
            logger.info(f"Fetching category: {category.name}")
            all_articles.extend(await self.fetch_category(category))

        return deduplicate_articles(all_articles)


def deduplicate_articles(articles: Sequence[GNewsArticle]) -> List[GNewsArticle]:
    """Keeps one article per GNews id, the last one seen. Articles without an id are dropped."""
    by_id: Dict[str, GNewsArticle] = {}
    for article in articles:
        if article.id:
            by_id[article.id] = article

    logger.info(f"Total articles before deduplication: {len(articles)}, after: {len(by_id)}")
    return list(by_id.values())


async def insert_gnews_articles(
    store: MediaStore,
    gnews: GNewsClient,
    request_delay: float = 1.0,
) -> List[Media]:
    """Fetches fresh headlines and stores them as live, non user submitted media.

    Raises:
        IngestionError: If the news categories cannot be loaded.

    Returns:
        List[Media]: The rows that were inserted.
    """
    try:
        categories = await store.list_news_categories()
    except Exception as e:
        logger.error(f"Error fetching categories: {e}")
        raise IngestionError("Failed to fetch news categories") from e

    logger.info(f"Found {len(categories)} categories: {[c.name for c in categories]}")

    articles = await gnews.fetch_articles(categories, request_delay=request_delay)
    logger.info(f"Attempting to insert {len(articles)} articles")

    inserted: List[Media] = []
    for article in articles:
        try:
            media = await store.insert_media(
                title=article.title,
                url=article.url,
                source=article.source.name,
                description=article.description,
                image_url=article.image,
                published_at=article.publishedAt,
                media_type="article",
                category_id=article.category_id,
                user_analyzed=False,
            )
            inserted.append(media)
            logger.info(f"Inserted: {article.title[:60]}")
        except Exception as e:
            logger.error(f"Error inserting article {article.title!r}: {e}")

    logger.info(f"Successfully inserted {len(inserted)} out of {len(articles)} articles")
    return inserted


def select_one_per_category(articles: Sequence[Media]) -> List[Media]:
    """First article of every news category, in input order."""
    seen = set()
    selected = []
    for article in articles:
        if article.category_id in seen:
            continue
        seen.add(article.category_id)
        selected.append(article)
    return selected


async def run_init_articles(
    store: MediaStore,
    gnews: GNewsClient,
    extractor: ContentExtractor,
    adapters: Sequence[ModelAdapter],
    request_delay: float = 1.0,
    analysis_delay: float = 15.0,
) -> IngestionSummary:
    """Ingests fresh headlines and analyzes one article per category."""
    start = datetime.now()

    logger.info("[InitArticles] Step 1: fetching articles from GNews")
    inserted = await insert_gnews_articles(store, gnews, request_delay=request_delay)

    if not inserted:
        logger.warning("[InitArticles] No articles were inserted. Check GNews API or duplicates.")
        return IngestionSummary(
            duration_ms=int((datetime.now() - start).total_seconds() * 1000),
            warning="No articles inserted",
        )

    selected = select_one_per_category(inserted)
    logger.info(f"[InitArticles] Step 2: selected {len(selected)} of {len(inserted)} articles for analysis")

    logger.info("[InitArticles] Step 3: running AI analysis")
    outcomes = await analyze_articles_batch(
        selected,
        store=store,
        extractor=extractor,
        adapters=adapters,
        delay_seconds=analysis_delay,
    )

    summary = summarize_outcomes(outcomes, [a.name for a in adapters])
    summary.articles_fetched = len(inserted)
    summary.articles_selected = len(selected)
    summary.duration_ms = int((datetime.now() - start).total_seconds() * 1000)

    logger.info(
        f"[InitArticles] Summary: fetched={summary.articles_fetched} selected={summary.articles_selected} "
        f"analyzed={summary.articles_analyzed} full={summary.full_analyses} failed={summary.failed_analyses} "
        f"per model={summary.model_successes} in {summary.duration_ms}ms"
    )
    return summary


def summarize_outcomes(outcomes: Sequence[Optional[dict]], adapter_names: Sequence[str]) -> IngestionSummary:
    summary = IngestionSummary(model_successes={name: 0 for name in adapter_names})

    for outcome in outcomes:
        if not outcome or not any(outcome.values()):
            summary.failed_analyses += 1
            continue
        summary.articles_analyzed += 1
        if all(outcome.get(name) for name in adapter_names):
            summary.full_analyses += 1
        for name, analysis in outcome.items():
            if analysis:
                summary.model_successes[name] = summary.model_successes.get(name, 0) + 1

    return summary

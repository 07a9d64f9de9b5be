import httpx
import pytest
from app.core.exceptions import IngestionError
from app.models import AIScore, Media, NewsCategory
from app.schemas.gnews import GNewsArticle
from app.services.gnews import (
    GNewsClient,
    deduplicate_articles,
    insert_gnews_articles,
    run_init_articles,
    select_one_per_category,
    summarize_outcomes,
)
from app.services.store import MediaStore
from tests.conftest import BIAS_CATEGORIES
from tests.fakes import FakeAdapter, FakeExtractor, make_analysis


def gnews_article(article_id, title, category="sports"):
    return {
        "id": article_id,
        "title": title,
        "description": f"{title} description",
        "content": "Truncated content... [1234 chars]",
        "url": f"https://news.test/{category}/{article_id}",
        "image": f"https://news.test/{article_id}.jpg",
        "publishedAt": "2026-10-17T08:00:00Z",
        "source": {"name": "News Test", "url": "https://news.test"},
    }


def gnews_client(payloads, requests=None):
    def handler(request: httpx.Request):
        if requests is not None:
            requests.append(request)
        payload = payloads.get(request.url.params.get("category"), {"totalArticles": 0, "articles": []})
        if isinstance(payload, Exception):
            raise payload
        return httpx.Response(200, json=payload)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GNewsClient(client, api_key="test-key", base_url="https://gnews.test/api/v4/")


async def test_fetch_category_sends_query(sports_category):
    requests = []
    gnews = gnews_client({"sports": {"articles": [gnews_article("a1", "Final score")]}}, requests)

    articles = await gnews.fetch_category(sports_category)

    assert len(articles) == 1
    assert articles[0].category_id == sports_category.id
    assert articles[0].source.name == "News Test"

    url = requests[0].url
    assert url.path == "/api/v4/top-headlines"
    assert url.params["category"] == "sports"
    assert url.params["lang"] == "en"
    assert url.params["max"] == "10"
    assert url.params["apikey"] == "test-key"


@pytest.mark.parametrize("payload", [
    {"errors": ["You have reached the request limit"]},
    ["not", "an", "object"],
    httpx.ConnectError("unreachable"),
])
async def test_fetch_category_failures_give_empty_list(sports_category, payload):
    gnews = gnews_client({"sports": payload})
    assert await gnews.fetch_category(sports_category) == []


async def test_fetch_category_skips_malformed_articles(sports_category):
    gnews = gnews_client({"sports": {"articles": [{"id": "x"}, gnews_article("a1", "Good one")]}})

    articles = await gnews.fetch_category(sports_category)
    assert [a.id for a in articles] == ["a1"]


def test_deduplicate_keeps_last_and_drops_missing_ids():
    articles = [
        GNewsArticle(id="a", title="first", url="https://x/1"),
        GNewsArticle(id="b", title="other", url="https://x/2"),
        GNewsArticle(id="a", title="second", url="https://x/3"),
        GNewsArticle(id=None, title="no id", url="https://x/4"),
    ]

    unique = deduplicate_articles(articles)

    assert sorted(a.id for a in unique) == ["a", "b"]
    assert next(a for a in unique if a.id == "a").title == "second"


async def test_insert_deduplicated_articles(store, sports_category, count):
    gnews = gnews_client({"sports": {"articles": [
        gnews_article("a1", "Cup final"),
        gnews_article("a2", "Transfer news"),
        gnews_article("a1", "Cup final"),
    ]}})

    inserted = await insert_gnews_articles(store, gnews, request_delay=0)

    assert len(inserted) == 2
    assert await count(Media) == 2
    for media in inserted:
        assert media.user_analyzed is False
        assert media.category_id == sports_category.id
        assert media.source == "News Test"
        assert media.media_type == "article"


async def test_insert_without_categories_fails(store):
    class BrokenStore(MediaStore):
        async def list_news_categories(self):
            raise RuntimeError("no table")

    with pytest.raises(IngestionError):
        await insert_gnews_articles(BrokenStore(store.session_factory), gnews_client({}), request_delay=0)


def test_select_one_per_category():
    articles = [
        Media(title="a", url="u1", category_id=1),
        Media(title="b", url="u2", category_id=1),
        Media(title="c", url="u3", category_id=2),
        Media(title="d", url="u4", category_id=None),
    ]

    assert [a.title for a in select_one_per_category(articles)] == ["a", "c", "d"]


def test_summarize_outcomes():
    full = {"gemini": make_analysis(["political"]), "qwen": make_analysis(["political"])}
    partial = {"gemini": make_analysis(["political"]), "qwen": None}

    summary = summarize_outcomes([full, partial, None], ["gemini", "qwen"])

    assert summary.articles_analyzed == 2
    assert summary.full_analyses == 1
    assert summary.failed_analyses == 1
    assert summary.model_successes == {"gemini": 2, "qwen": 1}


async def test_run_init_articles(store, session_factory, sports_category, bias_categories, count):
    async with session_factory() as session:
        session.add(NewsCategory(name="world"))
        await session.commit()

    gnews = gnews_client({
        "sports": {"articles": [gnews_article("s1", "Derby"), gnews_article("s2", "Marathon")]},
        "world": {"articles": [gnews_article("w1", "Summit", category="world")]},
    })
    adapters = [
        FakeAdapter("gemini", make_analysis(list(BIAS_CATEGORIES), model="gemini-2.5-flash")),
        FakeAdapter("qwen", None),
    ]

    summary = await run_init_articles(
        store, gnews, FakeExtractor(), adapters, request_delay=0, analysis_delay=0,
    )

    assert summary.success is True
    assert summary.articles_fetched == 3
    assert summary.articles_selected == 2
    assert summary.articles_analyzed == 2
    assert summary.full_analyses == 0
    assert summary.failed_analyses == 0
    assert summary.model_successes == {"gemini": 2, "qwen": 0}
    assert await count(AIScore) == 2 * len(BIAS_CATEGORIES)


async def test_run_init_articles_with_nothing_new(store, sports_category):
    summary = await run_init_articles(
        store, gnews_client({}), FakeExtractor(), [FakeAdapter("gemini")], request_delay=0, analysis_delay=0,
    )

    assert summary.warning == "No articles inserted"
    assert summary.articles_analyzed == 0

import uuid
from datetime import datetime, timedelta, timezone
import httpx
import pytest
from app.api.routes import article
from app.core.config import settings
from app.dependencies import Services, get_services
from app.main import app
from app.services.gnews import GNewsClient
from app.services.store import MediaStore
from tests.conftest import BIAS_CATEGORIES
from tests.fakes import FakeAdapter, FakeExtractor, make_analysis

SECRET = "test-cron-secret"


def empty_gnews():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"articles": []}))
    return GNewsClient(httpx.AsyncClient(transport=transport), api_key="k", base_url="https://gnews.test")


def make_services(store, extractor=None, adapters=None):
    return Services(
        store=store,
        extractor=extractor or FakeExtractor(),
        gnews=empty_gnews(),
        adapters=adapters if adapters is not None else [
            FakeAdapter("gemini", make_analysis(list(BIAS_CATEGORIES), model="gemini-2.5-flash")),
            FakeAdapter("qwen", None),
        ],
    )


@pytest.fixture(autouse=True)
def route_settings(monkeypatch):
    monkeypatch.setattr(article.limiter, "enabled", False)
    monkeypatch.setattr(settings, "cron_secret", SECRET)
    monkeypatch.setattr(settings, "analysis_delay", 0)
    monkeypatch.setattr(settings, "gnews_request_delay", 0)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def use_services():
    def _use(services):
        app.dependency_overrides[get_services] = lambda: services
        return services
    return _use


@pytest.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def auth(secret=SECRET):
    return {"Authorization": f"Bearer {secret}"}


async def test_health(client):
    response = await client.get("/")
    assert response.json() == {"message": "Application is up"}


@pytest.mark.parametrize("body", [{}, {"url": ""}, {"url": "not a url"}, {"url": "ftp://example.com/a"}])
async def test_analyze_rejects_bad_url(client, store, use_services, body):
    use_services(make_services(store))

    response = await client.post("/api/ai_analyze", json=body)
    assert response.status_code == 400


async def test_analyze_submission(client, store, bias_categories, use_services):
    use_services(make_services(store))

    response = await client.post("/api/ai_analyze", json={"url": "https://example.com/story"})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["media"]["url"] == "https://example.com/story"
    assert data["media"]["source"] == "example.com"
    assert data["analysis"]["qwen"] is None
    gemini = data["analysis"]["gemini"]
    assert gemini["model"] == "gemini-2.5-flash"
    assert [s["category"] for s in gemini["scores"]] == list(BIAS_CATEGORIES)

    media = await store.get_media(uuid.UUID(data["media"]["id"]))
    assert media.user_analyzed is True
    assert len(await store.list_scores(media.id)) == len(BIAS_CATEGORIES)


async def test_analyze_extraction_failure(client, store, bias_categories, use_services):
    use_services(make_services(store, extractor=FakeExtractor(content=None)))

    response = await client.post("/api/ai_analyze", json={"url": "https://example.com/paywalled"})

    assert response.status_code == 400
    assert "Could not extract" in response.json()["detail"]


async def test_analyze_all_models_fail(client, store, bias_categories, use_services):
    use_services(make_services(store, adapters=[FakeAdapter("gemini"), FakeAdapter("qwen")]))

    response = await client.post("/api/ai_analyze", json={"url": "https://example.com/story"})

    assert response.status_code == 500
    assert response.json()["detail"] == "All AI models failed"


async def test_analyze_existing_media(client, store, media, bias_categories, use_services):
    use_services(make_services(store))

    response = await client.post("/api/ai_analyze", json={"media_id": str(media.id)})

    assert response.status_code == 200
    assert response.json()["media"]["id"] == str(media.id)


async def test_analyze_unknown_media(client, store, bias_categories, use_services):
    use_services(make_services(store))

    response = await client.post("/api/ai_analyze", json={"media_id": str(uuid.uuid4())})
    assert response.status_code == 404


async def test_get_article_scores(client, store, media, bias_categories, use_services):
    use_services(make_services(store))
    political = bias_categories[0]
    await store.insert_score(media.id, political.id, 0.6, "leans right", "gemini-2.5-flash")
    await store.insert_score(media.id, political.id, 0.2, "slightly right", "qwen/qwen3-32b")

    response = await client.get(f"/api/articles/{media.id}")

    assert response.status_code == 200
    data = response.json()
    assert data["title"] == media.title
    assert data["user_analyzed"] is False
    assert len(data["scores"]) == 2
    (summary,) = data["categories"]
    assert summary["category"] == "political"
    assert summary["average"] == pytest.approx(0.4)
    assert summary["count"] == 2


async def test_get_unknown_article(client, store, use_services):
    use_services(make_services(store))

    response = await client.get(f"/api/articles/{uuid.uuid4()}")
    assert response.status_code == 404


@pytest.mark.parametrize("path", ["/api/cron/daily", "/api/cron/archive-articles"])
@pytest.mark.parametrize("headers", [
    {},
    auth("wrong"),
    {"Authorization": SECRET},
    auth(SECRET + "x"),
    auth(SECRET[:-1]),
])
async def test_cron_requires_secret(client, store, use_services, path, headers):
    use_services(make_services(store))

    response = await client.get(path, headers=headers)
    assert response.status_code == 401


async def test_cron_rejects_everything_without_configured_secret(client, store, use_services, monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", "")
    use_services(make_services(store))

    response = await client.get("/api/cron/daily", headers={"Authorization": "Bearer "})
    assert response.status_code == 401


async def test_daily_job(client, store, sports_category, use_services):
    use_services(make_services(store))
    old = await store.insert_media(
        title="Yesterday",
        url="https://example.com/yesterday",
        source="example.com",
        created_at=datetime.now(timezone.utc) - timedelta(hours=25),
    )

    response = await client.get("/api/cron/daily", headers=auth())

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["archival"]["archived"] == 1
    assert data["ingestion"]["success"] is True
    assert data["ingestion"]["warning"] == "No articles inserted"
    assert await store.get_media(old.id) is None


async def test_daily_job_reports_ingestion_failure(client, store, use_services):
    class NoCategoriesStore(MediaStore):
        async def list_news_categories(self):
            raise RuntimeError("relation news_categories does not exist")

    use_services(make_services(NoCategoriesStore(store.session_factory)))

    response = await client.get("/api/cron/daily", headers=auth())

    assert response.status_code == 200
    data = response.json()
    assert data["archival"]["success"] is True
    assert data["ingestion"]["success"] is False
    assert data["ingestion"]["error"] == "Failed to fetch news categories"


async def test_daily_job_archival_failure_is_500(client, store, use_services):
    class BrokenStore(MediaStore):
        async def find_archivable_media(self, cutoff, limit):
            raise RuntimeError("timeout")

    use_services(make_services(BrokenStore(store.session_factory)))

    response = await client.get("/api/cron/daily", headers=auth())

    assert response.status_code == 500
    assert response.json()["error"] == "Daily job failed"


async def test_archive_endpoint_dry_run(client, store, use_services):
    use_services(make_services(store))
    await store.insert_media(
        title="Old",
        url="https://example.com/old",
        source="example.com",
        created_at=datetime.now(timezone.utc) - timedelta(days=2),
    )

    response = await client.get("/api/cron/archive-articles", params={"dry_run": "true"}, headers=auth())

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["dry_run"] is True
    assert data["processed"] == 1
    assert data["archived"] == 0


async def test_unexpected_lookup_failure_is_500(client, store, bias_categories, use_services):
    class BrokenExtractor(FakeExtractor):
        async def extract(self, url):
            raise KeyError("content")

    use_services(make_services(store, extractor=BrokenExtractor()))

    response = await client.post("/api/ai_analyze", json={"url": "https://example.com/story"})

    assert response.status_code == 500
    assert response.json()["detail"] == "Analysis failed"

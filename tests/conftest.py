from datetime import datetime, timezone
import pytest
from app.db import create_engine, create_session_factory, init_models
from app.models import BiasCategory, NewsCategory
from app.services.store import MediaStore

BIAS_CATEGORIES = {
    "political": "-1 left, 1 right",
    "economic": "-1 interventionist, 1 free market",
    "social": "-1 progressive, 1 conservative",
}


@pytest.fixture
async def engine(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def store(session_factory):
    return MediaStore(session_factory)


@pytest.fixture
async def bias_categories(session_factory):
    async with session_factory() as session:
        rows = [BiasCategory(name=name, description=rubric) for name, rubric in BIAS_CATEGORIES.items()]
        session.add_all(rows)
        await session.commit()
    return rows


@pytest.fixture
async def sports_category(session_factory):
    async with session_factory() as session:
        category = NewsCategory(name="sports")
        session.add(category)
        await session.commit()
    return category


@pytest.fixture
async def media(store):
    return await store.insert_media(
        title="Council passes budget",
        url="https://example.com/budget",
        source="example.com",
        media_type="article",
        user_analyzed=False,
        created_at=datetime.now(timezone.utc),
    )


async def count_rows(session_factory, model) -> int:
    from sqlalchemy import func, select

    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.fixture
def count(session_factory):
    async def _count(model):
        return await count_rows(session_factory, model)
    return _count

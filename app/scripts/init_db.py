import asyncio
import logging
import sys
from sqlalchemy import select
from app.core.config import settings
from app.db import create_engine, create_session_factory, init_models
from app.models import BiasCategory, NewsCategory

logger = logging.getLogger(__name__)

DEFAULT_BIAS_CATEGORIES = {
    "political": "-1 strongly left-leaning framing, 1 strongly right-leaning framing, 0 balanced.",
    "economic": "-1 favours regulation and redistribution, 1 favours free markets and deregulation, 0 balanced.",
    "social": "-1 progressive stance on social issues, 1 traditional or conservative stance, 0 balanced.",
    "cultural": "-1 globalist or multicultural framing, 1 nationalist or traditionalist framing, 0 balanced.",
}

# Topics accepted by the GNews top-headlines endpoint
DEFAULT_NEWS_CATEGORIES = [
    "general",
    "world",
    "nation",
    "business",
    "technology",
    "entertainment",
    "sports",
    "science",
    "health",
]


async def seed(session_factory):
    async with session_factory() as session:
        existing = set((await session.execute(select(BiasCategory.name))).scalars().all())
        for name, description in DEFAULT_BIAS_CATEGORIES.items():
            if name not in existing:
                session.add(BiasCategory(name=name, description=description))

        existing = set((await session.execute(select(NewsCategory.name))).scalars().all())
        for name in DEFAULT_NEWS_CATEGORIES:
            if name not in existing:
                session.add(NewsCategory(name=name))

        await session.commit()


async def run():
    engine = create_engine(settings.database_url, echo=settings.sql_echo)
    try:
        await init_models(engine)
        await seed(create_session_factory(engine))
    finally:
        await engine.dispose()


def main() -> int:
    logging.basicConfig(level=logging.INFO)
    try:
        asyncio.run(run())
    except Exception as e:
        logger.error(f"Database initialisation failed: {e}")
        return 1
    logger.info("Tables created and default categories seeded")
    return 0


if __name__ == "__main__":
    sys.exit(main())

import logging
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import async_sessionmaker
from app.models import Media, BiasCategory, NewsCategory, AIScore, ArchivedMedia, ArchivedAIScore

logger = logging.getLogger(__name__)

# Columns copied verbatim from a live media row into its archived copy
ARCHIVED_MEDIA_FIELDS = (
    "title",
    "url",
    "source",
    "image_url",
    "description",
    "published_at",
    "media_type",
    "category_id",
    "user_analyzed",
    "on_homepage",
    "created_at",
)

ARCHIVED_SCORE_FIELDS = (
    "media_id",
    "category_id",
    "score",
    "explanation",
    "model_name",
    "created_at",
)


class MediaStore:
    """Query/insert/delete access to the live and archived tables.

    Every call runs in its own session and commits before returning, so a
    sequence of calls is never atomic as a whole. Errors from the database
    propagate to the caller.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def list_bias_categories(self) -> List[BiasCategory]:
        async with self.session_factory() as session:
            result = await session.execute(select(BiasCategory).order_by(BiasCategory.id))
            return list(result.scalars().all())

    async def list_news_categories(self) -> List[NewsCategory]:
        async with self.session_factory() as session:
            result = await session.execute(select(NewsCategory).order_by(NewsCategory.id))
            return list(result.scalars().all())

    async def insert_media(self, **fields) -> Media:
        async with self.session_factory() as session:
            media = Media(**fields)
            session.add(media)
            await session.commit()
            return media

    async def get_media(self, media_id: UUID) -> Optional[Media]:
        async with self.session_factory() as session:
            return await session.get(Media, media_id)

    async def insert_score(
        self,
        media_id: UUID,
        category_id: int,
        score: float,
        explanation: Optional[str],
        model_name: str,
    ) -> AIScore:
        async with self.session_factory() as session:
            row = AIScore(
                media_id=media_id,
                category_id=category_id,
                score=score,
                explanation=explanation,
                model_name=model_name,
            )
            session.add(row)
            await session.commit()
            return row

    async def list_scores(self, media_id: UUID) -> List[AIScore]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(AIScore).where(AIScore.media_id == media_id).order_by(AIScore.id)
            )
            return list(result.scalars().all())

    async def list_scores_with_categories(self, media_id: UUID) -> List[tuple]:
        """Returns (AIScore, category name) pairs for one article."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(AIScore, BiasCategory.name)
                .join(BiasCategory, AIScore.category_id == BiasCategory.id)
                .where(AIScore.media_id == media_id)
                .order_by(AIScore.id)
            )
            return [tuple(row) for row in result.all()]

    async def find_archivable_media(self, cutoff: datetime, limit: int) -> List[Media]:
        """Ingested (not user submitted) articles created before the cutoff."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(Media)
                .where(Media.user_analyzed.is_(False))
                .where(Media.created_at < cutoff)
                .order_by(Media.created_at)
                .limit(limit)
            )
            return list(result.scalars().all())

    async def insert_archived_media(self, media: Media) -> ArchivedMedia:
        async with self.session_factory() as session:
            archived = ArchivedMedia(**{field: getattr(media, field) for field in ARCHIVED_MEDIA_FIELDS})
            if archived.on_homepage is None:
                archived.on_homepage = False
            session.add(archived)
            await session.commit()
            return archived

    async def insert_archived_scores(self, scores: Sequence[AIScore]) -> int:
        async with self.session_factory() as session:
            session.add_all([
                ArchivedAIScore(**{field: getattr(score, field) for field in ARCHIVED_SCORE_FIELDS})
                for score in scores
            ])
            await session.commit()
            return len(scores)

    async def delete_scores(self, score_ids: Sequence[int]) -> None:
        """Deletes exactly the given score rows."""
        async with self.session_factory() as session:
            await session.execute(delete(AIScore).where(AIScore.id.in_(list(score_ids))))
            await session.commit()

    async def delete_media(self, media_id: UUID) -> None:
        async with self.session_factory() as session:
            await session.execute(delete(Media).where(Media.id == media_id))
            await session.commit()

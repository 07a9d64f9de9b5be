import logging
from dataclasses import dataclass, field
from typing import List, Optional
import httpx
from fastapi import Request
from google import genai
from google.genai import types
from sqlalchemy.ext.asyncio import AsyncEngine
from app.core.config import Settings
from app.db import create_engine, create_session_factory, init_models
from app.services.extractor import ContentExtractor
from app.services.gnews import GNewsClient
from app.services.llm import GeminiAdapter, GroqAdapter, ModelAdapter
from app.services.store import MediaStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    store: MediaStore
    extractor: ContentExtractor
    gnews: GNewsClient
    adapters: List[ModelAdapter] = field(default_factory=list)
    http_client: Optional[httpx.AsyncClient] = None
    engine: Optional[AsyncEngine] = None

    async def aclose(self):
        if self.http_client is not None:
            await self.http_client.aclose()
        if self.engine is not None:
            await self.engine.dispose()


def build_adapters(settings: Settings, http_client: httpx.AsyncClient) -> List[ModelAdapter]:
    adapters: List[ModelAdapter] = []

    if settings.gemini_api_key:
        http_options = None
        if settings.llm_timeout_seconds:
            http_options = types.HttpOptions(timeout=int(settings.llm_timeout_seconds * 1000))
        client = genai.Client(api_key=settings.gemini_api_key, http_options=http_options)
        adapters.append(GeminiAdapter(client, settings.gemini_models))
    else:
        logger.warning("GEMINI_API_KEY is not set, Gemini adapter disabled")

    if settings.groq_api_key:
        for name, model in settings.groq_models.items():
            adapters.append(GroqAdapter(
                http_client,
                api_key=settings.groq_api_key,
                model=model,
                name=name,
                base_url=settings.groq_base_url,
                max_content_chars=settings.groq_max_content_chars,
                timeout=settings.llm_timeout_seconds,
            ))
    else:
        logger.warning("GROQ_API_KEY is not set, Groq adapters disabled")

    logger.info(f"Model adapters: {[a.name for a in adapters]}")
    return adapters


async def build_services(settings: Settings) -> Services:
    """Creates every client the jobs and routes use. The caller owns aclose()."""
    engine = create_engine(settings.database_url, echo=settings.sql_echo)
    if settings.create_tables:
        await init_models(engine)

    http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    return Services(
        store=MediaStore(create_session_factory(engine)),
        extractor=ContentExtractor(http_client, timeout=settings.http_timeout_seconds),
        gnews=GNewsClient(
            http_client,
            api_key=settings.gnews_api_key,
            base_url=settings.gnews_base_url,
            timeout=settings.http_timeout_seconds,
        ),
        adapters=build_adapters(settings, http_client),
        http_client=http_client,
        engine=engine,
    )


# Dependency for FastAPI
def get_services(request: Request) -> Services:
    return request.app.state.services

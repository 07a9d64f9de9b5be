from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.api.routes import article, cron
from app.core.config import settings
from app.dependencies import build_services
import logging
from slowapi.errors import RateLimitExceeded
from slowapi import _rate_limit_exceeded_handler

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%d-%m-%Y %H:%M:%S",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.services = await build_services(settings)
    try:
        yield
    finally:
        await app.state.services.aclose()


app = FastAPI(
    title="Media Bias Tracker",
    description="Multi-model AI bias scoring for news articles",
    version="v1.0",
    lifespan=lifespan,
    )
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.limiter = article.limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(article.router)
app.include_router(cron.router)

@app.get("/")
def check():
    return {"message": "Application is up"}

from pydantic import BaseModel, Field
from typing import Dict, Optional
from datetime import datetime


class GNewsSource(BaseModel):
    name: Optional[str] = None
    url: Optional[str] = None


class GNewsArticle(BaseModel):
    id: Optional[str] = None
    title: str
    url: str
    description: Optional[str] = None
    image: Optional[str] = None
    publishedAt: Optional[datetime] = None
    source: GNewsSource = Field(default_factory=GNewsSource)
    category_id: Optional[int] = None


class IngestionSummary(BaseModel):
    success: bool = True
    articles_fetched: int = 0
    articles_selected: int = 0
    articles_analyzed: int = 0
    full_analyses: int = 0
    failed_analyses: int = 0
    model_successes: Dict[str, int] = Field(default_factory=dict)
    duration_ms: int = 0
    warning: Optional[str] = None

from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from uuid import UUID
from datetime import datetime


class CategorySummary(BaseModel):
    category: str
    average: float
    std_dev: float
    count: int
    # model name -> that model's mean minus the category mean
    model_deviations: Dict[str, float] = Field(default_factory=dict)


class ScoreDetail(BaseModel):
    category: str
    score: float
    explanation: Optional[str] = None
    model_name: str


class ArticleScoresResponse(BaseModel):
    id: UUID
    title: str
    url: str
    source: Optional[str] = None
    user_analyzed: bool
    created_at: Optional[datetime] = None
    categories: List[CategorySummary] = Field(default_factory=list)
    scores: List[ScoreDetail] = Field(default_factory=list)

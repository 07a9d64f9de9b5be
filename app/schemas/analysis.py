from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Dict, List, Optional
from uuid import UUID


class CategoryRubric(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CategoryScore(BaseModel):
    category: str
    score: float
    explanation: Optional[str] = ""

    @field_validator("explanation", mode="before")
    @classmethod
    def _null_explanation(cls, value):
        return "" if value is None else value


class BiasAnalysis(BaseModel):
    scores: List[CategoryScore]
    summary: Optional[str] = ""
    model: Optional[str] = None  # Model id that produced the answer, set by the adapter

    @field_validator("summary", mode="before")
    @classmethod
    def _null_summary(cls, value):
        return "" if value is None else value


class ExtractedArticle(BaseModel):
    url: str
    content: str
    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    source: str


class AnalyzeInput(BaseModel):
    url: Optional[str] = None
    title: Optional[str] = None
    source: Optional[str] = None
    media_id: Optional[UUID] = None


class MediaSummary(BaseModel):
    id: UUID
    title: str
    url: str
    source: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AnalyzeResponse(BaseModel):
    success: bool
    media: MediaSummary
    analysis: Dict[str, Optional[BiasAnalysis]] = Field(default_factory=dict)

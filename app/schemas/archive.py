from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import UUID


class ArchiveFailure(BaseModel):
    article_id: UUID
    error: str
    state: str  # Last state reached before the failure


class ArchivalResult(BaseModel):
    processed: int = 0
    archived: int = 0
    failed: int = 0
    scores_archived: int = 0
    errors: List[ArchiveFailure] = Field(default_factory=list)


class ArchivalReport(ArchivalResult):
    success: bool = True
    timestamp: str
    duration_ms: int
    dry_run: bool = False
    message: Optional[str] = None

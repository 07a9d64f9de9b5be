from sqlalchemy import Column, Integer, String, Text, DateTime, Float, Uuid
from app.db import Base
from app.models._time import utcnow

class ArchivedAIScore(Base):
    __tablename__ = "archived_ai_scores"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Original live media id, intentionally not a foreign key
    media_id = Column(Uuid, nullable=False, index=True)
    category_id = Column(Integer, nullable=False)

    score = Column(Float, nullable=False)
    explanation = Column(Text, nullable=True)
    model_name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

from sqlalchemy import Column, Integer, String, Text, DateTime, Float, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from app.db import Base
from app.models._time import utcnow

class AIScore(Base):
    __tablename__ = "ai_scores"

    id = Column(Integer, primary_key=True, autoincrement=True)
    media_id = Column(Uuid, ForeignKey("media.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("bias_categories.id"), nullable=False)

    score = Column(Float, nullable=False)  # -1 to 1, stored as returned by the model
    explanation = Column(Text, nullable=True)
    model_name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    category = relationship("BiasCategory")

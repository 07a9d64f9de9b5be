import uuid
from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from app.db import Base
from app.models._time import utcnow

class Media(Base):
    __tablename__ = "media"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    title = Column(Text, nullable=False)
    url = Column(String(2048), nullable=False, index=True)
    source = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    image_url = Column(String(2048), nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    media_type = Column(String(50), nullable=False, default="article")
    category_id = Column(Integer, ForeignKey("news_categories.id"), nullable=True)

    # True for user submissions, False for GNews ingestion
    user_analyzed = Column(Boolean, nullable=False, default=False, index=True)
    on_homepage = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    category = relationship("NewsCategory")

    def __repr__(self):
        return f"<Media(id={self.id}, title='{self.title}', source='{self.source}')>"

import uuid
from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, Uuid
from app.db import Base
from app.models._time import utcnow

class ArchivedMedia(Base):
    __tablename__ = "archived_media"

    # Fresh id, the live id is not carried over
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    title = Column(Text, nullable=False)
    url = Column(String(2048), nullable=False)
    source = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    image_url = Column(String(2048), nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    media_type = Column(String(50), nullable=False, default="article")
    category_id = Column(Integer, nullable=True)
    user_analyzed = Column(Boolean, nullable=False, default=False)
    on_homepage = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    archived_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

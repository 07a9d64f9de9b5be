from sqlalchemy import Column, Integer, String
from app.db import Base

class NewsCategory(Base):
    __tablename__ = "news_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)  # GNews topic, e.g. "sports"

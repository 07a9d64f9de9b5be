from sqlalchemy import Column, Integer, String, Text
from app.db import Base

class BiasCategory(Base):
    __tablename__ = "bias_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)  # Scoring rubric fed to the prompt

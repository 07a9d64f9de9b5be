from .news_category import NewsCategory
from .bias_category import BiasCategory
from .media import Media
from .ai_score import AIScore
from .archived_media import ArchivedMedia
from .archived_ai_score import ArchivedAIScore

__all__ = [
    "NewsCategory",
    "BiasCategory",
    "Media",
    "AIScore",
    "ArchivedMedia",
    "ArchivedAIScore"
]

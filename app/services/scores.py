import math
from collections import defaultdict
from typing import Dict, List, Sequence, Tuple
from app.models import AIScore
from app.schemas.scores import CategorySummary, ScoreDetail


def mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def std_dev(values: Sequence[float]) -> float:
    """Population standard deviation, 0.0 for fewer than two values."""
    if len(values) < 2:
        return 0.0
    avg = mean(values)
    return math.sqrt(sum((v - avg) ** 2 for v in values) / len(values))


def summarize_scores(rows: Sequence[Tuple[AIScore, str]]) -> List[CategorySummary]:
    """Averages the scores of every model per category.

    Args:
        rows: (score row, category name) pairs, as returned by the store.

    Returns:
        List[CategorySummary]: One entry per category, in first-seen order.
    """
    by_category: Dict[str, List[float]] = defaultdict(list)
    by_model: Dict[str, Dict[str, List[float]]] = defaultdict(lambda: defaultdict(list))

    for score, category in rows:
        by_category[category].append(score.score)
        by_model[category][score.model_name].append(score.score)

    summaries = []
    for category, values in by_category.items():
        avg = mean(values)
        summaries.append(CategorySummary(
            category=category,
            average=round(avg, 4),
            std_dev=round(std_dev(values), 4),
            count=len(values),
            model_deviations={
                model: round(mean(model_values) - avg, 4)
                for model, model_values in by_model[category].items()
            },
        ))
    return summaries


def score_details(rows: Sequence[Tuple[AIScore, str]]) -> List[ScoreDetail]:
    return [
        ScoreDetail(
            category=category,
            score=score.score,
            explanation=score.explanation,
            model_name=score.model_name,
        )
        for score, category in rows
    ]

"""
Score aggregation for class progress.

Pure functions, no I/O. A class is complete only when both conditions hold:
- at least 80% of its categories are marked complete
- the summed category scores reach 80% of the class maximum
"""

from typing import Mapping

from gradegate.schemas import (
    ClassDefinition,
    ContentCategory,
    COMPLETION_THRESHOLD,
    SCORE_THRESHOLD_RATIO,
)

POINTS_PER_QUESTION = 10


def max_category_score(class_def: ClassDefinition, category: ContentCategory) -> int:
    """Highest score a single category of this class can report."""
    return class_def.question_counts[category] * POINTS_PER_QUESTION


def compute_max_score(class_def: ClassDefinition) -> int:
    """Sum of question_count * 10 over the class's available categories."""
    return sum(
        max_category_score(class_def, category)
        for category in class_def.available_categories
    )


def compute_completion(
    category_scores: Mapping[ContentCategory, int],
    category_completion: Mapping[ContentCategory, bool],
    max_score: int,
) -> tuple[int, float]:
    """
    Aggregate category results into class totals.

    Args:
        category_scores: Latest score per category
        category_completion: Completion flag per category
        max_score: Class maximum (accepted for signature symmetry with
            is_class_complete; totals are not clipped to it)

    Returns:
        Tuple of (total_score, completion_percentage 0-100)
    """
    total_score = sum(category_scores.values())
    total_categories = len(category_completion)
    if total_categories == 0:
        return total_score, 0.0

    completed = sum(1 for done in category_completion.values() if done)
    return total_score, completed * 100 / total_categories


def is_class_complete(completion_percentage: float, total_score: int, max_score: int) -> bool:
    return (
        completion_percentage >= COMPLETION_THRESHOLD
        and total_score >= max_score * SCORE_THRESHOLD_RATIO
    )


def initial_category_scores(class_def: ClassDefinition) -> dict[ContentCategory, int]:
    return {category: 0 for category in class_def.available_categories}


def initial_category_completion(class_def: ClassDefinition) -> dict[ContentCategory, bool]:
    return {category: False for category in class_def.available_categories}

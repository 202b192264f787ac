import random
from typing import Optional

from data.models import CATEGORIES, CATEGORY_LONG, CATEGORY_SHORT, TaskPattern


class ConfigurationError(ValueError):
    """Task configuration rejected before any trials were generated."""


# left (F) / right (J) / frequent
PATTERNS = {
    1: (CATEGORY_SHORT, CATEGORY_LONG, CATEGORY_SHORT),
    2: (CATEGORY_LONG, CATEGORY_SHORT, CATEGORY_LONG),
    3: (CATEGORY_SHORT, CATEGORY_LONG, CATEGORY_LONG),
    4: (CATEGORY_LONG, CATEGORY_SHORT, CATEGORY_SHORT),
}


def validate_task_pattern(pattern: Optional[TaskPattern]) -> TaskPattern:
    if pattern is None:
        raise ConfigurationError("task pattern is required")
    for name in ("left_category", "right_category", "frequent_category"):
        value = getattr(pattern, name, None)
        if not value:
            raise ConfigurationError(f"task pattern is missing '{name}'")
        if value not in CATEGORIES:
            raise ConfigurationError(f"unknown category in '{name}': {value!r}")
    if pattern.left_category == pattern.right_category:
        raise ConfigurationError(
            f"both responses are mapped to the same category: {pattern.left_category}"
        )
    if pattern.frequent_category not in (pattern.left_category, pattern.right_category):
        raise ConfigurationError("frequent category is not mapped to any response")
    return pattern


def make_task_pattern(left: str, right: str, frequent: str, pattern_id: int = 0) -> TaskPattern:
    return validate_task_pattern(
        TaskPattern(
            left_category=left,
            right_category=right,
            frequent_category=frequent,
            pattern_id=pattern_id,
        )
    )


def build_task_pattern(pattern_id: int, rng: Optional[random.Random] = None) -> TaskPattern:
    if pattern_id == 0:
        rng = rng or random.Random()
        pattern_id = rng.randint(1, len(PATTERNS))
    if pattern_id not in PATTERNS:
        raise ConfigurationError(f"Unsupported pattern: {pattern_id}")
    left, right, frequent = PATTERNS[pattern_id]
    return make_task_pattern(left, right, frequent, pattern_id=pattern_id)

"""Running average arithmetic for product and seller ratings."""

from typing import Iterable


def rating_after_add(current: float, count: int, new_rating: float) -> float:
    return (current * count + new_rating) / (count + 1)


def rating_after_remove(current: float, remaining: int, removed_rating: float) -> float:
    """Average once one review is gone; `remaining` excludes the removed one."""
    if remaining <= 0:
        return 0
    return (current * (remaining + 1) - removed_rating) / remaining


def mean_rating(ratings: Iterable[float]) -> float:
    values = list(ratings)
    if not values:
        return 0
    return sum(values) / len(values)

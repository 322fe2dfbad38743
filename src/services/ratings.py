"""Averages over the four review criteria.

Each review scores a school on *kenyamanan* (comfort), *pembelajaran*
(teaching), *fasilitas* (facilities) and *kepemimpinan* (leadership), every
one on the 1-5 scale.  The functions here turn those raw sub-scores into a
per-review average and an aggregate over any set of reviews.

Rounding is the caller's choice: the public listing shows one decimal while
the dashboards show two, so every function that rounds takes ``decimals``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from src.errors import InvalidRating

RATING_MIN = 1.0
RATING_MAX = 5.0

CRITERIA: tuple[str, ...] = ("kenyamanan", "pembelajaran", "fasilitas", "kepemimpinan")


class Scored(Protocol):
    kenyamanan: float
    pembelajaran: float
    fasilitas: float
    kepemimpinan: float


def round_rating(value: float, decimals: int) -> float:
    """Round half away from zero to *decimals* places.

    ``round()`` rounds half to even on the binary value, so ``round(2.675, 2)``
    gives 2.67; going through the decimal string gives the 2.68 a reader
    expects.
    """
    quantum = Decimal(1).scaleb(-decimals)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def format_rating(value: float, decimals: int) -> str:
    """Return the display string for a rating, e.g. ``"3.0"``."""
    return f"{round_rating(value, decimals):.{decimals}f}"


def check_scores(scores: Scored) -> None:
    """Raise :class:`InvalidRating` if any criterion lies outside [1, 5]."""
    for name in CRITERIA:
        value = getattr(scores, name)
        if value is None or not math.isfinite(value) or not RATING_MIN <= value <= RATING_MAX:
            raise InvalidRating(name, value, RATING_MIN, RATING_MAX)


def review_average(review: Scored) -> float:
    """Unrounded mean of a single review's four sub-scores."""
    return (review.kenyamanan + review.pembelajaran + review.fasilitas + review.kepemimpinan) / 4


def aggregate_average(reviews: Iterable[Scored], decimals: int | None = None) -> float:
    """Mean of :func:`review_average` over *reviews*.

    An empty set averages to ``0.0``: a school or user with no reviews yet is
    a normal state, not an error.
    """
    averages = [review_average(r) for r in reviews]
    if not averages:
        return 0.0
    # math.fsum keeps the result independent of input order
    mean = math.fsum(averages) / len(averages)
    return mean if decimals is None else round_rating(mean, decimals)


def criterion_averages(reviews: Iterable[Scored], decimals: int | None = None) -> dict[str, float]:
    """Per-criterion means, each ``0.0`` when there are no reviews."""
    rows = list(reviews)
    result: dict[str, float] = {}
    for name in CRITERIA:
        mean = math.fsum(getattr(r, name) for r in rows) / len(rows) if rows else 0.0
        result[name] = mean if decimals is None else round_rating(mean, decimals)
    return result

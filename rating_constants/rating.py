"""Single-chart rating formula and its brute-force inversion.

All arithmetic is integral: constants are tenths, achievements are
0.0001 % units and rank coefficients are tenths, so the published formula
``constant * min(achievement, 100.5%) * coefficient`` becomes a product of
integers followed by truncating divisions.  The result is monotonically
non-decreasing in the constant for a fixed achievement, which the
order-evidence bound propagation relies on.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, Optional, Sequence, Tuple

import numpy as np

from .types import (
    DOMAIN,
    AchievementValue,
    RatingValue,
    ScoreConstant,
    check_achievement,
    check_constant,
)

RankCoefficient = int

ACHIEVEMENT_CAP: AchievementValue = 1005000

# (lowest achievement, coefficient in tenths), highest threshold first.
RANK_COEFFICIENTS: Tuple[Tuple[AchievementValue, RankCoefficient], ...] = (
    (1005000, 224),
    (1004999, 222),
    (1000000, 216),
    (999999, 214),
    (995000, 211),
    (990000, 208),
    (980000, 203),
    (970000, 200),
    (969999, 176),
    (940000, 168),
    (900000, 152),
    (800000, 136),
    (750000, 120),
    (700000, 112),
    (600000, 96),
    (500000, 80),
    (400000, 64),
    (300000, 48),
    (200000, 32),
    (100000, 16),
    (0, 0),
)

_DOMAIN_ARRAY = np.asarray(DOMAIN, dtype=np.int64)


def rank_coef(achievement: AchievementValue) -> RankCoefficient:
    check_achievement(achievement)
    for threshold, coefficient in RANK_COEFFICIENTS:
        if achievement >= threshold:
            return coefficient
    raise AssertionError("rank coefficient table must end at zero")


def _scale(achievement: AchievementValue, coefficient: Optional[RankCoefficient]) -> int:
    check_achievement(achievement)
    if coefficient is None:
        coefficient = rank_coef(achievement)
    return min(achievement, ACHIEVEMENT_CAP) * coefficient


def rating(
    constant: ScoreConstant,
    achievement: AchievementValue,
    coefficient: Optional[RankCoefficient] = None,
) -> RatingValue:
    """Return the single-chart rating.

    ``coefficient`` defaults to ``rank_coef(achievement)``; passing it
    explicitly mirrors the published formula, which treats it as an input.
    """

    check_constant(constant)
    return constant * _scale(achievement, coefficient) // 10 // 1_000_000 // 10


def rating_table(
    achievement: AchievementValue,
    constants: Optional[Iterable[ScoreConstant]] = None,
    coefficient: Optional[RankCoefficient] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Evaluate :func:`rating` for many constants at once.

    Returns ``(constants, ratings)`` as two aligned ``int64`` arrays, the
    constants sorted ascending (and therefore the ratings non-decreasing).
    """

    if constants is None:
        values = _DOMAIN_ARRAY
    else:
        values = np.asarray(sorted(constants), dtype=np.int64)
        if values.size and (values[0] < DOMAIN[0] or values[-1] > DOMAIN[-1]):
            raise ValueError(f"score constants outside the domain: {values.tolist()}")
    scale = _scale(achievement, coefficient)
    ratings = values * scale // 10 // 1_000_000 // 10
    return values, ratings


def achievable_ratings(
    constants: Iterable[ScoreConstant], achievement: AchievementValue
) -> Dict[ScoreConstant, RatingValue]:
    values, ratings = rating_table(achievement, constants)
    return {int(c): int(r) for c, r in zip(values.tolist(), ratings.tolist())}


def candidates_for(
    delta: RatingValue,
    achievement: AchievementValue,
    domain: Optional[Sequence[ScoreConstant]] = None,
) -> FrozenSet[ScoreConstant]:
    """Return every constant whose rating at ``achievement`` equals ``delta`` exactly."""

    values, ratings = rating_table(achievement, domain)
    return frozenset(int(c) for c in values[ratings == int(delta)].tolist())


__all__ = [
    "ACHIEVEMENT_CAP",
    "RANK_COEFFICIENTS",
    "RankCoefficient",
    "achievable_ratings",
    "candidates_for",
    "rank_coef",
    "rating",
    "rating_table",
]

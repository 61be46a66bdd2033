"""Narrowing from the order of entries in rating target snapshots.

Each ranked list is sorted by descending single-chart rating, so an entry
rates at least as much as every entry below it and at most as much as every
entry above it.  Because the rating is monotonic in the constant, the chain
of ``>=`` constraints is solved exactly by two sweeps over the achievable
ratings: a bottom-up sweep for floors and a top-down sweep for ceilings.
Equal ratings are allowed anywhere in the chain; the game's tie-break among
them is unknown and never used.

When the snapshot carries its rating total, the order and the total are
solved together by a forward and a backward pass over reachable partial sums.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence, Set, Tuple

import numpy as np

from ..catalog import ChartCatalog
from ..logging_utils import apply_debug_logging
from ..rating import achievable_ratings, rating_table
from ..store import CandidateStore
from ..types import AchievementValue, GameVersion, RatingValue, ScoreConstant
from .config import EstimatorConfig, get_estimator_config
from .model import RankedEntry, RankedList, RatingTargetSnapshot

logger = logging.getLogger(__name__)

# ``None`` stands for "no bound from the rest of the list".
Bounds = Tuple[Optional[RatingValue], Optional[RatingValue]]
SumsByConstant = Dict[ScoreConstant, Set[int]]


def _least_at_least(values: Sequence[RatingValue], bound: Optional[RatingValue]) -> Optional[RatingValue]:
    for value in values:
        if bound is None or value >= bound:
            return value
    return None


def _greatest_at_most(values: Sequence[RatingValue], bound: Optional[RatingValue]) -> Optional[RatingValue]:
    for value in reversed(values):
        if bound is None or value <= bound:
            return value
    return None


def propagate_order(
    achievable: Sequence[Sequence[RatingValue]],
    below: Sequence[Sequence[RatingValue]] = (),
) -> Tuple[List[Bounds], Optional[RatingValue]]:
    """Return the ``(floor, ceiling)`` each entry inherits from its neighbours.

    ``achievable[i]`` holds the ratings entry ``i`` can take, ascending, with
    entry 0 ranked highest.  ``below`` are the achievable ratings of plays
    known to rank under the whole list.  The floor of an entry comes from the
    entries under it and its ceiling from the entries over it, each snapped
    to ratings those entries can actually take.  The second element of the
    result is the ceiling that applies to the ``below`` plays.
    """

    n = len(achievable)
    floors: List[Optional[RatingValue]] = [None] * n
    ceilings: List[Optional[RatingValue]] = [None] * n

    floor: Optional[RatingValue] = max((values[0] for values in below if values), default=None)
    for i in reversed(range(n)):
        floors[i] = floor
        snapped = _least_at_least(achievable[i], floor)
        if snapped is not None:
            floor = snapped

    ceiling: Optional[RatingValue] = None
    for i in range(n):
        ceilings[i] = ceiling
        snapped = _greatest_at_most(achievable[i], ceiling)
        if snapped is not None:
            ceiling = snapped

    return list(zip(floors, ceilings)), (ceiling if n else None)


def _candidate_ratings(
    store: CandidateStore, entry: RankedEntry
) -> Dict[ScoreConstant, RatingValue]:
    return achievable_ratings(store.candidates(entry.chart), entry.achievement)


def constants_rated_within(
    achievement: AchievementValue,
    low: Optional[RatingValue],
    high: Optional[RatingValue],
) -> FrozenSet[ScoreConstant]:
    """Every constant of the domain whose rating at ``achievement`` lies in ``[low, high]``."""

    values, ratings = rating_table(achievement)
    mask = np.ones(ratings.shape, dtype=bool)
    if low is not None:
        mask &= ratings >= low
    if high is not None:
        mask &= ratings <= high
    return frozenset(int(c) for c in values[mask].tolist())


def _narrow_to_range(
    store: CandidateStore,
    entry: RankedEntry,
    low: Optional[RatingValue],
    high: Optional[RatingValue],
    reason: str,
) -> bool:
    if low is None and high is None:
        return False
    return store.narrow(entry.chart, constants_rated_within(entry.achievement, low, high), reason)


def narrow_ranked_list(store: CandidateStore, ranked: RankedList, reason: str) -> bool:
    """Apply the order constraints of one ranked list to the store."""

    ordered = ranked.ordered
    if not ordered:
        return False
    ratings = [_candidate_ratings(store, entry) for entry in ordered]
    excluded = [_candidate_ratings(store, entry) for entry in ranked.excluded]

    bounds, below_ceiling = propagate_order(
        [sorted(set(r.values())) for r in ratings],
        [sorted(set(r.values())) for r in excluded],
    )

    changed = False
    for entry, (low, high) in zip(ordered, bounds):
        if _narrow_to_range(store, entry, low, high, reason):
            changed = True
    for entry in ranked.excluded:
        if _narrow_to_range(store, entry, None, below_ceiling, reason):
            changed = True
    return changed


def _reachable_sums(
    options: Sequence[Mapping[ScoreConstant, RatingValue]],
    weights: Sequence[int],
    linked: Sequence[bool],
    total: RatingValue,
    rest_min: Sequence[int],
    rest_max: Sequence[int],
    *,
    descending: bool,
) -> List[SumsByConstant]:
    # result[i][c]: weighted sums of entries 0..i with entry i taking c.
    # ``linked[i]`` ties entry i to entry i-1: with ``descending`` entry i
    # must not rate above it, otherwise not below it.
    result: List[SumsByConstant] = []
    previous: Optional[SumsByConstant] = None
    previous_ratings: Mapping[ScoreConstant, RatingValue] = {}
    for i, ratings in enumerate(options):
        upper = total - rest_min[i]
        lower = total - rest_max[i]
        current: SumsByConstant = {}
        for constant, value in ratings.items():
            if previous is None:
                sums: Set[int] = {0}
            elif linked[i]:
                sums = set()
                for other, other_sums in previous.items():
                    other_value = previous_ratings[other]
                    if (other_value >= value) if descending else (other_value <= value):
                        sums |= other_sums
            else:
                sums = set().union(*previous.values())
            step = weights[i] * value
            reached = {s + step for s in sums if lower <= s + step <= upper}
            if reached:
                current[constant] = reached
        result.append(current)
        previous, previous_ratings = current, ratings
    return result


def solve_sum_and_order(
    options: Sequence[Mapping[ScoreConstant, RatingValue]],
    weights: Sequence[int],
    linked: Sequence[bool],
    total: RatingValue,
) -> List[FrozenSet[ScoreConstant]]:
    """Return, per entry, the constants used by some assignment meeting order and total.

    ``options[i]`` maps the candidates of entry ``i`` to their ratings.
    ``weights[i]`` is 1 for entries counted in ``total`` and 0 for the others.
    ``linked[i]`` means entry ``i`` is ranked right under entry ``i - 1`` and
    may not rate above it; ties are allowed.
    """

    n = len(options)
    if n == 0:
        return []
    if any(not ratings for ratings in options):
        return [frozenset()] * n

    lows = [w * min(r.values()) for w, r in zip(weights, options)]
    highs = [w * max(r.values()) for w, r in zip(weights, options)]
    after_min, after_max = [0] * (n + 1), [0] * (n + 1)
    for i in reversed(range(n)):
        after_min[i] = after_min[i + 1] + lows[i]
        after_max[i] = after_max[i + 1] + highs[i]
    if not after_min[0] <= total <= after_max[0]:
        return [frozenset()] * n
    before_min, before_max = [0] * (n + 1), [0] * (n + 1)
    for i in range(n):
        before_min[i + 1] = before_min[i] + lows[i]
        before_max[i + 1] = before_max[i] + highs[i]

    forward = _reachable_sums(
        options, weights, linked, total, after_min[1:], after_max[1:], descending=True
    )
    backward = _reachable_sums(
        options[::-1],
        weights[::-1],
        [False] + [linked[n - k] for k in range(1, n)],
        total,
        before_min[n - 1::-1],
        before_max[n - 1::-1],
        descending=False,
    )[::-1]

    result = []
    for i in range(n):
        feasible = set()
        for constant, prefix in forward[i].items():
            suffix = backward[i].get(constant)
            if not suffix:
                continue
            step = weights[i] * options[i][constant]
            if any(total - s + step in suffix for s in prefix):
                feasible.add(constant)
        result.append(frozenset(feasible))
    return result


def narrow_by_rating_sum(store: CandidateStore, snapshot: RatingTargetSnapshot, reason: str) -> bool:
    """Discard constants incompatible with the snapshot's order and rating total together.

    The targets of both lists count toward the total; runners-up only take
    part in the order.  When no assignment meets the total, every target
    gets a contradiction proposing the constants the other targets' ranges
    would allow.
    """

    if snapshot.rating is None:
        return False
    sequence: List[Tuple[RankedEntry, int, bool]] = []
    for ranked in (snapshot.new, snapshot.old):
        for idx, entry in enumerate(ranked.ordered):
            sequence.append((entry, 1 if idx < len(ranked.entries) else 0, idx > 0))
    if not any(weight for _, weight, _ in sequence):
        return False

    options = [_candidate_ratings(store, entry) for entry, _, _ in sequence]
    weights = [weight for _, weight, _ in sequence]
    feasible = solve_sum_and_order(options, weights, [link for _, _, link in sequence], snapshot.rating)

    changed = False
    if all(feasible):
        for (entry, _, _), survivors in zip(sequence, feasible):
            if store.narrow(entry.chart, survivors, reason):
                changed = True
        return changed

    total_min = sum(w * min(r.values()) for w, r in zip(weights, options))
    total_max = sum(w * max(r.values()) for w, r in zip(weights, options))
    for (entry, weight, _), ratings in zip(sequence, options):
        if not weight or store.is_removed(entry.chart):
            continue
        # The other targets contribute between these two sums.
        others_min = total_min - min(ratings.values())
        others_max = total_max - max(ratings.values())
        proposed = constants_rated_within(
            entry.achievement, snapshot.rating - others_max, snapshot.rating - others_min
        )
        if store.record_contradiction(entry.chart, proposed, reason):
            changed = True
    return changed


def apply_snapshot(
    store: CandidateStore,
    snapshot: RatingTargetSnapshot,
    *,
    use_rating_sum: bool = False,
) -> bool:
    reason = f"by the rating target list (source: {snapshot.label()})"
    changed = False
    for ranked in (snapshot.new, snapshot.old):
        if narrow_ranked_list(store, ranked, reason):
            changed = True
    if use_rating_sum and narrow_by_rating_sum(store, snapshot, reason + " and its rating total"):
        changed = True
    return changed


def apply_order_evidence(
    store: CandidateStore,
    catalog: ChartCatalog,
    snapshots: Sequence[RatingTargetSnapshot],
    version: GameVersion,
    config: Optional[EstimatorConfig] = None,
) -> bool:
    """Apply every snapshot of one user taken during ``version``.

    Returns ``True`` when the store changed.
    """

    config = config or get_estimator_config()
    removal: Optional[datetime] = catalog.first_removal_within(version)
    changed = False
    used = 0
    for snapshot in sorted(snapshots, key=lambda s: s.taken_at):
        if not version.contains(snapshot.taken_at):
            continue
        used += 1
        sum_reliable = config.use_rating_sum and (removal is None or snapshot.taken_at < removal)
        if apply_snapshot(store, snapshot, use_rating_sum=sum_reliable):
            changed = True
    logger.debug("Order evidence: %d snapshot(s), changed=%s", used, changed)
    return changed


apply_debug_logging(
    globals(),
    logger=logger,
    skip={"propagate_order", "constants_rated_within", "solve_sum_and_order"},
)

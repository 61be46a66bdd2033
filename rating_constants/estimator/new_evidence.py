"""Narrowing from the rating delta of plays on newly introduced charts.

A chart's first version is the only one whose deltas can be trusted without
worrying about constant revisions, so only plays on charts introduced in the
estimated version are used.  The delta a play causes is the change of the
player's total rating; to recover the chart's own rating the player's best
new-chart table is replayed alongside the events.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from ..catalog import ChartCatalog
from ..logging_utils import apply_debug_logging
from ..rating import candidates_for
from ..store import CandidateStore
from ..types import ChartKey, GameVersion, RatingValue, check_achievement, format_achievement
from .config import EstimatorConfig, get_estimator_config
from .model import PlayEvent

logger = logging.getLogger(__name__)


class BestRatingTable:
    """Replays the best-N table of new charts from rating deltas."""

    def __init__(self, size: int):
        if size <= 0:
            raise ValueError("table size must be positive")
        self.size = size
        self.ratings: Dict[ChartKey, RatingValue] = {}

    def apply(self, chart: ChartKey, delta: RatingValue) -> RatingValue:
        """Account for a positive ``delta`` on ``chart`` and return its rating."""

        if chart in self.ratings:
            self.ratings[chart] += delta
        elif len(self.ratings) >= self.size:
            lowest = min(self.ratings, key=lambda key: (self.ratings[key], key.sort_key()))
            self.ratings[chart] = self.ratings.pop(lowest) + delta
        else:
            self.ratings[chart] = delta
        return self.ratings[chart]


def apply_new_evidence(
    store: CandidateStore,
    catalog: ChartCatalog,
    events: Iterable[PlayEvent],
    version: GameVersion,
    config: Optional[EstimatorConfig] = None,
) -> bool:
    """Narrow new charts from one user's play events.

    Returns ``True`` when the store changed.
    """

    config = config or get_estimator_config()
    table = BestRatingTable(config.new_list_size)
    changed = False
    used = 0

    for event in sorted(events, key=lambda e: e.played_at):
        if not version.contains(event.played_at):
            continue
        if not catalog.is_new_in(event.chart, version):
            continue
        check_achievement(event.achievement)
        if event.delta <= 0:
            continue

        single = table.apply(event.chart, event.delta)
        if store.is_known(event.chart):
            continue
        used += 1
        reason = (
            f"because the record achieving {format_achievement(event.achievement)} "
            f"determines the single-chart rating to be {single} (source: {event.label()})"
        )
        if store.narrow(event.chart, candidates_for(single, event.achievement), reason):
            changed = True

    logger.info("New-chart evidence: %d qualifying play(s), changed=%s", used, changed)
    return changed


apply_debug_logging(globals(), logger=logger)

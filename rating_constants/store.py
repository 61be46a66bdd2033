"""Per-chart candidate sets shared by every extractor.

The store is the only mutable object of the estimator.  Candidate sets only
ever shrink; a narrowing that would empty a set is recorded as a
:class:`Contradiction` and leaves the set untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Literal, Optional, Set, Tuple

from .catalog import UnknownChartError
from .types import FULL_DOMAIN, ChartKey, ScoreConstant, check_constant, format_candidates

logger = logging.getLogger(__name__)

ChartStatus = Literal["unconstrained", "narrowed", "known", "removed", "contradiction"]


@dataclass(frozen=True)
class Contradiction:
    """Evidence that would have emptied a chart's candidate set."""

    chart: ChartKey
    prior: FrozenSet[ScoreConstant]
    proposed: FrozenSet[ScoreConstant]
    reason: str = ""

    def __str__(self) -> str:
        text = (
            f"{self.chart}: candidates {format_candidates(self.prior)} "
            f"conflict with {format_candidates(self.proposed)}"
        )
        if self.reason:
            text += f" ({self.reason})"
        return text


@dataclass(frozen=True)
class NarrowingEvent:
    chart: ChartKey
    candidates: FrozenSet[ScoreConstant]
    reason: str

    def __str__(self) -> str:
        verb = "determined" if len(self.candidates) == 1 else "constrained"
        return f"{self.chart}: {verb} to {format_candidates(self.candidates)} {self.reason}".rstrip()


@dataclass(frozen=True)
class ChartState:
    """Read-only view of one chart as exposed to callers."""

    chart: ChartKey
    status: ChartStatus
    candidates: FrozenSet[ScoreConstant]
    contradictions: Tuple[Contradiction, ...] = ()

    @property
    def constant(self) -> Optional[ScoreConstant]:
        if self.status == "known":
            return next(iter(self.candidates))
        return None


@dataclass
class _Entry:
    chart: ChartKey
    candidates: FrozenSet[ScoreConstant]
    initial_size: int
    removed: bool = False
    contradictions: List[Contradiction] = field(default_factory=list)
    history: List[int] = field(default_factory=list)


class CandidateStore:
    """Table of candidate sets keyed by chart."""

    def __init__(self) -> None:
        self._entries: Dict[ChartKey, _Entry] = {}
        self._events: List[NarrowingEvent] = []
        self._contradictions: List[Contradiction] = []
        self._seen_contradictions: Set[Tuple[ChartKey, FrozenSet[int], FrozenSet[int], str]] = set()
        self._changed = False

    # ------------------------------------------------------------------
    # population
    def add_chart(
        self,
        chart: ChartKey,
        initial: Iterable[ScoreConstant] = FULL_DOMAIN,
        *,
        reason: str = "initial candidates",
    ) -> None:
        if chart in self._entries:
            raise ValueError(f"chart {chart} is already in the store")
        candidates = frozenset(check_constant(c) for c in initial)
        if not candidates:
            raise ValueError(f"chart {chart} needs at least one candidate")
        entry = _Entry(chart=chart, candidates=candidates, initial_size=len(candidates))
        self._entries[chart] = entry
        self._record(entry, reason)

    def __contains__(self, chart: object) -> bool:
        return chart in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> List[ChartKey]:
        return sorted(self._entries, key=ChartKey.sort_key)

    def _entry(self, chart: ChartKey) -> _Entry:
        try:
            return self._entries[chart]
        except KeyError:
            raise UnknownChartError(chart, "not in candidate store") from None

    def _record(self, entry: _Entry, reason: str) -> None:
        event = NarrowingEvent(entry.chart, entry.candidates, reason)
        self._events.append(event)
        entry.history.append(len(self._events) - 1)

    # ------------------------------------------------------------------
    # mutation
    def narrow(self, chart: ChartKey, new_set: Iterable[ScoreConstant], reason: str = "") -> bool:
        """Intersect the chart's candidates with ``new_set``.

        Returns ``True`` when the candidate set shrank.  Removed charts and
        charts already in contradiction are left alone; an empty intersection
        is recorded as a contradiction instead of being stored, which
        :meth:`changed` reports but the return value does not.
        """

        entry = self._entry(chart)
        proposed = frozenset(new_set)
        if entry.removed:
            return False
        current = entry.candidates
        narrowed = current & proposed
        if not narrowed:
            self._contradict(entry, proposed, reason)
            return False
        if entry.contradictions or narrowed == current:
            return False
        entry.candidates = narrowed
        self._record(entry, reason)
        self._changed = True
        logger.debug("%s", self._events[-1])
        return True

    def mark_known(self, chart: ChartKey, constant: ScoreConstant, reason: str = "by assumption") -> bool:
        return self.narrow(chart, {check_constant(constant)}, reason)

    def mark_removed(self, chart: ChartKey) -> bool:
        entry = self._entry(chart)
        if entry.removed:
            return False
        entry.removed = True
        self._changed = True
        logger.debug("%s: removed from estimation", chart)
        return True

    def record_contradiction(
        self, chart: ChartKey, proposed: Iterable[ScoreConstant], reason: str = ""
    ) -> bool:
        """Report a conflict found outside :meth:`narrow` (rating totals, ground-truth checks)."""

        return self._contradict(self._entry(chart), frozenset(proposed), reason)

    def _contradict(self, entry: _Entry, proposed: FrozenSet[ScoreConstant], reason: str) -> bool:
        key = (entry.chart, entry.candidates, proposed, reason)
        if key in self._seen_contradictions:
            return False
        self._seen_contradictions.add(key)
        contradiction = Contradiction(entry.chart, entry.candidates, proposed, reason)
        entry.contradictions.append(contradiction)
        self._contradictions.append(contradiction)
        self._changed = True
        logger.warning("Contradiction: %s", contradiction)
        return True

    # ------------------------------------------------------------------
    # pass bookkeeping
    def reset_pass(self) -> None:
        self._changed = False

    def changed(self) -> bool:
        return self._changed

    # ------------------------------------------------------------------
    # queries
    def candidates(self, chart: ChartKey) -> FrozenSet[ScoreConstant]:
        return self._entry(chart).candidates

    def is_known(self, chart: ChartKey) -> bool:
        return len(self._entry(chart).candidates) == 1

    def is_removed(self, chart: ChartKey) -> bool:
        return self._entry(chart).removed

    def state(self, chart: ChartKey) -> ChartState:
        entry = self._entry(chart)
        status: ChartStatus
        if entry.removed:
            status = "removed"
        elif entry.contradictions:
            status = "contradiction"
        elif len(entry.candidates) == 1:
            status = "known"
        elif len(entry.candidates) < entry.initial_size:
            status = "narrowed"
        else:
            status = "unconstrained"
        return ChartState(chart, status, entry.candidates, tuple(entry.contradictions))

    def states(self) -> List[ChartState]:
        return [self.state(chart) for chart in self.keys()]

    def contradictions(self) -> List[Contradiction]:
        return list(self._contradictions)

    def history(self, chart: Optional[ChartKey] = None) -> List[NarrowingEvent]:
        if chart is None:
            return list(self._events)
        return [self._events[idx] for idx in self._entry(chart).history]

    def sizes(self) -> Dict[ChartKey, int]:
        return {chart: len(entry.candidates) for chart, entry in self._entries.items()}

    def num_known(self) -> int:
        return sum(
            1 for entry in self._entries.values() if not entry.removed and len(entry.candidates) == 1
        )

    def total_candidates(self) -> int:
        return sum(len(entry.candidates) for entry in self._entries.values())


__all__ = ["CandidateStore", "ChartState", "ChartStatus", "Contradiction", "NarrowingEvent"]

"""Evidence records handed to the estimator and the reports it returns."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ..store import CandidateStore, Contradiction
from ..types import AchievementValue, ChartKey, GameVersion, RatingValue, ScoreConstant


@dataclass(frozen=True)
class PlayEvent:
    """One recorded play and the change it caused to the player's rating."""

    chart: ChartKey
    achievement: AchievementValue
    delta: RatingValue
    played_at: datetime
    user: str = ""

    def label(self) -> str:
        who = f" by {self.user}" if self.user else ""
        return f"play record played at {self.played_at:%Y-%m-%d %H:%M}{who}"


@dataclass(frozen=True)
class RankedEntry:
    chart: ChartKey
    achievement: AchievementValue


@dataclass(frozen=True)
class RankedList:
    """One ranked list of a rating target snapshot.

    ``entries`` are the rating targets in descending rating order and count
    toward the rating total.  ``runners_up`` continue the order below the
    targets without counting.  ``excluded`` are plays known to rank below the
    whole list, in no particular order.
    """

    entries: Tuple[RankedEntry, ...] = ()
    runners_up: Tuple[RankedEntry, ...] = ()
    excluded: Tuple[RankedEntry, ...] = ()

    @property
    def ordered(self) -> Tuple[RankedEntry, ...]:
        return self.entries + self.runners_up


@dataclass(frozen=True)
class RatingTargetSnapshot:
    taken_at: datetime
    new: RankedList = field(default_factory=RankedList)
    old: RankedList = field(default_factory=RankedList)
    rating: Optional[RatingValue] = None
    user: str = ""

    def label(self) -> str:
        who = f" by {self.user}" if self.user else ""
        return f"rating target recorded at {self.taken_at:%Y-%m-%d %H:%M}{who}"


@dataclass
class UserDataset:
    """Everything known about one player, fully materialised in memory."""

    name: str
    events: List[PlayEvent] = field(default_factory=list)
    snapshots: List[RatingTargetSnapshot] = field(default_factory=list)
    new_songs_are_complete: bool = True


@dataclass
class FusionReport:
    """Outcome of one fusion run.

    ``changes`` holds the ``changed`` flag of every order-evidence pass, so
    its length is the number of passes and its last element is ``False`` on
    convergence.
    """

    version: GameVersion
    new_evidence_changed: bool
    changes: List[bool] = field(default_factory=list)

    @property
    def passes(self) -> int:
        return len(self.changes)

    @property
    def converged(self) -> bool:
        return bool(self.changes) and not self.changes[-1]


@dataclass
class EstimateResult:
    store: CandidateStore
    report: FusionReport

    @property
    def contradictions(self) -> List[Contradiction]:
        return self.store.contradictions()

    def known_constants(self) -> Dict[ChartKey, ScoreConstant]:
        return {
            state.chart: state.constant
            for state in self.store.states()
            if state.constant is not None
        }


@dataclass
class DistrustReport:
    store: CandidateStore
    report: FusionReport
    mismatches: List[Contradiction] = field(default_factory=list)
    verified: List[ChartKey] = field(default_factory=list)
    unresolved: List[ChartKey] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.mismatches and not self.store.contradictions()


__all__ = [
    "DistrustReport",
    "EstimateResult",
    "FusionReport",
    "PlayEvent",
    "RankedEntry",
    "RankedList",
    "RatingTargetSnapshot",
    "UserDataset",
]

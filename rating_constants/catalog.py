"""Versioned chart catalog supplied by the song database collaborator."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, Iterator, List, Optional

from .types import (
    FULL_DOMAIN,
    ChartKey,
    GameVersion,
    ScoreConstant,
    ScoreLevel,
    check_constant,
)


class UnknownChartError(KeyError):
    """Raised when evidence references a chart missing from the catalog or store."""

    def __init__(self, chart: ChartKey, context: str = ""):
        message = f"unknown chart {chart}"
        if context:
            message = f"{message} ({context})"
        super().__init__(message)
        self.chart = chart

    def __str__(self) -> str:
        return str(self.args[0])


@dataclass(frozen=True)
class CatalogEntry:
    """Catalog metadata for one chart.

    ``version`` is the version the chart was introduced in; ``removed_at`` is
    the moment it left the game, if it did.  ``level`` is the displayed level
    and ``constant`` the published score constant, both optional.
    """

    chart: ChartKey
    version: GameVersion
    level: Optional[ScoreLevel] = None
    constant: Optional[ScoreConstant] = None
    removed_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.constant is not None:
            check_constant(self.constant)

    def retired_before(self, version: GameVersion) -> bool:
        return self.removed_at is not None and self.removed_at < version.start_time()

    def initial_candidates(self, version: GameVersion):
        if self.level is None:
            return FULL_DOMAIN
        return self.level.candidates(version)


class ChartCatalog:
    """Lookup table of :class:`CatalogEntry` keyed by :class:`ChartKey`."""

    def __init__(self, entries: Iterable[CatalogEntry] = ()):
        self._entries: Dict[ChartKey, CatalogEntry] = {}
        for entry in entries:
            self.add(entry)

    def add(self, entry: CatalogEntry) -> None:
        if entry.chart in self._entries:
            raise ValueError(f"duplicate catalog entry for {entry.chart}")
        self._entries[entry.chart] = entry

    def __contains__(self, chart: object) -> bool:
        return chart in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self._entries.values())

    def get(self, chart: ChartKey) -> CatalogEntry:
        try:
            return self._entries[chart]
        except KeyError:
            raise UnknownChartError(chart, "not in catalog") from None

    def entries_up_to(self, version: GameVersion) -> List[CatalogEntry]:
        """Entries introduced no later than ``version``, retired ones included."""

        return [entry for entry in self._entries.values() if entry.version <= version]

    def is_new_in(self, chart: ChartKey, version: GameVersion) -> bool:
        return self.get(chart).version == version

    def first_removal_within(self, version: GameVersion) -> Optional[datetime]:
        """Earliest removal of a chart during ``version``, if any.

        Once a chart leaves the game mid-version the published rating total
        no longer equals the sum of the listed targets.
        """

        start, end = version.start_time(), version.end_time()
        removals = [
            entry.removed_at
            for entry in self._entries.values()
            if entry.removed_at is not None and start <= entry.removed_at < end
        ]
        return min(removals) if removals else None

    def known_constants(self) -> Dict[ChartKey, ScoreConstant]:
        return {
            entry.chart: entry.constant
            for entry in self._entries.values()
            if entry.constant is not None
        }


__all__ = ["CatalogEntry", "ChartCatalog", "UnknownChartError"]

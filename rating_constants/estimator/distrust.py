"""Store seeding and the distrust-all validation mode.

In distrust mode every published constant is ignored and the estimator has to
re-derive it from evidence alone; the result is then compared with the
published values.  It is a check of the evidence pipeline, not a way to
produce constants.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from ..catalog import ChartCatalog, UnknownChartError
from ..store import CandidateStore, Contradiction
from ..types import ChartKey, GameVersion, ScoreConstant, format_constant
from .config import EstimatorConfig
from .fusion import run_fusion
from .model import DistrustReport, UserDataset

logger = logging.getLogger(__name__)


def build_store(
    catalog: ChartCatalog,
    version: GameVersion,
    seeds: Optional[Mapping[ChartKey, ScoreConstant]] = None,
    *,
    distrust: bool = False,
) -> CandidateStore:
    """Create the candidate store for ``version``.

    Charts start from their displayed level range.  Unless ``distrust`` is
    set, published catalog constants and ``seeds`` (which win over the
    catalog) are marked known.
    """

    store = CandidateStore()
    for entry in sorted(catalog.entries_up_to(version), key=lambda e: e.chart.sort_key()):
        source = f"level {entry.level}" if entry.level is not None else "full domain"
        store.add_chart(
            entry.chart,
            entry.initial_candidates(version),
            reason=f"according to the catalog ({source})",
        )
        if not entry.chart.is_rateable or entry.retired_before(version):
            store.mark_removed(entry.chart)

    if distrust:
        logger.info("Distrust mode: ignoring published constants of %d chart(s)", len(store))
    else:
        known = {chart: constant for chart, constant in catalog.known_constants().items() if chart in store}
        for chart, constant in (seeds or {}).items():
            if chart not in catalog:
                raise UnknownChartError(chart, "seed")
            if chart in store:
                known[chart] = constant
        for chart in sorted(known, key=ChartKey.sort_key):
            reason = f"according to the database which stores {format_constant(known[chart])}"
            store.mark_known(chart, known[chart], reason)
        logger.info("Seeded %d known constant(s)", len(known))

    store.reset_pass()
    return store


def compare_with_truth(
    store: CandidateStore,
    truth: Mapping[ChartKey, ScoreConstant],
    report: DistrustReport,
) -> DistrustReport:
    """Fill ``report`` with the verdict for every chart with a known truth."""

    for chart in sorted(truth, key=ChartKey.sort_key):
        if chart not in store or store.is_removed(chart):
            continue
        constant = truth[chart]
        candidates = store.candidates(chart)
        if constant not in candidates:
            reason = f"ground truth {format_constant(constant)} was excluded by evidence"
            store.record_contradiction(chart, {constant}, reason)
            report.mismatches.append(Contradiction(chart, candidates, frozenset({constant}), reason))
        elif len(candidates) == 1:
            report.verified.append(chart)
        else:
            report.unresolved.append(chart)
    return report


def run_distrust(
    catalog: ChartCatalog,
    datasets: Sequence[UserDataset],
    version: GameVersion,
    ground_truth: Optional[Mapping[ChartKey, ScoreConstant]] = None,
    config: Optional[EstimatorConfig] = None,
) -> DistrustReport:
    store = build_store(catalog, version, distrust=True)
    fusion = run_fusion(store, catalog, datasets, version, config)
    truth = dict(catalog.known_constants() if ground_truth is None else ground_truth)
    report = compare_with_truth(store, truth, DistrustReport(store=store, report=fusion))
    logger.info(
        "Distrust check: %d verified, %d unresolved, %d mismatch(es)",
        len(report.verified),
        len(report.unresolved),
        len(report.mismatches),
    )
    for mismatch in report.mismatches:
        logger.warning("Distrust mismatch: %s", mismatch)
    return report


__all__ = ["build_store", "compare_with_truth", "run_distrust"]

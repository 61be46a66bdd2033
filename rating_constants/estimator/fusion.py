"""Fixpoint driver combining every user's evidence in one shared store."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..catalog import ChartCatalog
from ..store import CandidateStore
from ..types import GameVersion
from .config import EstimatorConfig, get_estimator_config
from .model import FusionReport, UserDataset
from .new_evidence import apply_new_evidence
from .order_evidence import apply_order_evidence

logger = logging.getLogger(__name__)


class FusionError(RuntimeError):
    """Raised when the fixpoint loop exceeds its pass cap."""


def default_pass_cap(store: CandidateStore) -> int:
    # Every changing pass shrinks a set or records a contradiction derived
    # from the sets of the previous pass.
    return 2 * store.total_candidates() + 2


def run_order_pass(
    store: CandidateStore,
    catalog: ChartCatalog,
    datasets: Sequence[UserDataset],
    version: GameVersion,
    config: Optional[EstimatorConfig] = None,
) -> bool:
    """Run one order-evidence pass over every user; return its ``changed`` flag."""

    store.reset_pass()
    changed = False
    for dataset in datasets:
        if apply_order_evidence(store, catalog, dataset.snapshots, version, config):
            changed = True
    return changed or store.changed()


def run_fusion(
    store: CandidateStore,
    catalog: ChartCatalog,
    datasets: Sequence[UserDataset],
    version: GameVersion,
    config: Optional[EstimatorConfig] = None,
) -> FusionReport:
    """Apply new-chart evidence once, then order evidence until nothing changes."""

    config = config or get_estimator_config()

    store.reset_pass()
    new_changed = False
    for dataset in datasets:
        if not dataset.new_songs_are_complete:
            logger.info("Skipping delta evidence of %s: new-chart history is incomplete", dataset.name)
            continue
        if apply_new_evidence(store, catalog, dataset.events, version, config):
            new_changed = True

    cap = config.max_passes if config.max_passes is not None else default_pass_cap(store)
    report = FusionReport(version=version, new_evidence_changed=new_changed)
    logger.info(
        "Starting fusion over %d user(s) for %s with pass cap %d", len(datasets), version.name, cap
    )

    while True:
        if report.passes >= cap:
            raise FusionError(f"no fixpoint after {cap} pass(es)")
        changed = run_order_pass(store, catalog, datasets, version, config)
        report.changes.append(changed)
        logger.info(
            "Pass %d: changed=%s known=%d/%d contradictions=%d",
            report.passes,
            changed,
            store.num_known(),
            len(store),
            len(store.contradictions()),
        )
        if not changed:
            break
    return report


__all__ = ["FusionError", "default_pass_cap", "run_fusion", "run_order_pass"]

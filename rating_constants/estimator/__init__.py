"""Estimator façade orchestrating store seeding and evidence fusion."""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from ..catalog import ChartCatalog
from ..types import ChartKey, GameVersion, ScoreConstant
from .config import EstimatorConfig, get_estimator_config, set_estimator_config
from .distrust import build_store, compare_with_truth, run_distrust
from .fusion import FusionError, default_pass_cap, run_fusion, run_order_pass
from .model import (
    DistrustReport,
    EstimateResult,
    FusionReport,
    PlayEvent,
    RankedEntry,
    RankedList,
    RatingTargetSnapshot,
    UserDataset,
)
from .new_evidence import BestRatingTable, apply_new_evidence
from .order_evidence import (
    apply_order_evidence,
    apply_snapshot,
    constants_rated_within,
    narrow_by_rating_sum,
    narrow_ranked_list,
    propagate_order,
    solve_sum_and_order,
)

logger = logging.getLogger(__name__)


def estimate(
    catalog: ChartCatalog,
    datasets: Sequence[UserDataset],
    version: GameVersion,
    seeds: Optional[Mapping[ChartKey, ScoreConstant]] = None,
    config: Optional[EstimatorConfig] = None,
) -> EstimateResult:
    """Estimate the constants of every chart of ``version``."""

    logger.info(
        "Estimating %s constants from %d user(s), %d catalog entries",
        version.name,
        len(datasets),
        len(catalog),
    )
    store = build_store(catalog, version, seeds)
    report = run_fusion(store, catalog, datasets, version, config)
    logger.info(
        "Estimation finished after %d pass(es): %d/%d known, %d contradiction(s)",
        report.passes,
        store.num_known(),
        len(store),
        len(store.contradictions()),
    )
    return EstimateResult(store=store, report=report)


def estimate_distrust(
    catalog: ChartCatalog,
    datasets: Sequence[UserDataset],
    version: GameVersion,
    ground_truth: Optional[Mapping[ChartKey, ScoreConstant]] = None,
    config: Optional[EstimatorConfig] = None,
) -> DistrustReport:
    """Re-derive every constant without trusting published values and compare."""

    return run_distrust(catalog, datasets, version, ground_truth, config)


__all__ = [
    "BestRatingTable",
    "DistrustReport",
    "EstimateResult",
    "EstimatorConfig",
    "FusionError",
    "FusionReport",
    "PlayEvent",
    "RankedEntry",
    "RankedList",
    "RatingTargetSnapshot",
    "UserDataset",
    "apply_new_evidence",
    "apply_order_evidence",
    "apply_snapshot",
    "build_store",
    "compare_with_truth",
    "constants_rated_within",
    "default_pass_cap",
    "estimate",
    "estimate_distrust",
    "get_estimator_config",
    "narrow_by_rating_sum",
    "narrow_ranked_list",
    "propagate_order",
    "run_distrust",
    "run_fusion",
    "run_order_pass",
    "set_estimator_config",
    "solve_sum_and_order",
]

from .types import (
    DOMAIN,
    FULL_DOMAIN,
    ChartKey,
    Difficulty,
    GameVersion,
    Generation,
    ScoreLevel,
    format_achievement,
    format_candidates,
    format_constant,
    parse_achievement,
    parse_constant,
)
from .rating import candidates_for, rank_coef, rating, rating_table
from .catalog import CatalogEntry, ChartCatalog, UnknownChartError
from .store import CandidateStore, ChartState, Contradiction, NarrowingEvent
from .estimator import (
    DistrustReport,
    EstimateResult,
    EstimatorConfig,
    FusionError,
    FusionReport,
    PlayEvent,
    RankedEntry,
    RankedList,
    RatingTargetSnapshot,
    UserDataset,
    apply_new_evidence,
    apply_order_evidence,
    build_store,
    estimate,
    estimate_distrust,
    get_estimator_config,
    run_fusion,
    set_estimator_config,
)
from .validate import validate, validate_dataset, ValidationError
from .loader import Dataset, LoaderError, load_dataset, parse_dataset
from .printer import format_state, print_store, summarize

__all__ = [
    "DOMAIN",
    "FULL_DOMAIN",
    "ChartKey",
    "Difficulty",
    "GameVersion",
    "Generation",
    "ScoreLevel",
    "format_achievement",
    "format_candidates",
    "format_constant",
    "parse_achievement",
    "parse_constant",
    "candidates_for",
    "rank_coef",
    "rating",
    "rating_table",
    "CatalogEntry",
    "ChartCatalog",
    "UnknownChartError",
    "CandidateStore",
    "ChartState",
    "Contradiction",
    "NarrowingEvent",
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
    "build_store",
    "estimate",
    "estimate_distrust",
    "get_estimator_config",
    "run_fusion",
    "set_estimator_config",
    "validate",
    "validate_dataset",
    "ValidationError",
    "Dataset",
    "LoaderError",
    "load_dataset",
    "parse_dataset",
    "format_state",
    "print_store",
    "summarize",
]

"""Configuration helpers for the estimator."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Optional


@dataclass
class EstimatorConfig:
    """Tunables of the fusion pipeline."""

    # Size of the new-chart rating target list of the game.
    new_list_size: int = 15
    # ``None`` derives the cap from the initial candidate set sizes.
    max_passes: Optional[int] = None
    use_rating_sum: bool = True


_ESTIMATOR_CONFIG = EstimatorConfig()


def get_estimator_config() -> EstimatorConfig:
    return copy.deepcopy(_ESTIMATOR_CONFIG)


def set_estimator_config(config: EstimatorConfig) -> None:
    global _ESTIMATOR_CONFIG
    _ESTIMATOR_CONFIG = copy.deepcopy(config)

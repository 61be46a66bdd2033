import argparse
import logging
import sys
from typing import Optional, Sequence

from rating_constants import (
    EstimatorConfig,
    GameVersion,
    estimate,
    estimate_distrust,
    get_estimator_config,
    load_dataset,
    print_store,
    summarize,
    validate,
)
from rating_constants.printer import format_contradiction

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _build_config(args: argparse.Namespace) -> EstimatorConfig:
    config = get_estimator_config()
    if args.max_passes is not None:
        config.max_passes = args.max_passes
    if args.no_rating_sum:
        config.use_rating_sum = False
    return config


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Estimate chart score constants")
    parser.add_argument("path", help="Path to the JSON dataset")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--version",
        help="Game version to estimate, e.g. BUDDIES_PLUS (default: the dataset's)",
    )
    parser.add_argument(
        "--distrust",
        action="store_true",
        help="Ignore published constants and check that evidence re-derives them",
    )
    parser.add_argument(
        "--max-passes",
        type=int,
        help="Cap on order-evidence passes",
    )
    parser.add_argument(
        "--no-rating-sum",
        action="store_true",
        help="Do not use rating totals of snapshots",
    )
    parser.add_argument(
        "--show-all",
        action="store_true",
        help="Also print charts without any narrowing",
    )
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    logger.info("Loading dataset from %s", args.path)
    dataset = load_dataset(args.path)
    validate(dataset.catalog, dataset.users)
    logger.info("Validation succeeded")

    if args.version:
        version = GameVersion.parse(args.version)
    elif dataset.version is not None:
        version = dataset.version
    else:
        logger.error("No game version given and the dataset does not declare one")
        raise SystemExit(2)

    config = _build_config(args)

    if args.distrust:
        result = estimate_distrust(dataset.catalog, dataset.users, version, config=config)
        print(f"Version: {version.name} (distrust)")
        print(f"Passes: {result.report.passes}")
        print(print_store(result.store, include_unconstrained=args.show_all), end="")
        print(f"Verified: {len(result.verified)}")
        print(f"Unresolved: {len(result.unresolved)}")
        print("Mismatches:")
        if result.mismatches:
            for mismatch in result.mismatches:
                print(f"  {format_contradiction(mismatch)}")
        else:
            print("  (none)")
        print(f"Summary: {summarize(result.store)}")
        if not result.passed:
            raise SystemExit(1)
        return

    result = estimate(dataset.catalog, dataset.users, version, dataset.seeds, config)
    print(f"Version: {version.name}")
    print(f"Passes: {result.report.passes}")
    print(print_store(result.store, include_unconstrained=args.show_all), end="")
    print(f"Summary: {summarize(result.store)}")


if __name__ == "__main__":
    main(sys.argv[1:])

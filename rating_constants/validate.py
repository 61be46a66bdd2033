from typing import Iterable, Sequence

from .catalog import ChartCatalog
from .estimator.model import RankedEntry, UserDataset
from .types import ChartKey, check_achievement


class ValidationError(Exception):
    pass


def _check_chart(catalog: ChartCatalog, chart: ChartKey, where: str):
    if chart not in catalog:
        raise ValidationError(f"[{where}] unknown chart {chart}")


def _check_achievement(value, where: str):
    try:
        check_achievement(value)
    except ValueError as exc:
        raise ValidationError(f"[{where}] {exc}") from exc


def _check_entries(catalog: ChartCatalog, entries: Iterable[RankedEntry], where: str):
    seen = set()
    for idx, entry in enumerate(entries):
        here = f"{where} #{idx}"
        _check_chart(catalog, entry.chart, here)
        _check_achievement(entry.achievement, here)
        if entry.chart in seen:
            raise ValidationError(f"[{here}] chart {entry.chart} listed twice")
        seen.add(entry.chart)


def validate_dataset(catalog: ChartCatalog, dataset: UserDataset) -> None:
    for idx, event in enumerate(dataset.events):
        where = f"{dataset.name} event #{idx}"
        _check_chart(catalog, event.chart, where)
        _check_achievement(event.achievement, where)
        if isinstance(event.delta, bool) or not isinstance(event.delta, int):
            raise ValidationError(f"[{where}] rating delta must be an integer")

    for idx, snapshot in enumerate(dataset.snapshots):
        where = f"{dataset.name} snapshot #{idx} ({snapshot.taken_at:%Y-%m-%d %H:%M})"
        for name, ranked in (("new", snapshot.new), ("old", snapshot.old)):
            _check_entries(catalog, ranked.ordered, f"{where} {name}")
            _check_entries(catalog, ranked.excluded, f"{where} {name} excluded")
            listed = {entry.chart for entry in ranked.ordered}
            for entry in ranked.excluded:
                if entry.chart in listed:
                    raise ValidationError(f"[{where} {name}] excluded chart {entry.chart} is also listed")
        if snapshot.rating is not None and snapshot.rating < 0:
            raise ValidationError(f"[{where}] rating total must be non-negative")


def validate(catalog: ChartCatalog, datasets: Sequence[UserDataset]) -> None:
    names = [dataset.name for dataset in datasets]
    if len(set(names)) != len(names):
        raise ValidationError("user names must be distinct")
    for dataset in datasets:
        validate_dataset(catalog, dataset)

"""Reading estimator inputs from a JSON document.

The document layout::

    {
      "version": "BUDDIES_PLUS",
      "catalog": [
        {"song": "...", "difficulty": "master", "generation": "deluxe",
         "version": "BUDDIES_PLUS", "level": "13+", "constant": "13.7",
         "removed_at": null}
      ],
      "seeds": [{"song": "...", "difficulty": "...", "generation": "...", "constant": "13.7"}],
      "users": [
        {"name": "alice", "new_songs_are_complete": true,
         "events": [{"song": "...", "difficulty": "...", "generation": "...",
                     "achievement": "100.5000", "delta": 12,
                     "played_at": "2024-04-01T12:00:00"}],
         "snapshots": [{"taken_at": "...", "rating": 15000,
                        "new": {"entries": [...], "runners_up": [...], "excluded": [...]},
                        "old": {...}}]}
      ]
    }

Ranked entries use the chart fields plus ``achievement``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .catalog import CatalogEntry, ChartCatalog
from .estimator.model import PlayEvent, RankedEntry, RankedList, RatingTargetSnapshot, UserDataset
from .types import (
    ChartKey,
    Difficulty,
    GameVersion,
    Generation,
    ScoreConstant,
    ScoreLevel,
    check_achievement,
    parse_achievement,
    parse_constant,
)


class LoaderError(ValueError):
    """Raised when an input document is malformed."""


@dataclass
class Dataset:
    version: Optional[GameVersion]
    catalog: ChartCatalog
    users: List[UserDataset] = field(default_factory=list)
    seeds: Dict[ChartKey, ScoreConstant] = field(default_factory=dict)


def _require(obj: Mapping[str, Any], key: str, where: str) -> Any:
    if not isinstance(obj, Mapping):
        raise LoaderError(f"{where}: expected an object, got {type(obj).__name__}")
    if key not in obj:
        raise LoaderError(f"{where}: missing field '{key}'")
    return obj[key]


def _enum(enum_cls, value: Any, where: str):
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise LoaderError(f"{where}: '{value}' is not one of {choices}") from None


def _version(value: Any, where: str) -> GameVersion:
    try:
        return GameVersion.parse(str(value))
    except ValueError as exc:
        raise LoaderError(f"{where}: {exc}") from None


def _time(value: Any, where: str) -> datetime:
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise LoaderError(f"{where}: malformed timestamp '{value}'") from None


def _achievement(value: Any, where: str) -> int:
    try:
        if isinstance(value, int) and not isinstance(value, bool):
            return check_achievement(value)
        return parse_achievement(str(value))
    except ValueError as exc:
        raise LoaderError(f"{where}: {exc}") from None


def _constant(value: Any, where: str) -> ScoreConstant:
    try:
        return parse_constant(str(value))
    except ValueError as exc:
        raise LoaderError(f"{where}: {exc}") from None


def _chart(obj: Mapping[str, Any], where: str) -> ChartKey:
    return ChartKey(
        song=str(_require(obj, "song", where)),
        difficulty=_enum(Difficulty, _require(obj, "difficulty", where), where),
        generation=_enum(Generation, _require(obj, "generation", where), where),
    )


def _catalog_entry(obj: Mapping[str, Any], where: str) -> CatalogEntry:
    level = obj.get("level")
    constant = obj.get("constant")
    removed_at = obj.get("removed_at")
    try:
        parsed_level = ScoreLevel.parse(str(level)) if level is not None else None
    except ValueError as exc:
        raise LoaderError(f"{where}: {exc}") from None
    return CatalogEntry(
        chart=_chart(obj, where),
        version=_version(_require(obj, "version", where), where),
        level=parsed_level,
        constant=_constant(constant, where) if constant is not None else None,
        removed_at=_time(removed_at, where) if removed_at is not None else None,
    )


def _ranked_entries(items: Any, where: str) -> Tuple[RankedEntry, ...]:
    if items is None:
        return ()
    if not isinstance(items, list):
        raise LoaderError(f"{where}: expected a list")
    return tuple(
        RankedEntry(
            chart=_chart(item, f"{where}[{idx}]"),
            achievement=_achievement(_require(item, "achievement", f"{where}[{idx}]"), f"{where}[{idx}]"),
        )
        for idx, item in enumerate(items)
    )


def _ranked_list(obj: Any, where: str) -> RankedList:
    if obj is None:
        return RankedList()
    if not isinstance(obj, Mapping):
        raise LoaderError(f"{where}: expected an object")
    return RankedList(
        entries=_ranked_entries(obj.get("entries"), f"{where}.entries"),
        runners_up=_ranked_entries(obj.get("runners_up"), f"{where}.runners_up"),
        excluded=_ranked_entries(obj.get("excluded"), f"{where}.excluded"),
    )


def _user(obj: Mapping[str, Any], where: str) -> UserDataset:
    name = str(_require(obj, "name", where))
    events = []
    for idx, item in enumerate(obj.get("events") or []):
        here = f"{where}.events[{idx}]"
        delta = _require(item, "delta", here)
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise LoaderError(f"{here}: delta must be an integer")
        events.append(
            PlayEvent(
                chart=_chart(item, here),
                achievement=_achievement(_require(item, "achievement", here), here),
                delta=delta,
                played_at=_time(_require(item, "played_at", here), here),
                user=name,
            )
        )
    snapshots = []
    for idx, item in enumerate(obj.get("snapshots") or []):
        here = f"{where}.snapshots[{idx}]"
        rating = item.get("rating") if isinstance(item, Mapping) else None
        if rating is not None and (isinstance(rating, bool) or not isinstance(rating, int)):
            raise LoaderError(f"{here}: rating must be an integer")
        snapshots.append(
            RatingTargetSnapshot(
                taken_at=_time(_require(item, "taken_at", here), here),
                new=_ranked_list(item.get("new"), f"{here}.new"),
                old=_ranked_list(item.get("old"), f"{here}.old"),
                rating=rating,
                user=name,
            )
        )
    return UserDataset(
        name=name,
        events=events,
        snapshots=snapshots,
        new_songs_are_complete=bool(obj.get("new_songs_are_complete", True)),
    )


def parse_dataset(document: Mapping[str, Any]) -> Dataset:
    if not isinstance(document, Mapping):
        raise LoaderError("dataset: expected a JSON object")
    version = document.get("version")
    catalog = ChartCatalog()
    for idx, item in enumerate(_require(document, "catalog", "dataset")):
        try:
            catalog.add(_catalog_entry(item, f"catalog[{idx}]"))
        except ValueError as exc:
            if isinstance(exc, LoaderError):
                raise
            raise LoaderError(f"catalog[{idx}]: {exc}") from None
    seeds = {}
    for idx, item in enumerate(document.get("seeds") or []):
        here = f"seeds[{idx}]"
        seeds[_chart(item, here)] = _constant(_require(item, "constant", here), here)
    users = [_user(item, f"users[{idx}]") for idx, item in enumerate(document.get("users") or [])]
    return Dataset(
        version=_version(version, "dataset") if version is not None else None,
        catalog=catalog,
        users=users,
        seeds=seeds,
    )


def load_dataset(path: Union[str, Path]) -> Dataset:
    text = Path(path).read_text(encoding="utf-8")
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise LoaderError(f"{path}: invalid JSON ({exc})") from exc
    return parse_dataset(document)


__all__ = ["Dataset", "LoaderError", "load_dataset", "parse_dataset"]

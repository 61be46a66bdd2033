"""Domain types shared by the catalog, the store and the extractors."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum, IntEnum
from typing import FrozenSet, Optional, Tuple

# Score constants are stored as integer tenths: 137 means 13.7.
ScoreConstant = int
# Achievements are stored in units of 0.0001 %: 1005000 means 100.5000 %.
AchievementValue = int
RatingValue = int

MIN_CONSTANT: ScoreConstant = 10
MAX_CONSTANT: ScoreConstant = 150
DOMAIN: Tuple[ScoreConstant, ...] = tuple(range(MIN_CONSTANT, MAX_CONSTANT + 1))
FULL_DOMAIN: FrozenSet[ScoreConstant] = frozenset(DOMAIN)

MAX_ACHIEVEMENT: AchievementValue = 1010000

_CONSTANT_RE = re.compile(r"^\s*(\d{1,2})(?:\.(\d))?\s*$")
_ACHIEVEMENT_RE = re.compile(r"^\s*(\d{1,3})(?:\.(\d{1,4}))?\s*%?\s*$")
_LEVEL_RE = re.compile(r"^\s*(\d{1,2})(\+?)\s*$")


class Difficulty(Enum):
    BASIC = "basic"
    ADVANCED = "advanced"
    EXPERT = "expert"
    MASTER = "master"
    RE_MASTER = "re_master"
    UTAGE = "utage"

    @property
    def is_rateable(self) -> bool:
        # Utage charts have no score constant and never enter the rating.
        return self is not Difficulty.UTAGE

    @property
    def abbrev(self) -> str:
        return {
            Difficulty.BASIC: "BAS",
            Difficulty.ADVANCED: "ADV",
            Difficulty.EXPERT: "EXP",
            Difficulty.MASTER: "MAS",
            Difficulty.RE_MASTER: "ReMAS",
            Difficulty.UTAGE: "UTAGE",
        }[self]


class Generation(Enum):
    STANDARD = "standard"
    DELUXE = "deluxe"

    @property
    def abbrev(self) -> str:
        return "DX" if self is Generation.DELUXE else "Std"


class GameVersion(IntEnum):
    MAIMAI = 0
    MAIMAI_PLUS = 1
    GREEN = 2
    GREEN_PLUS = 3
    ORANGE = 4
    ORANGE_PLUS = 5
    PINK = 6
    PINK_PLUS = 7
    MURASAKI = 8
    MURASAKI_PLUS = 9
    MILK = 10
    MILK_PLUS = 11
    FINALE = 12
    DELUXE = 13
    DELUXE_PLUS = 14
    SPLASH = 15
    SPLASH_PLUS = 16
    UNIVERSE = 17
    UNIVERSE_PLUS = 18
    FESTIVAL = 19
    FESTIVAL_PLUS = 20
    BUDDIES = 21
    BUDDIES_PLUS = 22
    PRISM = 23
    PRISM_PLUS = 24

    @property
    def start_date(self) -> date:
        return _VERSION_START_DATES[self]

    def start_time(self) -> datetime:
        return datetime.combine(self.start_date, _VERSION_SWITCH_TIME)

    def end_time(self) -> datetime:
        following = self.next()
        if following is None:
            return datetime.max
        return following.start_time()

    def next(self) -> Optional["GameVersion"]:
        try:
            return GameVersion(self.value + 1)
        except ValueError:
            return None

    def contains(self, when: datetime) -> bool:
        return self.start_time() <= when < self.end_time()

    @classmethod
    def of_time(cls, when: datetime) -> Optional["GameVersion"]:
        for version in cls:
            if version.contains(when):
                return version
        return None

    @classmethod
    def parse(cls, text: str) -> "GameVersion":
        key = text.strip().upper().replace(" ", "_").replace("-", "_")
        try:
            return cls[key]
        except KeyError as exc:
            raise ValueError(f"unknown game version {text!r}") from exc


_VERSION_SWITCH_TIME = time(6, 0)

_VERSION_START_DATES = {
    GameVersion.MAIMAI: date(2012, 7, 12),
    GameVersion.MAIMAI_PLUS: date(2012, 12, 13),
    GameVersion.GREEN: date(2013, 7, 11),
    GameVersion.GREEN_PLUS: date(2014, 2, 26),
    GameVersion.ORANGE: date(2014, 9, 18),
    GameVersion.ORANGE_PLUS: date(2015, 3, 19),
    GameVersion.PINK: date(2015, 12, 9),
    GameVersion.PINK_PLUS: date(2016, 6, 30),
    GameVersion.MURASAKI: date(2016, 12, 14),
    GameVersion.MURASAKI_PLUS: date(2017, 6, 22),
    GameVersion.MILK: date(2017, 12, 14),
    GameVersion.MILK_PLUS: date(2018, 6, 21),
    GameVersion.FINALE: date(2018, 12, 13),
    GameVersion.DELUXE: date(2019, 7, 11),
    GameVersion.DELUXE_PLUS: date(2020, 1, 23),
    GameVersion.SPLASH: date(2020, 9, 17),
    GameVersion.SPLASH_PLUS: date(2021, 3, 18),
    GameVersion.UNIVERSE: date(2021, 9, 16),
    GameVersion.UNIVERSE_PLUS: date(2022, 3, 24),
    GameVersion.FESTIVAL: date(2022, 9, 15),
    GameVersion.FESTIVAL_PLUS: date(2023, 3, 23),
    GameVersion.BUDDIES: date(2023, 9, 14),
    GameVersion.BUDDIES_PLUS: date(2024, 3, 21),
    GameVersion.PRISM: date(2024, 9, 12),
    GameVersion.PRISM_PLUS: date(2025, 3, 13),
}


@dataclass(frozen=True)
class ChartKey:
    """One playable chart: a song at a difficulty in a chart generation."""

    song: str
    difficulty: Difficulty
    generation: Generation

    @property
    def is_rateable(self) -> bool:
        return self.difficulty.is_rateable

    def sort_key(self) -> Tuple[str, int, int]:
        return (
            self.song,
            list(Difficulty).index(self.difficulty),
            list(Generation).index(self.generation),
        )

    def __str__(self) -> str:
        return f"{self.song} [{self.generation.abbrev} {self.difficulty.abbrev}]"


@dataclass(frozen=True, order=True)
class ScoreLevel:
    """Displayed chart level such as ``13`` or ``13+``."""

    level: int
    plus: bool = False

    def __post_init__(self) -> None:
        if not 1 <= self.level <= 15:
            raise ValueError(f"level out of range: {self}")
        if self.plus and not 7 <= self.level <= 14:
            raise ValueError(f"level out of range: {self}")

    def candidates(self, version: GameVersion) -> FrozenSet[ScoreConstant]:
        """Return the constants a chart of this level may have in ``version``."""

        a = self.level
        if a <= 6:
            values = range(a * 10, (a + 1) * 10)
        elif a <= 14:
            boundary = a * 10 + (6 if version >= GameVersion.BUDDIES_PLUS else 7)
            values = range(boundary, (a + 1) * 10) if self.plus else range(a * 10, boundary)
        else:
            values = range(150, 151)
        return frozenset(values)

    @classmethod
    def parse(cls, text: str) -> "ScoreLevel":
        match = _LEVEL_RE.match(text)
        if not match:
            raise ValueError(f"malformed level {text!r}")
        return cls(int(match.group(1)), bool(match.group(2)))

    def __str__(self) -> str:
        return f"{self.level}{'+' if self.plus else ''}"


def check_constant(value: ScoreConstant) -> ScoreConstant:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"score constant must be an integer number of tenths, got {value!r}")
    if not MIN_CONSTANT <= value <= MAX_CONSTANT:
        raise ValueError(f"score constant out of range: {value}")
    return value


def parse_constant(text: str) -> ScoreConstant:
    """Parse ``"13.7"`` into ``137``."""

    match = _CONSTANT_RE.match(text)
    if not match:
        raise ValueError(f"malformed score constant {text!r}")
    whole, tenth = match.groups()
    return check_constant(int(whole) * 10 + int(tenth or 0))


def format_constant(value: ScoreConstant) -> str:
    return f"{value // 10}.{value % 10}"


def format_candidates(values) -> str:
    return "{" + ", ".join(format_constant(v) for v in sorted(values)) + "}"


def check_achievement(value: AchievementValue) -> AchievementValue:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"achievement must be an integer in 0.0001% units, got {value!r}")
    if not 0 <= value <= MAX_ACHIEVEMENT:
        raise ValueError(f"achievement out of range: {value}")
    return value


def parse_achievement(text: str) -> AchievementValue:
    """Parse ``"100.5000%"`` into ``1005000``."""

    match = _ACHIEVEMENT_RE.match(text)
    if not match:
        raise ValueError(f"malformed achievement {text!r}")
    whole, frac = match.groups()
    return check_achievement(int(whole) * 10000 + int((frac or "").ljust(4, "0")))


def format_achievement(value: AchievementValue) -> str:
    return f"{value // 10000}.{value % 10000:04d}%"


__all__ = [
    "AchievementValue",
    "ChartKey",
    "DOMAIN",
    "Difficulty",
    "FULL_DOMAIN",
    "GameVersion",
    "Generation",
    "MAX_ACHIEVEMENT",
    "MAX_CONSTANT",
    "MIN_CONSTANT",
    "RatingValue",
    "ScoreConstant",
    "ScoreLevel",
    "check_achievement",
    "check_constant",
    "format_achievement",
    "format_candidates",
    "format_constant",
    "parse_achievement",
    "parse_constant",
]

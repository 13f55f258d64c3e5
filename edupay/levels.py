"""
Level configuration: tuition fee, summary bucket, the day types a level is
offered on and the teacher of each class.

Everything level-dependent is a lookup in LEVEL_TABLE. Strings that are not a
known Level fall back to the same name matching the table was written from,
so the lookups stay total for stale or hand-edited data.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .constants import NO_TEACHER
from .models import DayType, Level

KET_PET_FCE_FEE = 70000
MATH_FEE = 55000
DEFAULT_FEE = 65000

SUMMARY_BUCKETS = [
    "Pre-starters",
    "Starters",
    "Movers",
    "Flyers",
    "KET",
    "PET",
    "FCE",
    "Math-1",
    "Math-4",
    "Math-6",
]
OTHER_BUCKET = "Other"

WD = DayType.WEEKDAY
WE = DayType.WEEKEND


@dataclass(frozen=True)
class LevelInfo:
    fee: int
    summary_bucket: str
    day_types: frozenset
    teachers: dict = field(default_factory=dict)  # DayType -> teacher name


def _info(fee: int, bucket: str, days: tuple, **teachers: str) -> LevelInfo:
    by_day = {}
    if "weekday" in teachers:
        by_day[WD] = teachers["weekday"]
    if "weekend" in teachers:
        by_day[WE] = teachers["weekend"]
    return LevelInfo(fee=fee, summary_bucket=bucket, day_types=frozenset(days), teachers=by_day)


LEVEL_TABLE: dict[Level, LevelInfo] = {
    Level.PRE_STARTERS: _info(DEFAULT_FEE, "Pre-starters", (WD, WE), weekday="Tr. Phoo", weekend="Tr. Phoo"),
    Level.STARTERS: _info(DEFAULT_FEE, "Starters", (WD,), weekday="Tr. Phyo"),
    Level.STARTERS_1: _info(DEFAULT_FEE, "Starters", (WE,), weekend="Tr. Phyo"),
    Level.STARTERS_2: _info(DEFAULT_FEE, "Starters", (WE,), weekend="Tr. Yadanar"),
    Level.MOVERS: _info(DEFAULT_FEE, "Movers", (WD,), weekday="Tr. Nyein"),
    Level.MOVERS_1: _info(DEFAULT_FEE, "Movers", (WE,), weekend="Tr. Nyein"),
    Level.MOVERS_2: _info(DEFAULT_FEE, "Movers", (WE,), weekend="Tr. Athena"),
    Level.PRE_FLYERS: _info(DEFAULT_FEE, "Flyers", (WD, WE), weekday="Tr. Elora", weekend="Tr. Elora"),
    Level.FLYERS: _info(DEFAULT_FEE, "Flyers", (WE,), weekend="Tr. Yamin"),
    Level.FLYERS_1: _info(DEFAULT_FEE, "Flyers", (WD,), weekday="Tr. Ko Myo"),
    Level.FLYERS_2: _info(DEFAULT_FEE, "Flyers", (WD,), weekday="Tr. Shwe Sin"),
    Level.KET_1: _info(KET_PET_FCE_FEE, "KET", (WD, WE), weekday="Tr. Phoo Phoo", weekend="Tr. Samuel"),
    Level.KET_2: _info(KET_PET_FCE_FEE, "KET", (WD, WE), weekday="Tr. Yadanar", weekend="Tr. Athena"),
    Level.PET: _info(KET_PET_FCE_FEE, "PET", (WD, WE), weekday="Tr. Ko Myo", weekend="Tr. Ei Phyo"),
    Level.FCE: _info(KET_PET_FCE_FEE, "FCE", (WE,), weekend="Tr. Ko Myo"),
    Level.MATH_1: _info(MATH_FEE, "Math-1", (WE,), weekend="Tr. Sweety"),
    Level.MATH_4: _info(MATH_FEE, "Math-4", (WE,), weekend="Tr. Khat"),
    Level.MATH_6: _info(MATH_FEE, "Math-6", (WE,), weekend="Tr. Su Htet"),
}

# Entry-form order of each day's offering.
WEEKDAY_LEVELS = [
    Level.PRE_STARTERS,
    Level.STARTERS,
    Level.MOVERS,
    Level.FLYERS_1,
    Level.FLYERS_2,
    Level.PRE_FLYERS,
    Level.KET_1,
    Level.KET_2,
    Level.PET,
]
WEEKEND_LEVELS = [
    Level.PRE_STARTERS,
    Level.STARTERS_1,
    Level.STARTERS_2,
    Level.MOVERS_1,
    Level.MOVERS_2,
    Level.FLYERS,
    Level.PRE_FLYERS,
    Level.KET_1,
    Level.KET_2,
    Level.PET,
    Level.FCE,
    Level.MATH_1,
    Level.MATH_4,
    Level.MATH_6,
]


def _name_of(level: Any) -> str:
    return str(getattr(level, "value", level) or "")


def _fee_by_name(name: str) -> int:
    n = name.lower()
    if "ket" in n or "pet" in n or "fce" in n:
        return KET_PET_FCE_FEE
    if "math" in n:
        return MATH_FEE
    return DEFAULT_FEE


def _bucket_by_name(name: str) -> str:
    n = name.strip().lower()
    if "pre-starters" in n:
        return "Pre-starters"
    if "starters" in n:
        return "Starters"
    if "movers" in n:
        return "Movers"
    if "flyers" in n:
        return "Flyers"
    if "ket" in n:
        return "KET"
    if "pet" in n:
        return "PET"
    if "fce" in n:
        return "FCE"
    for bucket in ("Math-1", "Math-4", "Math-6"):
        if n == bucket.lower():
            return bucket
    return OTHER_BUCKET


def fee_for(level: Any) -> int:
    """Canonical tuition fee of a level; never fails."""
    lvl = Level.parse(level)
    if lvl is not None:
        return LEVEL_TABLE[lvl].fee
    return _fee_by_name(_name_of(level))


def summary_bucket_for(category: Any) -> str:
    """One of SUMMARY_BUCKETS, or OTHER_BUCKET for anything unrecognised."""
    lvl = Level.parse(category)
    if lvl is not None:
        return LEVEL_TABLE[lvl].summary_bucket
    return _bucket_by_name(_name_of(category))


def levels_for_day(day_type: DayType) -> list[Level]:
    return list(WEEKDAY_LEVELS if DayType.parse(day_type) is DayType.WEEKDAY else WEEKEND_LEVELS)


def is_valid_level(level: Any, day_type: DayType) -> bool:
    lvl = Level.parse(level)
    if lvl is None:
        return False
    return DayType.parse(day_type) in LEVEL_TABLE[lvl].day_types


def teacher_for(level: Any, day_type: DayType) -> str:
    lvl = Level.parse(level)
    if lvl is None:
        return NO_TEACHER
    return LEVEL_TABLE[lvl].teachers.get(DayType.parse(day_type), NO_TEACHER)

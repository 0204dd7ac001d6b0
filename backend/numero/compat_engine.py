"""Two-person compatibility: aspect scores, narrative tags, relationship number and date scan."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Callable

from .date_engine import (
    calculate_birthday,
    calculate_life_path,
    calculate_personal_year,
    calculate_universal_day,
)
from .letters import LetterSystem
from .name_engine import calculate_expression, calculate_personality, calculate_soul_urge
from .reducer import reduce_number, reduce_to_single_digit

logger = logging.getLogger("numero.compat_engine")

EXCELLENT_THRESHOLD = 85
GOOD_THRESHOLD = 70
MODERATE_THRESHOLD = 50

DEFAULT_BASE_SCORE = 50
DEFAULT_MASTER_PAIR_BONUS = 5
SINGLE_MASTER_BONUS = 3

AUSPICIOUS_MIN_SCORE = 80
AUSPICIOUS_LIMIT = 30

# Keys are (low, high); lookups normalise the order.
COMPATIBILITY_MATRIX: dict[tuple[int, int], int] = {
    (1, 1): 75, (1, 2): 60, (1, 3): 90, (1, 4): 55, (1, 5): 85,
    (1, 6): 70, (1, 7): 65, (1, 8): 80, (1, 9): 85,
    (2, 2): 70, (2, 3): 75, (2, 4): 85, (2, 5): 55, (2, 6): 90,
    (2, 7): 80, (2, 8): 75, (2, 9): 85,
    (3, 3): 80, (3, 4): 50, (3, 5): 90, (3, 6): 95, (3, 7): 60,
    (3, 8): 65, (3, 9): 90,
    (4, 4): 75, (4, 5): 45, (4, 6): 80, (4, 7): 85, (4, 8): 90, (4, 9): 55,
    (5, 5): 85, (5, 6): 50, (5, 7): 75, (5, 8): 60, (5, 9): 80,
    (6, 6): 85, (6, 7): 55, (6, 8): 70, (6, 9): 95,
    (7, 7): 80, (7, 8): 50, (7, 9): 65,
    (8, 8): 75, (8, 9): 70,
    (9, 9): 80,
}

MASTER_NUMBER_BONUSES: dict[tuple[int, int], int] = {
    (11, 11): 10,
    (22, 22): 10,
    (33, 33): 10,
    (11, 22): 8,
    (11, 33): 8,
    (22, 33): 8,
}

ASPECT_WEIGHTS: dict[str, int] = {
    "Life Path": 30,
    "Expression": 25,
    "Soul Urge": 20,
    "Personality": 15,
    "Birthday": 10,
}


class CompatibilityLevel(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    MODERATE = "moderate"
    CHALLENGING = "challenging"


class ScanCancelled(Exception):
    """Raised when an auspicious-date scan is cancelled; no partial result is kept."""


# ── Result records ───────────────────────────────────────────────────

@dataclass(frozen=True)
class CoreNumbers:
    life_path: int
    life_path_master: bool
    expression: int
    expression_master: bool
    soul_urge: int
    soul_urge_master: bool
    personality: int
    personality_master: bool
    birthday: int

    def values(self) -> set[int]:
        return {self.life_path, self.expression, self.soul_urge, self.personality, self.birthday}

    def to_dict(self) -> dict:
        return {
            "life_path": self.life_path,
            "life_path_master": self.life_path_master,
            "expression": self.expression,
            "expression_master": self.expression_master,
            "soul_urge": self.soul_urge,
            "soul_urge_master": self.soul_urge_master,
            "personality": self.personality,
            "personality_master": self.personality_master,
            "birthday": self.birthday,
        }


@dataclass(frozen=True)
class AspectCompatibility:
    name: str
    score: int
    number1: int
    number2: int

    def to_dict(self) -> dict:
        return {"name": self.name, "score": self.score, "number1": self.number1, "number2": self.number2}


@dataclass(frozen=True)
class CompatibilityResult:
    overall_score: int
    level: CompatibilityLevel
    aspects: tuple[AspectCompatibility, ...]
    shared_numbers: tuple[int, ...]
    complementary_aspects: tuple[str, ...]
    challenges: tuple[str, ...]
    person1: CoreNumbers
    person2: CoreNumbers

    def aspect(self, name: str) -> AspectCompatibility:
        for item in self.aspects:
            if item.name == name:
                return item
        raise KeyError(name)

    def to_dict(self) -> dict:
        return {
            "overall_score": self.overall_score,
            "level": self.level.value,
            "aspects": [item.to_dict() for item in self.aspects],
            "shared_numbers": list(self.shared_numbers),
            "complementary_aspects": list(self.complementary_aspects),
            "challenges": list(self.challenges),
            "person1": self.person1.to_dict(),
            "person2": self.person2.to_dict(),
        }


@dataclass(frozen=True)
class AuspiciousDate:
    date: date
    score: int

    def to_dict(self) -> dict:
        return {"date": self.date.isoformat(), "score": self.score}


# ── Scoring ──────────────────────────────────────────────────────────

def calculate_core_numbers(
    full_name: str,
    birth_date: date,
    system: LetterSystem = LetterSystem.PYTHAGOREAN,
) -> CoreNumbers:
    life_path = calculate_life_path(birth_date)
    expression = calculate_expression(full_name, system)
    soul_urge = calculate_soul_urge(full_name, system)
    personality = calculate_personality(full_name, system)
    birthday = calculate_birthday(birth_date)
    return CoreNumbers(
        life_path=life_path.final_number,
        life_path_master=life_path.is_master_number,
        expression=expression.final_number,
        expression_master=expression.is_master_number,
        soul_urge=soul_urge.final_number,
        soul_urge_master=soul_urge.is_master_number,
        personality=personality.final_number,
        personality_master=personality.is_master_number,
        birthday=birthday.final_number,
    )


def _ordered(a: int, b: int) -> tuple[int, int]:
    return (a, b) if a <= b else (b, a)


def base_compatibility(number1: int, number2: int) -> int:
    return COMPATIBILITY_MATRIX.get(_ordered(number1, number2), DEFAULT_BASE_SCORE)


def aspect_score(number1: int, number2: int, is_master1: bool, is_master2: bool) -> int:
    reduced1 = reduce_to_single_digit(number1) if number1 > 9 else number1
    reduced2 = reduce_to_single_digit(number2) if number2 > 9 else number2
    score = base_compatibility(reduced1, reduced2)

    if is_master1 and is_master2:
        score += MASTER_NUMBER_BONUSES.get(_ordered(number1, number2), DEFAULT_MASTER_PAIR_BONUS)
    elif is_master1 or is_master2:
        score += SINGLE_MASTER_BONUS
    return min(100, score)


def weighted_score(scores: dict[str, int]) -> int:
    total_weight = sum(ASPECT_WEIGHTS[name] for name in scores)
    weighted = sum(score * ASPECT_WEIGHTS[name] for name, score in scores.items())
    return weighted // total_weight


def compatibility_level(score: int) -> CompatibilityLevel:
    if score >= EXCELLENT_THRESHOLD:
        return CompatibilityLevel.EXCELLENT
    if score >= GOOD_THRESHOLD:
        return CompatibilityLevel.GOOD
    if score >= MODERATE_THRESHOLD:
        return CompatibilityLevel.MODERATE
    return CompatibilityLevel.CHALLENGING


def find_complementary_aspects(person1: CoreNumbers, person2: CoreNumbers) -> list[str]:
    aspects = []
    if reduce_to_single_digit(person1.life_path + person2.life_path) == 9:
        aspects.append("Life Paths combine to 9 - Universal completion")
    if {person1.life_path, person2.life_path} == {1, 2}:
        aspects.append("Natural leader-supporter dynamic")
    if {person1.expression, person2.expression} == {3, 6}:
        aspects.append("Creative expression meets nurturing support")
    if person1.soul_urge == person2.soul_urge:
        aspects.append("Shared inner desires and motivations")
    if person1.life_path_master and person2.life_path_master:
        aspects.append("Both carry master number energy")
    return aspects


def find_challenges(person1: CoreNumbers, person2: CoreNumbers) -> list[str]:
    challenges = []
    if {person1.life_path, person2.life_path} in ({4, 5}, {7, 8}):
        challenges.append("Different approaches to life structure and freedom")
    if person1.personality == 1 and person2.personality == 1:
        challenges.append("Both desire to lead - may compete for control")
    if {person1.expression, person2.expression} == {3, 7}:
        challenges.append("Different communication styles - social vs introspective")
    if {person1.soul_urge, person2.soul_urge} == {1, 2}:
        challenges.append("Different core needs - independence vs partnership")
    return challenges


def calculate_compatibility(
    name1: str,
    birth_date1: date,
    name2: str,
    birth_date2: date,
    system: LetterSystem = LetterSystem.PYTHAGOREAN,
) -> CompatibilityResult:
    person1 = calculate_core_numbers(name1, birth_date1, system)
    person2 = calculate_core_numbers(name2, birth_date2, system)

    aspects = (
        AspectCompatibility(
            "Life Path",
            aspect_score(person1.life_path, person2.life_path, person1.life_path_master, person2.life_path_master),
            person1.life_path,
            person2.life_path,
        ),
        AspectCompatibility(
            "Expression",
            aspect_score(person1.expression, person2.expression, person1.expression_master, person2.expression_master),
            person1.expression,
            person2.expression,
        ),
        AspectCompatibility(
            "Soul Urge",
            aspect_score(person1.soul_urge, person2.soul_urge, person1.soul_urge_master, person2.soul_urge_master),
            person1.soul_urge,
            person2.soul_urge,
        ),
        AspectCompatibility(
            "Personality",
            aspect_score(
                person1.personality, person2.personality, person1.personality_master, person2.personality_master
            ),
            person1.personality,
            person2.personality,
        ),
        # birthdays never earn a master bonus
        AspectCompatibility(
            "Birthday",
            aspect_score(person1.birthday, person2.birthday, False, False),
            person1.birthday,
            person2.birthday,
        ),
    )

    overall = weighted_score({item.name: item.score for item in aspects})
    return CompatibilityResult(
        overall_score=overall,
        level=compatibility_level(overall),
        aspects=aspects,
        shared_numbers=tuple(sorted(person1.values() & person2.values())),
        complementary_aspects=tuple(find_complementary_aspects(person1, person2)),
        challenges=tuple(find_challenges(person1, person2)),
        person1=person1,
        person2=person2,
    )


# ── Relationship number and auspicious dates ─────────────────────────

def calculate_relationship_number(birth_date1: date, birth_date2: date) -> int:
    life_path1 = calculate_life_path(birth_date1).final_number
    life_path2 = calculate_life_path(birth_date2).final_number
    return reduce_number(life_path1 + life_path2)


def date_score(
    universal_day: int,
    relationship_number: int,
    personal_year1: int,
    personal_year2: int,
    day_of_month: int,
) -> int:
    score = 50
    if universal_day == relationship_number:
        score += 20
    if reduce_to_single_digit(day_of_month) == relationship_number:
        score += 15
    if universal_day in (personal_year1, personal_year2):
        score += 10
    if universal_day in (6, 9):
        score += 10
    if day_of_month in (11, 22):
        score += 5
    return min(100, score)


def calculate_auspicious_dates(
    birth_date1: date,
    birth_date2: date,
    year: int,
    *,
    min_score: int = AUSPICIOUS_MIN_SCORE,
    limit: int = AUSPICIOUS_LIMIT,
    should_cancel: Callable[[], bool] | None = None,
) -> list[AuspiciousDate]:
    """Best dates of ``year`` for the pair, highest score first.

    ``sorted`` is stable and the scan runs in calendar order, so equal scores
    stay chronological. If ``should_cancel`` returns true the scan raises
    ``ScanCancelled`` instead of returning a partial list.
    """
    relationship_number = calculate_relationship_number(birth_date1, birth_date2)
    personal_year1 = calculate_personal_year(birth_date1, year)
    personal_year2 = calculate_personal_year(birth_date2, year)
    logger.debug("Auspicious scan start | year=%s | relationship_number=%s", year, relationship_number)

    kept: list[AuspiciousDate] = []
    start = date(year, 1, 1)
    for offset in range((date(year, 12, 31) - start).days + 1):
        current = start + timedelta(days=offset)
        if should_cancel is not None and should_cancel():
            raise ScanCancelled(f"auspicious date scan for {year} cancelled on {current.isoformat()}")
        score = date_score(
            calculate_universal_day(current),
            relationship_number,
            personal_year1,
            personal_year2,
            current.day,
        )
        if score >= min_score:
            kept.append(AuspiciousDate(current, score))

    logger.debug("Auspicious scan done | year=%s | kept=%s", year, len(kept))
    return sorted(kept, key=lambda item: item.score, reverse=True)[:limit]

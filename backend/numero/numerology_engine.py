"""Entry points of the numerology engine. Pure functions, no I/O, no clock reads."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable

from . import compat_engine, date_engine, name_engine
from .compat_engine import AuspiciousDate, CompatibilityResult
from .date_engine import ChallengePeriod, LifePathResult, LifePeriod, PinnaclePeriod
from .letters import LetterSystem
from .name_engine import NameSpecialNumbers, PersonName
from .reducer import ReductionResult

PERSONAL_YEAR_FORECAST_YEARS = 9


# ── Result dataclasses ───────────────────────────────────────────────

@dataclass(frozen=True)
class CoreAnalysis:
    system: LetterSystem
    life_path: LifePathResult
    expression: ReductionResult
    soul_urge: ReductionResult
    personality: ReductionResult
    birthday: ReductionResult
    maturity: ReductionResult
    balance: ReductionResult
    hidden_passion: int | None
    subconscious_self: int
    karmic_lessons: tuple[int, ...]
    special_numbers: NameSpecialNumbers

    def to_dict(self) -> dict:
        return {
            "system": self.system.value,
            "life_path": self.life_path.to_dict(),
            "expression": self.expression.to_dict(),
            "soul_urge": self.soul_urge.to_dict(),
            "personality": self.personality.to_dict(),
            "birthday": self.birthday.to_dict(),
            "maturity": self.maturity.to_dict(),
            "balance": self.balance.to_dict(),
            "hidden_passion": self.hidden_passion,
            "subconscious_self": self.subconscious_self,
            "karmic_lessons": list(self.karmic_lessons),
            "special_numbers": self.special_numbers.to_dict(),
        }


@dataclass(frozen=True)
class NumerologyAnalysis:
    core: CoreAnalysis
    pinnacles: tuple[PinnaclePeriod, ...]
    challenges: tuple[ChallengePeriod, ...]
    life_periods: tuple[LifePeriod, ...]

    def to_dict(self) -> dict:
        return {
            "core": self.core.to_dict(),
            "pinnacles": [item.to_dict() for item in self.pinnacles],
            "challenges": [item.to_dict() for item in self.challenges],
            "life_periods": [item.to_dict() for item in self.life_periods],
        }


@dataclass(frozen=True)
class CycleNumbers:
    day: date
    personal_year: int
    personal_month: int
    personal_day: int
    universal_year: int
    universal_month: int
    universal_day: int
    yearly_forecast: tuple[tuple[int, int], ...]

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "personal_year": self.personal_year,
            "personal_month": self.personal_month,
            "personal_day": self.personal_day,
            "universal_year": self.universal_year,
            "universal_month": self.universal_month,
            "universal_day": self.universal_day,
            "yearly_forecast": [{"year": year, "personal_year": number} for year, number in self.yearly_forecast],
        }


@dataclass(frozen=True)
class CurrentPeriods:
    age: int
    pinnacle: PinnaclePeriod
    challenge: ChallengePeriod
    life_period: LifePeriod

    def to_dict(self) -> dict:
        return {
            "age": self.age,
            "pinnacle": self.pinnacle.to_dict(),
            "challenge": self.challenge.to_dict(),
            "life_period": self.life_period.to_dict(),
        }


# ── Single-person analysis ───────────────────────────────────────────

def _split_name(name: str | PersonName) -> tuple[str, str]:
    if isinstance(name, PersonName):
        return name.full_name, name.first_name
    parts = name.split()
    return " ".join(parts), parts[0] if parts else ""


def compute_analysis(
    name: str | PersonName,
    birth_date: date,
    system: LetterSystem = LetterSystem.PYTHAGOREAN,
) -> NumerologyAnalysis:
    """Full single-person analysis.

    A plain string is treated as the full name and its first word as the
    first name (cornerstone, capstone and first vowel only look at that).
    """
    system = LetterSystem(system)
    full_name, first_name = _split_name(name)

    life_path = date_engine.calculate_life_path(birth_date)
    expression = name_engine.calculate_expression(full_name, system)
    karmic_lessons = name_engine.calculate_karmic_lessons(full_name, system)

    core = CoreAnalysis(
        system=system,
        life_path=life_path,
        expression=expression,
        soul_urge=name_engine.calculate_soul_urge(full_name, system),
        personality=name_engine.calculate_personality(full_name, system),
        birthday=date_engine.calculate_birthday(birth_date),
        maturity=name_engine.calculate_maturity(life_path.final_number, expression.final_number),
        balance=name_engine.calculate_balance(full_name, system),
        hidden_passion=name_engine.calculate_hidden_passion(full_name, system),
        subconscious_self=9 - len(karmic_lessons),
        karmic_lessons=tuple(karmic_lessons),
        special_numbers=name_engine.calculate_name_special_numbers(first_name, system),
    )
    return NumerologyAnalysis(
        core=core,
        pinnacles=tuple(date_engine.calculate_pinnacles(birth_date)),
        challenges=tuple(date_engine.calculate_challenges(birth_date)),
        life_periods=tuple(date_engine.calculate_life_periods(birth_date)),
    )


def compute_cycles(birth_date: date, today: date) -> CycleNumbers:
    personal_year = date_engine.calculate_personal_year(birth_date, today.year)
    personal_month = date_engine.calculate_personal_month(personal_year, today.month)
    forecast = tuple(
        (year, date_engine.calculate_personal_year(birth_date, year))
        for year in range(today.year, today.year + PERSONAL_YEAR_FORECAST_YEARS)
    )
    return CycleNumbers(
        day=today,
        personal_year=personal_year,
        personal_month=personal_month,
        personal_day=date_engine.calculate_personal_day(personal_month, today.day),
        universal_year=date_engine.calculate_universal_year(today.year),
        universal_month=date_engine.calculate_universal_month(today.year, today.month),
        universal_day=date_engine.calculate_universal_day(today),
        yearly_forecast=forecast,
    )


def current_age(birth_date: date, today: date) -> int:
    return date_engine.calculate_age(birth_date, today)


def current_pinnacle(birth_date: date, today: date) -> PinnaclePeriod:
    return date_engine.get_current_pinnacle(birth_date, today)


def current_challenge(birth_date: date, today: date) -> ChallengePeriod:
    return date_engine.get_current_challenge(birth_date, today)


def current_life_period(birth_date: date, today: date) -> LifePeriod:
    return date_engine.get_current_life_period(birth_date, today)


def compute_current_periods(birth_date: date, today: date) -> CurrentPeriods:
    return CurrentPeriods(
        age=current_age(birth_date, today),
        pinnacle=current_pinnacle(birth_date, today),
        challenge=current_challenge(birth_date, today),
        life_period=current_life_period(birth_date, today),
    )


# ── Pair analysis ────────────────────────────────────────────────────

def compute_compatibility(
    name1: str | PersonName,
    birth_date1: date,
    name2: str | PersonName,
    birth_date2: date,
    system: LetterSystem = LetterSystem.PYTHAGOREAN,
) -> CompatibilityResult:
    full_name1, _ = _split_name(name1)
    full_name2, _ = _split_name(name2)
    return compat_engine.calculate_compatibility(full_name1, birth_date1, full_name2, birth_date2, LetterSystem(system))


def compute_relationship_number(birth_date1: date, birth_date2: date) -> int:
    return compat_engine.calculate_relationship_number(birth_date1, birth_date2)


def compute_auspicious_dates(
    birth_date1: date,
    birth_date2: date,
    year: int,
    *,
    min_score: int = compat_engine.AUSPICIOUS_MIN_SCORE,
    limit: int = compat_engine.AUSPICIOUS_LIMIT,
    should_cancel: Callable[[], bool] | None = None,
) -> list[AuspiciousDate]:
    return compat_engine.calculate_auspicious_dates(
        birth_date1,
        birth_date2,
        year,
        min_score=min_score,
        limit=limit,
        should_cancel=should_cancel,
    )

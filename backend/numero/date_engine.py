"""Numbers derived from dates: Life Path, Birthday, cycles and life-phase timelines.

Nothing here reads the system clock. Age and "current period" lookups take the
reference day as an explicit ``today`` argument.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Sequence, TypeVar

from .reducer import (
    KARMIC_DEBT_NUMBERS,
    ReductionResult,
    get_reduction_steps,
    is_karmic_debt_number,
    is_master_number,
    reduce_number,
    reduce_to_single_digit,
)

FIRST_PINNACLE_BASE_AGE = 36
PINNACLE_CYCLE_LENGTH = 9
CHALLENGE_CYCLE_LENGTH = 9
FIRST_PERIOD_END_AGE_BASE = 28
PERIOD_LENGTH = 27


# ── Result records ───────────────────────────────────────────────────

@dataclass(frozen=True)
class LifePathResult(ReductionResult):
    month_component: int = 0
    day_component: int = 0
    year_component: int = 0

    @property
    def total_before_reduction(self) -> int:
        return self.original_sum

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(
            month_component=self.month_component,
            day_component=self.day_component,
            year_component=self.year_component,
        )
        return data


@dataclass(frozen=True)
class PinnaclePeriod:
    number: int
    start_age: int
    end_age: int | None
    period_index: int
    is_master_number: bool

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "start_age": self.start_age,
            "end_age": self.end_age,
            "period_index": self.period_index,
            "is_master_number": self.is_master_number,
        }


@dataclass(frozen=True)
class ChallengePeriod:
    number: int
    start_age: int
    end_age: int | None
    period_index: int

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "start_age": self.start_age,
            "end_age": self.end_age,
            "period_index": self.period_index,
        }


@dataclass(frozen=True)
class LifePeriod:
    number: int
    start_age: int
    end_age: int | None
    period_index: int
    source: str
    is_master_number: bool

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "start_age": self.start_age,
            "end_age": self.end_age,
            "period_index": self.period_index,
            "source": self.source,
            "is_master_number": self.is_master_number,
        }


Period = TypeVar("Period", PinnaclePeriod, ChallengePeriod, LifePeriod)


# ── Core numbers ─────────────────────────────────────────────────────

def _life_path_karmic_debt(birth_date: date) -> int | None:
    # Deliberately not get_karmic_debt(total): the raw day wins, then the year trace.
    if birth_date.day in KARMIC_DEBT_NUMBERS:
        return birth_date.day
    for step in get_reduction_steps(birth_date.year, preserve_masters=False):
        if step in KARMIC_DEBT_NUMBERS:
            return step
    return None


def calculate_life_path(birth_date: date) -> LifePathResult:
    """Life Path: reduce month, day and year separately, then reduce the sum.

    Reducing each component first keeps master numbers inside a component
    (e.g. day 29 -> 11) visible to the final sum.
    """
    month_reduced = reduce_number(birth_date.month)
    day_reduced = reduce_number(birth_date.day)
    year_reduced = reduce_number(birth_date.year)
    total = month_reduced + day_reduced + year_reduced
    final = reduce_number(total)
    return LifePathResult(
        final_number=final,
        original_sum=total,
        reduction_steps=tuple(get_reduction_steps(total)),
        is_master_number=is_master_number(final),
        karmic_debt_number=_life_path_karmic_debt(birth_date),
        month_component=month_reduced,
        day_component=day_reduced,
        year_component=year_reduced,
    )


def calculate_birthday(birth_date: date) -> ReductionResult:
    """Birthday (talent) number: the day of birth, reduced."""
    day = birth_date.day
    final = reduce_number(day)
    return ReductionResult(
        final_number=final,
        original_sum=day,
        reduction_steps=tuple(get_reduction_steps(day)),
        is_master_number=is_master_number(final) or is_master_number(day),
        karmic_debt_number=day if is_karmic_debt_number(day) else None,
    )


# ── Personal and universal cycles ────────────────────────────────────

def calculate_personal_year(birth_date: date, year: int) -> int:
    total = (
        reduce_to_single_digit(birth_date.month)
        + reduce_to_single_digit(birth_date.day)
        + reduce_to_single_digit(year)
    )
    return reduce_to_single_digit(total)


def calculate_personal_month(personal_year: int, month: int) -> int:
    return reduce_to_single_digit(personal_year + reduce_to_single_digit(month))


def calculate_personal_day(personal_month: int, day: int) -> int:
    return reduce_to_single_digit(personal_month + reduce_to_single_digit(day))


def calculate_universal_year(year: int) -> int:
    return reduce_to_single_digit(year)


def calculate_universal_month(year: int, month: int) -> int:
    return reduce_to_single_digit(calculate_universal_year(year) + reduce_to_single_digit(month))


def calculate_universal_day(day: date) -> int:
    """Single pass over month + day + year, without reducing the components first."""
    return reduce_to_single_digit(day.month + day.day + day.year)


# ── Life-phase timelines ─────────────────────────────────────────────

def _single_digit_components(birth_date: date) -> tuple[int, int, int]:
    return (
        reduce_to_single_digit(birth_date.month),
        reduce_to_single_digit(birth_date.day),
        reduce_to_single_digit(birth_date.year),
    )


def _four_phase_bounds(life_path: int, cycle_length: int) -> list[tuple[int, int | None]]:
    first_end = FIRST_PINNACLE_BASE_AGE - life_path
    second_end = first_end + cycle_length
    third_end = second_end + cycle_length
    return [
        (0, first_end),
        (first_end + 1, second_end),
        (second_end + 1, third_end),
        (third_end + 1, None),
    ]


def calculate_pinnacles(birth_date: date) -> list[PinnaclePeriod]:
    life_path = calculate_life_path(birth_date).final_number
    month, day, year = _single_digit_components(birth_date)

    first = reduce_number(month + day)
    second = reduce_number(day + year)
    third = reduce_number(first + second)
    fourth = reduce_number(month + year)

    bounds = _four_phase_bounds(life_path, PINNACLE_CYCLE_LENGTH)
    return [
        PinnaclePeriod(
            number=number,
            start_age=start,
            end_age=end,
            period_index=index,
            is_master_number=is_master_number(number),
        )
        for index, (number, (start, end)) in enumerate(zip((first, second, third, fourth), bounds), start=1)
    ]


def calculate_challenges(birth_date: date) -> list[ChallengePeriod]:
    life_path = calculate_life_path(birth_date).final_number
    month, day, year = _single_digit_components(birth_date)

    first = abs(month - day)
    second = abs(day - year)
    third = abs(first - second)
    fourth = abs(month - year)

    bounds = _four_phase_bounds(life_path, CHALLENGE_CYCLE_LENGTH)
    return [
        ChallengePeriod(number=number, start_age=start, end_age=end, period_index=index)
        for index, (number, (start, end)) in enumerate(zip((first, second, third, fourth), bounds), start=1)
    ]


def calculate_life_periods(birth_date: date) -> list[LifePeriod]:
    life_path = calculate_life_path(birth_date).final_number

    first_end = FIRST_PERIOD_END_AGE_BASE + (9 - life_path)
    second_end = first_end + PERIOD_LENGTH
    phases = (
        (reduce_number(birth_date.month), "Month", 0, first_end),
        (reduce_number(birth_date.day), "Day", first_end + 1, second_end),
        (reduce_number(birth_date.year), "Year", second_end + 1, None),
    )
    return [
        LifePeriod(
            number=number,
            start_age=start,
            end_age=end,
            period_index=index,
            source=source,
            is_master_number=is_master_number(number),
        )
        for index, (number, source, start, end) in enumerate(phases, start=1)
    ]


# ── Age and current period lookup ────────────────────────────────────

def calculate_age(birth_date: date, today: date) -> int:
    """Whole years elapsed between ``birth_date`` and ``today`` (negative if not yet born)."""
    years = today.year - birth_date.year
    if today >= birth_date:
        if (today.month, today.day) < (birth_date.month, birth_date.day):
            years -= 1
    elif (today.month, today.day) > (birth_date.month, birth_date.day):
        years += 1
    return years


def find_period_for_age(periods: Sequence[Period], age: int) -> Period:
    """First period whose bounds contain ``age``.

    Ages below zero (birth date after ``today``) fall back to the first period.
    """
    for period in periods:
        if age >= period.start_age and (period.end_age is None or age <= period.end_age):
            return period
    return periods[0]


def get_current_pinnacle(birth_date: date, today: date) -> PinnaclePeriod:
    return find_period_for_age(calculate_pinnacles(birth_date), calculate_age(birth_date, today))


def get_current_challenge(birth_date: date, today: date) -> ChallengePeriod:
    return find_period_for_age(calculate_challenges(birth_date), calculate_age(birth_date, today))


def get_current_life_period(birth_date: date, today: date) -> LifePeriod:
    return find_period_for_age(calculate_life_periods(birth_date), calculate_age(birth_date, today))

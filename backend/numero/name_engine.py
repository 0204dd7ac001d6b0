"""Numbers derived from a person's name.

Every function case-folds the name and skips characters that have no value in
the active letter table or the Devanagari table (spaces, hyphens, digits,
unsupported scripts), so totals depend only on the letters that count.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Callable, Iterator

from .letters import LetterBreakdown, LetterSystem, is_consonant, is_vowel, letter_value
from .reducer import (
    ALL_SINGLE_DIGITS,
    ReductionResult,
    build_result,
    get_karmic_debt,
)


@dataclass(frozen=True)
class PersonName:
    first_name: str
    last_name: str
    middle_name: str | None = None

    @property
    def full_name(self) -> str:
        parts = (self.first_name, self.middle_name, self.last_name)
        return " ".join(part.strip() for part in parts if part and part.strip())

    @property
    def display_name(self) -> str:
        if not self.middle_name or not self.middle_name.strip():
            return f"{self.first_name} {self.last_name}"
        return f"{self.first_name} {self.middle_name.strip()[0]}. {self.last_name}"


@dataclass(frozen=True)
class NameSpecialNumbers:
    cornerstone: int | None = None
    capstone: int | None = None
    first_vowel: int | None = None

    def to_dict(self) -> dict:
        return {
            "cornerstone": self.cornerstone,
            "capstone": self.capstone,
            "first_vowel": self.first_vowel,
        }


def _valued_letters(
    text: str,
    system: LetterSystem,
    include: Callable[[str], bool] | None = None,
) -> Iterator[LetterBreakdown]:
    for char in text.upper():
        if include is not None and not include(char):
            continue
        value = letter_value(char, system)
        if value is not None:
            yield LetterBreakdown(char, value)


def _sum_letters(
    full_name: str,
    system: LetterSystem,
    include: Callable[[str], bool] | None = None,
) -> ReductionResult:
    breakdown = tuple(_valued_letters(full_name, system, include))
    total = sum(item.value for item in breakdown)
    return build_result(total, karmic_debt=get_karmic_debt(total), breakdown=breakdown)


# ── Core name numbers ────────────────────────────────────────────────

def calculate_expression(full_name: str, system: LetterSystem = LetterSystem.PYTHAGOREAN) -> ReductionResult:
    """Expression (Destiny): every letter of the full name."""
    return _sum_letters(full_name, system)


def calculate_soul_urge(full_name: str, system: LetterSystem = LetterSystem.PYTHAGOREAN) -> ReductionResult:
    """Soul Urge (Heart's Desire): vowels only."""
    return _sum_letters(full_name, system, is_vowel)


def calculate_personality(full_name: str, system: LetterSystem = LetterSystem.PYTHAGOREAN) -> ReductionResult:
    """Personality: consonants only."""
    return _sum_letters(full_name, system, is_consonant)


def calculate_maturity(life_path_number: int, expression_number: int) -> ReductionResult:
    total = life_path_number + expression_number
    return build_result(
        total,
        karmic_debt=get_karmic_debt(total),
        breakdown=(LetterBreakdown("L", life_path_number), LetterBreakdown("E", expression_number)),
    )


def calculate_balance(full_name: str, system: LetterSystem = LetterSystem.PYTHAGOREAN) -> ReductionResult:
    """Balance: the initial of each name part, reduced without master numbers."""
    breakdown = []
    for part in full_name.split():
        initial = part[0].upper()
        value = letter_value(initial, system)
        if value is not None:
            breakdown.append(LetterBreakdown(initial, value))
    total = sum(item.value for item in breakdown)
    return build_result(total, preserve_masters=False, breakdown=tuple(breakdown))


# ── Letter frequency numbers ─────────────────────────────────────────

def calculate_karmic_lessons(full_name: str, system: LetterSystem = LetterSystem.PYTHAGOREAN) -> list[int]:
    """Digits 1-9 that no letter of the name carries, ascending."""
    present = {item.value for item in _valued_letters(full_name, system)}
    return sorted(ALL_SINGLE_DIGITS - present)


def calculate_hidden_passion(full_name: str, system: LetterSystem = LetterSystem.PYTHAGOREAN) -> int | None:
    """Most frequent letter value; ties go to the larger value, no repeats -> None."""
    counts = Counter(item.value for item in _valued_letters(full_name, system))
    if not counts:
        return None
    top = max(counts.values())
    if top < 2:
        return None
    return max(value for value, count in counts.items() if count == top)


def calculate_subconscious_self(full_name: str, system: LetterSystem = LetterSystem.PYTHAGOREAN) -> int:
    return 9 - len(calculate_karmic_lessons(full_name, system))


def calculate_name_special_numbers(
    first_name: str,
    system: LetterSystem = LetterSystem.PYTHAGOREAN,
) -> NameSpecialNumbers:
    """Cornerstone, capstone and first vowel of the first name only.

    The first and last alphabetic characters are taken as written; one with
    no value in the letter tables ("É" in "Élise") gives ``None`` rather than
    falling through to the next letter.
    """
    letters = [char for char in first_name.upper() if char.isalpha()]
    if not letters:
        return NameSpecialNumbers()
    first_vowel = next((char for char in letters if is_vowel(char)), None)
    return NameSpecialNumbers(
        cornerstone=letter_value(letters[0], system),
        capstone=letter_value(letters[-1], system),
        first_vowel=letter_value(first_vowel, system) if first_vowel is not None else None,
    )

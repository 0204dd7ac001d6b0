"""Digit reduction primitives shared by every numerology calculation."""
from __future__ import annotations

from dataclasses import dataclass, field


MASTER_NUMBERS: frozenset[int] = frozenset({11, 22, 33})
KARMIC_DEBT_NUMBERS: frozenset[int] = frozenset({13, 14, 16, 19})
ALL_SINGLE_DIGITS: frozenset[int] = frozenset(range(1, 10))


# ── Result record ────────────────────────────────────────────────────

@dataclass(frozen=True)
class ReductionResult:
    final_number: int
    original_sum: int
    reduction_steps: tuple[int, ...]
    is_master_number: bool
    karmic_debt_number: int | None = None
    breakdown: tuple = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "final_number": self.final_number,
            "original_sum": self.original_sum,
            "reduction_steps": list(self.reduction_steps),
            "is_master_number": self.is_master_number,
            "karmic_debt_number": self.karmic_debt_number,
            "breakdown": [item.to_dict() for item in self.breakdown],
        }


# ── Core reduction logic ─────────────────────────────────────────────

def sum_digits(n: int) -> int:
    """Sum of the decimal digits of |n|."""
    n = abs(n)
    total = 0
    while n > 0:
        total += n % 10
        n //= 10
    return total


def reduce_number(n: int, preserve_masters: bool = True) -> int:
    """Reduce n to a single digit (1-9), optionally stopping at 11, 22 or 33.

    Zero stays zero: an empty name sums to 0 and callers treat that as "no data".
    """
    current = abs(n)
    while current > 9:
        if preserve_masters and current in MASTER_NUMBERS:
            return current
        current = sum_digits(current)
    return current


def reduce_to_single_digit(n: int) -> int:
    return reduce_number(n, preserve_masters=False)


def get_reduction_steps(n: int, preserve_masters: bool = True) -> list[int]:
    """Every value visited while reducing n, starting with |n|.

    With ``preserve_masters`` the trace stops as soon as a master number is hit.
    """
    current = abs(n)
    steps = [current]
    while current > 9:
        if preserve_masters and current in MASTER_NUMBERS:
            break
        current = sum_digits(current)
        steps.append(current)
    return steps


def is_master_number(n: int) -> bool:
    return n in MASTER_NUMBERS


def is_karmic_debt_number(n: int) -> bool:
    return n in KARMIC_DEBT_NUMBERS


def get_karmic_debt(original_sum: int) -> int | None:
    """First karmic debt number on the full (non master-preserving) trace.

    13 reduces to 4, and 4 alone says nothing about its origin, so the
    check has to walk the unreduced steps.
    """
    for step in get_reduction_steps(original_sum, preserve_masters=False):
        if step in KARMIC_DEBT_NUMBERS:
            return step
    return None


def reduce_digit_string(digits: str, preserve_masters: bool = True) -> int:
    """Sum every decimal digit character in ``digits`` and reduce the total."""
    total = sum(int(ch) for ch in digits if ch.isdecimal() and ch.isascii())
    return reduce_number(total, preserve_masters=preserve_masters)


def build_result(
    total: int,
    *,
    preserve_masters: bool = True,
    karmic_debt: int | None = None,
    breakdown: tuple = (),
) -> ReductionResult:
    """Reduce ``total`` and package the trace the way every number reports it."""
    final = reduce_number(total, preserve_masters=preserve_masters)
    return ReductionResult(
        final_number=final,
        original_sum=total,
        reduction_steps=tuple(get_reduction_steps(total, preserve_masters=preserve_masters)),
        is_master_number=preserve_masters and is_master_number(final),
        karmic_debt_number=karmic_debt,
        breakdown=tuple(breakdown),
    )

from datetime import date

import pytest

from numero.compat_engine import (
    COMPATIBILITY_MATRIX,
    CompatibilityLevel,
    ScanCancelled,
    aspect_score,
    base_compatibility,
    calculate_auspicious_dates,
    calculate_compatibility,
    calculate_core_numbers,
    calculate_relationship_number,
    compatibility_level,
    date_score,
    weighted_score,
)

BIRTH_1 = date(1994, 11, 29)
BIRTH_2 = date(1990, 7, 14)


def test_matrix_is_symmetric_with_default():
    assert base_compatibility(3, 6) == base_compatibility(6, 3) == 95
    assert base_compatibility(0, 5) == 50
    assert all(low <= high for low, high in COMPATIBILITY_MATRIX)


def test_aspect_score_master_bonuses():
    assert aspect_score(3, 6, False, False) == 95
    # base(2, 2) = 70 plus the 11/11 bonus
    assert aspect_score(11, 11, True, True) == 80
    # base(2, 4) = 85 plus the 11/22 bonus
    assert aspect_score(11, 22, True, True) == 93
    assert aspect_score(22, 11, True, True) == 93
    # base(2, 5) = 55 plus the single master bonus
    assert aspect_score(11, 5, True, False) == 58
    assert aspect_score(6, 9, True, True) == 100


def test_weighted_score_and_level():
    scores = {"Life Path": 90, "Expression": 80, "Soul Urge": 70, "Personality": 60, "Birthday": 50}
    overall = weighted_score(scores)
    assert overall == 75
    assert compatibility_level(overall) == CompatibilityLevel.GOOD


def test_weighted_score_floors():
    scores = {"Life Path": 91, "Expression": 80, "Soul Urge": 70, "Personality": 60, "Birthday": 50}
    # 7530 / 100
    assert weighted_score(scores) == 75


@pytest.mark.parametrize(
    "score,level",
    [
        (100, CompatibilityLevel.EXCELLENT),
        (85, CompatibilityLevel.EXCELLENT),
        (84, CompatibilityLevel.GOOD),
        (70, CompatibilityLevel.GOOD),
        (69, CompatibilityLevel.MODERATE),
        (50, CompatibilityLevel.MODERATE),
        (49, CompatibilityLevel.CHALLENGING),
    ],
)
def test_level_thresholds(score, level):
    assert compatibility_level(score) == level


def test_core_numbers():
    core = calculate_core_numbers("John Smith", BIRTH_1)
    assert core.to_dict() == {
        "life_path": 9,
        "life_path_master": False,
        "expression": 8,
        "expression_master": False,
        "soul_urge": 6,
        "soul_urge_master": False,
        "personality": 11,
        "personality_master": True,
        "birthday": 11,
    }


def test_compatibility_with_self():
    result = calculate_compatibility("John Smith", BIRTH_1, "John Smith", BIRTH_1)
    assert [a.score for a in result.aspects] == [80, 75, 85, 80, 70]
    assert result.overall_score == 78
    assert result.level == CompatibilityLevel.GOOD
    assert result.shared_numbers == (6, 8, 9, 11)
    assert result.complementary_aspects == (
        "Life Paths combine to 9 - Universal completion",
        "Shared inner desires and motivations",
    )
    assert result.challenges == ()


def test_compatibility_is_symmetric():
    forward = calculate_compatibility("John Smith", BIRTH_1, "Mary Jones", BIRTH_2)
    backward = calculate_compatibility("Mary Jones", BIRTH_2, "John Smith", BIRTH_1)
    assert forward.overall_score == backward.overall_score
    assert forward.shared_numbers == backward.shared_numbers
    assert [a.score for a in forward.aspects] == [a.score for a in backward.aspects]
    assert 0 <= forward.overall_score <= 100


def test_compatibility_aspect_lookup():
    result = calculate_compatibility("John Smith", BIRTH_1, "Mary Jones", BIRTH_2)
    assert result.aspect("Life Path").number1 == 9
    assert result.aspect("Life Path").number2 == 4
    with pytest.raises(KeyError):
        result.aspect("Destiny")


def test_relationship_number():
    assert calculate_relationship_number(BIRTH_1, BIRTH_2) == 4
    assert calculate_relationship_number(BIRTH_2, BIRTH_1) == 4


def test_date_score():
    assert date_score(1, 4, 2, 3, 5) == 50
    assert date_score(4, 4, 2, 3, 13) == 85
    assert date_score(9, 9, 9, 1, 18) == 100
    assert date_score(6, 4, 6, 3, 22) == 90


def test_auspicious_dates_properties():
    dates = calculate_auspicious_dates(BIRTH_1, BIRTH_2, 2026)
    assert 0 < len(dates) <= 30
    assert all(item.score >= 80 for item in dates)
    assert all(item.date.year == 2026 for item in dates)
    scores = [item.score for item in dates]
    assert scores == sorted(scores, reverse=True)
    for earlier, later in zip(dates, dates[1:]):
        if earlier.score == later.score:
            assert earlier.date < later.date


def test_auspicious_dates_respects_limit_and_threshold():
    dates = calculate_auspicious_dates(BIRTH_1, BIRTH_2, 2026, min_score=90, limit=5)
    assert len(dates) <= 5
    assert all(item.score >= 90 for item in dates)


def test_auspicious_dates_deterministic():
    first = calculate_auspicious_dates(BIRTH_1, BIRTH_2, 2024)
    second = calculate_auspicious_dates(BIRTH_1, BIRTH_2, 2024)
    assert first == second


def test_auspicious_scan_cancellation():
    calls = []

    def should_cancel():
        calls.append(1)
        return len(calls) > 10

    with pytest.raises(ScanCancelled):
        calculate_auspicious_dates(BIRTH_1, BIRTH_2, 2026, should_cancel=should_cancel)
    assert len(calls) == 11

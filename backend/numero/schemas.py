from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .letters import LetterSystem, from_devanagari_numerals

MIN_YEAR = 1800
MAX_YEAR = 2100


def _normalize_date_input(v: Any) -> Any:
    # "२०५१-११-२९" is accepted the same as "2051-11-29"
    if isinstance(v, str):
        return from_devanagari_numerals(v.strip())
    return v


def _check_year(v: date, field_name: str) -> date:
    if v.year < MIN_YEAR or v.year > MAX_YEAR:
        raise ValueError(f"{field_name} must be between {MIN_YEAR} and {MAX_YEAR}")
    return v


def _check_has_letters(v: str, field_name: str) -> str:
    v = v.strip()
    if not any(c.isalpha() for c in v):
        raise ValueError(f"{field_name} must contain at least one letter")
    return v


def _blank_to_none(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    return v or None


# ── Profiles ─────────────────────────────────────────────────────────

class ProfileCreateRequest(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    middle_name: str | None = Field(default=None, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    birth_date: date
    is_primary: bool = False

    @field_validator("birth_date", mode="before")
    @classmethod
    def normalize_birth_date(cls, v: Any) -> Any:
        return _normalize_date_input(v)

    @field_validator("birth_date")
    @classmethod
    def birth_date_in_range(cls, v: date) -> date:
        return _check_year(v, "birth_date")

    @field_validator("first_name", "last_name")
    @classmethod
    def name_must_have_letters(cls, v: str) -> str:
        return _check_has_letters(v, "name")

    @field_validator("middle_name")
    @classmethod
    def strip_middle_name(cls, v: str | None) -> str | None:
        return _blank_to_none(v)


class ProfilePatchRequest(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    middle_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    birth_date: date | None = None

    @field_validator("birth_date", mode="before")
    @classmethod
    def normalize_birth_date(cls, v: Any) -> Any:
        return _normalize_date_input(v)

    @field_validator("birth_date")
    @classmethod
    def birth_date_in_range(cls, v: date | None) -> date | None:
        if v is None:
            return None
        return _check_year(v, "birth_date")

    @field_validator("first_name", "last_name")
    @classmethod
    def name_must_have_letters(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return _check_has_letters(v, "name")

    @field_validator("middle_name")
    @classmethod
    def strip_middle_name(cls, v: str | None) -> str | None:
        return _blank_to_none(v)


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    middle_name: str | None
    last_name: str
    full_name: str
    birth_date: date
    is_primary: bool
    created_at: datetime
    updated_at: datetime


class ProfileExport(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    middle_name: str | None = Field(default=None, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    birth_year: int = Field(ge=MIN_YEAR, le=MAX_YEAR)
    birth_month: int = Field(ge=1, le=12)
    birth_day: int = Field(ge=1, le=31)
    is_primary: bool = False

    @field_validator("first_name", "last_name")
    @classmethod
    def name_must_have_letters(cls, v: str) -> str:
        return _check_has_letters(v, "name")

    @field_validator("middle_name")
    @classmethod
    def strip_middle_name(cls, v: str | None) -> str | None:
        return _blank_to_none(v)


class ProfileExportResponse(BaseModel):
    profiles: list[ProfileExport]


class ProfileImportRequest(BaseModel):
    profiles: list[ProfileExport] = Field(max_length=500)


class ProfileImportResponse(BaseModel):
    imported: int
    skipped: int
    profiles: list[ProfileResponse]


# ── Numerology ───────────────────────────────────────────────────────

class LetterBreakdownOut(BaseModel):
    letter: str
    value: int


class ReductionOut(BaseModel):
    final_number: int
    original_sum: int
    reduction_steps: list[int]
    is_master_number: bool
    karmic_debt_number: int | None = None
    breakdown: list[LetterBreakdownOut] = Field(default_factory=list)


class LifePathOut(ReductionOut):
    month_component: int
    day_component: int
    year_component: int


class SpecialNumbersOut(BaseModel):
    cornerstone: int | None = None
    capstone: int | None = None
    first_vowel: int | None = None


class PeriodOut(BaseModel):
    number: int
    start_age: int
    end_age: int | None
    period_index: int
    is_master_number: bool = False
    source: str | None = None


class CurrentPeriodsOut(BaseModel):
    age: int
    pinnacle: PeriodOut
    challenge: PeriodOut
    life_period: PeriodOut


class NumerologyCalculateRequest(BaseModel):
    full_name: str = Field(min_length=1, max_length=300)
    birth_date: date
    system: LetterSystem | None = None
    today: date | None = None

    @field_validator("birth_date", "today", mode="before")
    @classmethod
    def normalize_dates(cls, v: Any) -> Any:
        return _normalize_date_input(v)

    @field_validator("birth_date")
    @classmethod
    def birth_date_in_range(cls, v: date) -> date:
        return _check_year(v, "birth_date")

    @field_validator("full_name")
    @classmethod
    def name_must_have_letters(cls, v: str) -> str:
        return _check_has_letters(v, "full_name")


class NumerologyAnalysisResponse(BaseModel):
    profile_id: int | None = None
    system: LetterSystem
    life_path: LifePathOut
    expression: ReductionOut
    soul_urge: ReductionOut
    personality: ReductionOut
    birthday: ReductionOut
    maturity: ReductionOut
    balance: ReductionOut
    hidden_passion: int | None
    subconscious_self: int
    karmic_lessons: list[int]
    special_numbers: SpecialNumbersOut
    pinnacles: list[PeriodOut]
    challenges: list[PeriodOut]
    life_periods: list[PeriodOut]
    current: CurrentPeriodsOut | None = None
    calculated_at: datetime | None = None


class CyclesRequest(BaseModel):
    birth_date: date
    today: date | None = None

    @field_validator("birth_date", "today", mode="before")
    @classmethod
    def normalize_dates(cls, v: Any) -> Any:
        return _normalize_date_input(v)

    @field_validator("birth_date")
    @classmethod
    def birth_date_in_range(cls, v: date) -> date:
        return _check_year(v, "birth_date")


class YearForecastOut(BaseModel):
    year: int
    personal_year: int


class CyclesResponse(BaseModel):
    date: date
    personal_year: int
    personal_month: int
    personal_day: int
    universal_year: int
    universal_month: int
    universal_day: int
    yearly_forecast: list[YearForecastOut]


# ── Compatibility ────────────────────────────────────────────────────

class CompatCalculateRequest(BaseModel):
    name_1: str = Field(min_length=1, max_length=300)
    birth_date_1: date
    name_2: str = Field(min_length=1, max_length=300)
    birth_date_2: date
    system: LetterSystem | None = None

    @field_validator("birth_date_1", "birth_date_2", mode="before")
    @classmethod
    def normalize_dates(cls, v: Any) -> Any:
        return _normalize_date_input(v)

    @field_validator("birth_date_1", "birth_date_2")
    @classmethod
    def birth_date_in_range(cls, v: date) -> date:
        return _check_year(v, "birth_date")

    @field_validator("name_1", "name_2")
    @classmethod
    def name_must_have_letters(cls, v: str) -> str:
        return _check_has_letters(v, "name")


class AspectOut(BaseModel):
    name: str
    score: int = Field(ge=0, le=100)
    number1: int
    number2: int


class CoreNumbersOut(BaseModel):
    life_path: int
    life_path_master: bool
    expression: int
    expression_master: bool
    soul_urge: int
    soul_urge_master: bool
    personality: int
    personality_master: bool
    birthday: int


CompatibilityLevelLiteral = Literal["excellent", "good", "moderate", "challenging"]


class CompatibilityResponse(BaseModel):
    overall_score: int = Field(ge=0, le=100)
    level: CompatibilityLevelLiteral
    aspects: list[AspectOut]
    shared_numbers: list[int]
    complementary_aspects: list[str]
    challenges: list[str]
    person1: CoreNumbersOut
    person2: CoreNumbersOut
    relationship_number: int


class CompatProfilesRequest(BaseModel):
    profile1_id: int = Field(ge=1)
    profile2_id: int = Field(ge=1)
    system: LetterSystem | None = None


class CompatibilityRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    profile1_id: int
    profile2_id: int
    system: LetterSystem
    overall_score: int
    level: CompatibilityLevelLiteral
    aspects: list[AspectOut]
    shared_numbers: list[int]
    complementary_aspects: list[str]
    challenges: list[str]
    relationship_number: int
    calculated_at: datetime


class CompatibilityListResponse(BaseModel):
    profile_id: int
    average_score: float | None
    items: list[CompatibilityRecordResponse]


class RelationshipNumberRequest(BaseModel):
    birth_date_1: date
    birth_date_2: date

    @field_validator("birth_date_1", "birth_date_2", mode="before")
    @classmethod
    def normalize_dates(cls, v: Any) -> Any:
        return _normalize_date_input(v)

    @field_validator("birth_date_1", "birth_date_2")
    @classmethod
    def birth_date_in_range(cls, v: date) -> date:
        return _check_year(v, "birth_date")


class RelationshipNumberResponse(BaseModel):
    relationship_number: int


class AuspiciousDatesRequest(RelationshipNumberRequest):
    year: int = Field(ge=MIN_YEAR, le=MAX_YEAR)


class AuspiciousDateOut(BaseModel):
    date: date
    score: int


class AuspiciousDatesResponse(BaseModel):
    status: Literal["pending", "done"]
    year: int
    task_id: str | None = None
    dates: list[AuspiciousDateOut] | None = None


class TaskStatusResponse(BaseModel):
    status: Literal["pending", "done", "failed"]
    result: dict[str, Any] | None = None
    error: str | None = None

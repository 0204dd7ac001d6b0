from datetime import date, datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base

INT64 = BigInteger().with_variant(Integer, "sqlite")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(INT64, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    middle_name: Mapped[str | None] = mapped_column(String(100))
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    birth_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    @property
    def full_name(self) -> str:
        parts = (self.first_name, self.middle_name, self.last_name)
        return " ".join(part.strip() for part in parts if part and part.strip())


class NumerologyAnalysis(Base):
    """Cached single-person analysis, one row per (profile, letter system)."""

    __tablename__ = "numerology_analyses"
    __table_args__ = (UniqueConstraint("profile_id", "system", name="uq_analysis_profile_system"),)

    id: Mapped[int] = mapped_column(INT64, primary_key=True, autoincrement=True)
    profile_id: Mapped[int] = mapped_column(
        INT64, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    system: Mapped[str] = mapped_column(String(16), nullable=False)

    life_path_number: Mapped[int] = mapped_column(Integer, nullable=False)
    life_path_master: Mapped[bool] = mapped_column(Boolean, nullable=False)
    life_path_karmic_debt: Mapped[int | None] = mapped_column(Integer)
    expression_number: Mapped[int] = mapped_column(Integer, nullable=False)
    expression_master: Mapped[bool] = mapped_column(Boolean, nullable=False)
    expression_karmic_debt: Mapped[int | None] = mapped_column(Integer)
    soul_urge_number: Mapped[int] = mapped_column(Integer, nullable=False)
    soul_urge_master: Mapped[bool] = mapped_column(Boolean, nullable=False)
    soul_urge_karmic_debt: Mapped[int | None] = mapped_column(Integer)
    personality_number: Mapped[int] = mapped_column(Integer, nullable=False)
    personality_master: Mapped[bool] = mapped_column(Boolean, nullable=False)
    personality_karmic_debt: Mapped[int | None] = mapped_column(Integer)
    birthday_number: Mapped[int] = mapped_column(Integer, nullable=False)
    birthday_master: Mapped[bool] = mapped_column(Boolean, nullable=False)
    birthday_karmic_debt: Mapped[int | None] = mapped_column(Integer)
    maturity_number: Mapped[int] = mapped_column(Integer, nullable=False)
    maturity_master: Mapped[bool] = mapped_column(Boolean, nullable=False)
    balance_number: Mapped[int] = mapped_column(Integer, nullable=False)

    hidden_passion_number: Mapped[int | None] = mapped_column(Integer)
    subconscious_self_number: Mapped[int] = mapped_column(Integer, nullable=False)
    cornerstone_number: Mapped[int | None] = mapped_column(Integer)
    capstone_number: Mapped[int | None] = mapped_column(Integer)
    first_vowel_number: Mapped[int | None] = mapped_column(Integer)
    karmic_lessons: Mapped[list] = mapped_column(JSON, nullable=False)

    # Full engine output, including reduction steps and letter breakdowns.
    analysis_payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    phases: Mapped[list["LifePhase"]] = relationship(
        "LifePhase",
        back_populates="analysis",
        cascade="all, delete-orphan",
        order_by="[LifePhase.kind, LifePhase.period_index]",
    )


class LifePhase(Base):
    __tablename__ = "life_phases"
    __table_args__ = (UniqueConstraint("analysis_id", "kind", "period_index", name="uq_phase_analysis_kind_index"),)

    id: Mapped[int] = mapped_column(INT64, primary_key=True, autoincrement=True)
    analysis_id: Mapped[int] = mapped_column(
        INT64, ForeignKey("numerology_analyses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # "pinnacle", "challenge" or "life_period"
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    period_index: Mapped[int] = mapped_column(Integer, nullable=False)
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    start_age: Mapped[int] = mapped_column(Integer, nullable=False)
    end_age: Mapped[int | None] = mapped_column(Integer)
    is_master_number: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    source: Mapped[str | None] = mapped_column(String(8))

    analysis: Mapped[NumerologyAnalysis] = relationship("NumerologyAnalysis", back_populates="phases")


class CompatibilityAnalysis(Base):
    __tablename__ = "compatibility_analyses"
    __table_args__ = (
        UniqueConstraint("profile1_id", "profile2_id", "system", name="uq_compat_profiles_system"),
    )

    id: Mapped[int] = mapped_column(INT64, primary_key=True, autoincrement=True)
    profile1_id: Mapped[int] = mapped_column(
        INT64, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    profile2_id: Mapped[int] = mapped_column(
        INT64, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    system: Mapped[str] = mapped_column(String(16), nullable=False)

    overall_score: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    level: Mapped[str] = mapped_column(String(16), nullable=False)
    # [{"name", "score", "number1", "number2"}, ...] in fixed aspect order
    aspects: Mapped[list] = mapped_column(JSON, nullable=False)
    shared_numbers: Mapped[list] = mapped_column(JSON, nullable=False)
    complementary_aspects: Mapped[list] = mapped_column(JSON, nullable=False)
    challenges: Mapped[list] = mapped_column(JSON, nullable=False)
    relationship_number: Mapped[int] = mapped_column(Integer, nullable=False)
    calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    profile1: Mapped[Profile] = relationship("Profile", foreign_keys=[profile1_id])
    profile2: Mapped[Profile] = relationship("Profile", foreign_keys=[profile2_id])

from datetime import date, datetime, timezone
import logging

from fastapi import HTTPException
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from . import models
from .config import settings
from .letters import LetterSystem
from .name_engine import PersonName
from .numerology_engine import (
    compute_analysis,
    compute_compatibility,
    compute_current_periods,
    compute_relationship_number,
)

logger = logging.getLogger("numero.profiles")

PHASE_KINDS = ("pinnacle", "challenge", "life_period")
_PHASE_LISTS = {"pinnacle": "pinnacles", "challenge": "challenges", "life_period": "life_periods"}
_REDUCTION_FIELDS = ("life_path", "expression", "soul_urge", "personality", "birthday", "maturity", "balance")


def resolve_system(system: LetterSystem | str | None) -> LetterSystem:
    if system is None:
        return settings.numerology_system
    return LetterSystem(system)


def person_name(profile: models.Profile) -> PersonName:
    return PersonName(first_name=profile.first_name, last_name=profile.last_name, middle_name=profile.middle_name)


# ── Presentation toggles ─────────────────────────────────────────────

def _present_reduction(data: dict) -> dict:
    data = dict(data)
    if not settings.show_master_numbers:
        data["is_master_number"] = False
    if not settings.show_karmic_debt:
        data["karmic_debt_number"] = None
    return data


def _present_period(data: dict) -> dict:
    data = dict(data)
    if not settings.show_master_numbers and "is_master_number" in data:
        data["is_master_number"] = False
    return data


def _present_core_numbers(data: dict) -> dict:
    data = dict(data)
    if not settings.show_master_numbers:
        for key in ("life_path_master", "expression_master", "soul_urge_master", "personality_master"):
            data[key] = False
    return data


def present_analysis(data: dict) -> dict:
    """Flatten an engine analysis dict into the API shape, honouring the display settings."""
    core = data["core"]
    response = {
        "system": core["system"],
        "hidden_passion": core["hidden_passion"],
        "subconscious_self": core["subconscious_self"],
        "karmic_lessons": list(core["karmic_lessons"]),
        "special_numbers": dict(core["special_numbers"]),
    }
    for name in _REDUCTION_FIELDS:
        response[name] = _present_reduction(core[name])
    for key in _PHASE_LISTS.values():
        response[key] = [_present_period(item) for item in data[key]]
    return response


def present_current_periods(data: dict) -> dict:
    return {
        "age": data["age"],
        "pinnacle": _present_period(data["pinnacle"]),
        "challenge": _present_period(data["challenge"]),
        "life_period": _present_period(data["life_period"]),
    }


def present_compatibility(data: dict, relationship_number: int) -> dict:
    response = dict(data)
    response["person1"] = _present_core_numbers(data["person1"])
    response["person2"] = _present_core_numbers(data["person2"])
    response["relationship_number"] = relationship_number
    return response


# ── Profiles ─────────────────────────────────────────────────────────

def list_profiles(db: Session) -> list[models.Profile]:
    return (
        db.query(models.Profile)
        .order_by(models.Profile.is_primary.desc(), models.Profile.created_at.asc(), models.Profile.id.asc())
        .all()
    )


def get_profile(db: Session, profile_id: int) -> models.Profile:
    profile = db.get(models.Profile, profile_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


def _clear_primary(db: Session) -> None:
    db.query(models.Profile).filter(models.Profile.is_primary.is_(True)).update(
        {models.Profile.is_primary: False}, synchronize_session="fetch"
    )


def create_profile(
    db: Session,
    first_name: str,
    last_name: str,
    birth_date: date,
    middle_name: str | None = None,
    is_primary: bool = False,
) -> models.Profile:
    if is_primary:
        _clear_primary(db)
    profile = models.Profile(
        first_name=first_name,
        middle_name=middle_name,
        last_name=last_name,
        birth_date=birth_date,
        is_primary=is_primary,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    logger.info("Profile created | profile_id=%s | primary=%s", profile.id, profile.is_primary)
    return profile


def _drop_cached_results(db: Session, profile_id: int) -> None:
    analyses = db.query(models.NumerologyAnalysis).filter(models.NumerologyAnalysis.profile_id == profile_id).all()
    for analysis in analyses:
        db.delete(analysis)
    dropped_compat = (
        db.query(models.CompatibilityAnalysis)
        .filter(
            or_(
                models.CompatibilityAnalysis.profile1_id == profile_id,
                models.CompatibilityAnalysis.profile2_id == profile_id,
            )
        )
        .delete(synchronize_session="fetch")
    )
    db.flush()
    if analyses or dropped_compat:
        logger.info(
            "Cached results dropped | profile_id=%s | analyses=%s | compatibilities=%s",
            profile_id,
            len(analyses),
            dropped_compat,
        )


def update_profile(db: Session, profile_id: int, changes: dict) -> models.Profile:
    profile = get_profile(db, profile_id)
    changed = False
    for field_name in ("first_name", "middle_name", "last_name", "birth_date"):
        if field_name not in changes:
            continue
        value = changes[field_name]
        if field_name != "middle_name" and value is None:
            continue
        if getattr(profile, field_name) != value:
            setattr(profile, field_name, value)
            changed = True

    if changed:
        _drop_cached_results(db, profile.id)
        profile.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(profile)
        logger.info("Profile updated | profile_id=%s", profile.id)
    return profile


def delete_profile(db: Session, profile_id: int) -> None:
    profile = get_profile(db, profile_id)
    _drop_cached_results(db, profile.id)
    db.delete(profile)
    db.commit()
    logger.info("Profile deleted | profile_id=%s", profile_id)


def set_primary_profile(db: Session, profile_id: int) -> models.Profile:
    profile = get_profile(db, profile_id)
    _clear_primary(db)
    profile.is_primary = True
    profile.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(profile)
    logger.info("Primary profile set | profile_id=%s", profile.id)
    return profile


def export_profiles(db: Session) -> list[dict]:
    return [
        {
            "first_name": profile.first_name,
            "middle_name": profile.middle_name,
            "last_name": profile.last_name,
            "birth_year": profile.birth_date.year,
            "birth_month": profile.birth_date.month,
            "birth_day": profile.birth_date.day,
            "is_primary": profile.is_primary,
        }
        for profile in list_profiles(db)
    ]


def import_profiles(db: Session, items: list[dict]) -> tuple[list[models.Profile], int]:
    """Create profiles from exported dicts.

    Entries with an impossible calendar date or matching an existing profile
    (same names and birth date) are skipped. When several entries are marked
    primary the last one wins.
    """
    existing = {
        (p.first_name, p.middle_name, p.last_name, p.birth_date) for p in db.query(models.Profile).all()
    }
    created: list[models.Profile] = []
    skipped = 0
    primary: models.Profile | None = None

    for item in items:
        try:
            birth_date = date(item["birth_year"], item["birth_month"], item["birth_day"])
        except ValueError:
            skipped += 1
            continue
        key = (item["first_name"], item.get("middle_name"), item["last_name"], birth_date)
        if key in existing:
            skipped += 1
            continue
        existing.add(key)
        profile = models.Profile(
            first_name=item["first_name"],
            middle_name=item.get("middle_name"),
            last_name=item["last_name"],
            birth_date=birth_date,
            is_primary=False,
        )
        db.add(profile)
        created.append(profile)
        if item.get("is_primary"):
            primary = profile

    if primary is not None:
        _clear_primary(db)
        primary.is_primary = True
    db.commit()
    for profile in created:
        db.refresh(profile)
    logger.info("Profiles imported | created=%s | skipped=%s", len(created), skipped)
    return created, skipped


# ── Numerology analyses ──────────────────────────────────────────────

def _find_analysis(db: Session, profile_id: int, system: LetterSystem) -> models.NumerologyAnalysis | None:
    return (
        db.query(models.NumerologyAnalysis)
        .filter(
            models.NumerologyAnalysis.profile_id == profile_id,
            models.NumerologyAnalysis.system == system.value,
        )
        .first()
    )


def _build_analysis_record(profile: models.Profile, system: LetterSystem) -> models.NumerologyAnalysis:
    analysis = compute_analysis(person_name(profile), profile.birth_date, system)
    core = analysis.core
    record = models.NumerologyAnalysis(
        profile_id=profile.id,
        system=system.value,
        life_path_number=core.life_path.final_number,
        life_path_master=core.life_path.is_master_number,
        life_path_karmic_debt=core.life_path.karmic_debt_number,
        expression_number=core.expression.final_number,
        expression_master=core.expression.is_master_number,
        expression_karmic_debt=core.expression.karmic_debt_number,
        soul_urge_number=core.soul_urge.final_number,
        soul_urge_master=core.soul_urge.is_master_number,
        soul_urge_karmic_debt=core.soul_urge.karmic_debt_number,
        personality_number=core.personality.final_number,
        personality_master=core.personality.is_master_number,
        personality_karmic_debt=core.personality.karmic_debt_number,
        birthday_number=core.birthday.final_number,
        birthday_master=core.birthday.is_master_number,
        birthday_karmic_debt=core.birthday.karmic_debt_number,
        maturity_number=core.maturity.final_number,
        maturity_master=core.maturity.is_master_number,
        balance_number=core.balance.final_number,
        hidden_passion_number=core.hidden_passion,
        subconscious_self_number=core.subconscious_self,
        cornerstone_number=core.special_numbers.cornerstone,
        capstone_number=core.special_numbers.capstone,
        first_vowel_number=core.special_numbers.first_vowel,
        karmic_lessons=list(core.karmic_lessons),
        analysis_payload=analysis.to_dict(),
    )
    for kind, periods in (
        ("pinnacle", analysis.pinnacles),
        ("challenge", analysis.challenges),
        ("life_period", analysis.life_periods),
    ):
        for period in periods:
            record.phases.append(
                models.LifePhase(
                    kind=kind,
                    period_index=period.period_index,
                    number=period.number,
                    start_age=period.start_age,
                    end_age=period.end_age,
                    is_master_number=getattr(period, "is_master_number", False),
                    source=getattr(period, "source", None),
                )
            )
    return record


def _store_analysis(db: Session, profile: models.Profile, system: LetterSystem) -> models.NumerologyAnalysis:
    record = _build_analysis_record(profile, system)
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(
        "Analysis calculated | profile_id=%s | system=%s | life_path=%s",
        profile.id,
        system.value,
        record.life_path_number,
    )
    return record


def get_or_calculate_analysis(
    db: Session,
    profile_id: int,
    system: LetterSystem | str | None = None,
) -> models.NumerologyAnalysis:
    profile = get_profile(db, profile_id)
    system = resolve_system(system)
    record = _find_analysis(db, profile.id, system)
    if record is not None:
        return record
    return _store_analysis(db, profile, system)


def recalculate_analysis(
    db: Session,
    profile_id: int,
    system: LetterSystem | str | None = None,
) -> models.NumerologyAnalysis:
    profile = get_profile(db, profile_id)
    system = resolve_system(system)
    existing = _find_analysis(db, profile.id, system)
    if existing is not None:
        db.delete(existing)
        db.flush()
    return _store_analysis(db, profile, system)


def _phase_to_dict(phase: models.LifePhase) -> dict:
    data = {
        "number": phase.number,
        "start_age": phase.start_age,
        "end_age": phase.end_age,
        "period_index": phase.period_index,
    }
    if phase.kind != "challenge":
        data["is_master_number"] = phase.is_master_number
    if phase.kind == "life_period":
        data["source"] = phase.source
    return data


def analysis_record_response(record: models.NumerologyAnalysis) -> dict:
    data = {"core": record.analysis_payload["core"]}
    for kind in PHASE_KINDS:
        phases = sorted((p for p in record.phases if p.kind == kind), key=lambda p: p.period_index)
        data[_PHASE_LISTS[kind]] = [_phase_to_dict(p) for p in phases]
    response = present_analysis(data)
    response["profile_id"] = record.profile_id
    response["calculated_at"] = record.calculated_at
    return response


def current_periods_for_profile(db: Session, profile_id: int, today: date) -> dict:
    profile = get_profile(db, profile_id)
    return present_current_periods(compute_current_periods(profile.birth_date, today).to_dict())


# ── Compatibility ────────────────────────────────────────────────────

def calculate_and_store_compatibility(
    db: Session,
    profile1_id: int,
    profile2_id: int,
    system: LetterSystem | str | None = None,
) -> models.CompatibilityAnalysis:
    if profile1_id == profile2_id:
        raise HTTPException(status_code=409, detail="Compatibility needs two different profiles")
    profile1 = get_profile(db, profile1_id)
    profile2 = get_profile(db, profile2_id)
    system = resolve_system(system)

    result = compute_compatibility(
        person_name(profile1), profile1.birth_date, person_name(profile2), profile2.birth_date, system
    )
    replaced = (
        db.query(models.CompatibilityAnalysis)
        .filter(
            models.CompatibilityAnalysis.system == system.value,
            or_(
                (models.CompatibilityAnalysis.profile1_id == profile1.id)
                & (models.CompatibilityAnalysis.profile2_id == profile2.id),
                (models.CompatibilityAnalysis.profile1_id == profile2.id)
                & (models.CompatibilityAnalysis.profile2_id == profile1.id),
            ),
        )
        .delete(synchronize_session="fetch")
    )
    db.flush()

    record = models.CompatibilityAnalysis(
        profile1_id=profile1.id,
        profile2_id=profile2.id,
        system=system.value,
        overall_score=result.overall_score,
        level=result.level.value,
        aspects=[item.to_dict() for item in result.aspects],
        shared_numbers=list(result.shared_numbers),
        complementary_aspects=list(result.complementary_aspects),
        challenges=list(result.challenges),
        relationship_number=compute_relationship_number(profile1.birth_date, profile2.birth_date),
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logging.getLogger("numero.compat").info(
        "Compatibility stored | profiles=%s,%s | system=%s | score=%s | replaced=%s",
        profile1.id,
        profile2.id,
        system.value,
        record.overall_score,
        replaced,
    )
    return record


def list_compatibilities(db: Session, profile_id: int) -> list[models.CompatibilityAnalysis]:
    get_profile(db, profile_id)
    return (
        db.query(models.CompatibilityAnalysis)
        .filter(
            or_(
                models.CompatibilityAnalysis.profile1_id == profile_id,
                models.CompatibilityAnalysis.profile2_id == profile_id,
            )
        )
        .order_by(models.CompatibilityAnalysis.overall_score.desc(), models.CompatibilityAnalysis.id.asc())
        .all()
    )


def top_compatibilities(db: Session, limit: int = 10) -> list[models.CompatibilityAnalysis]:
    return (
        db.query(models.CompatibilityAnalysis)
        .order_by(models.CompatibilityAnalysis.overall_score.desc(), models.CompatibilityAnalysis.id.asc())
        .limit(limit)
        .all()
    )


def average_compatibility_score(db: Session, profile_id: int) -> float | None:
    average = (
        db.query(func.avg(models.CompatibilityAnalysis.overall_score))
        .filter(
            or_(
                models.CompatibilityAnalysis.profile1_id == profile_id,
                models.CompatibilityAnalysis.profile2_id == profile_id,
            )
        )
        .scalar()
    )
    return float(average) if average is not None else None

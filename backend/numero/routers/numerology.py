import logging
from datetime import date as date_type

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from .. import schemas, services
from ..config import settings
from ..database import get_db
from ..letters import LetterSystem, from_devanagari_numerals
from ..limiter import limiter
from ..numerology_engine import compute_analysis, compute_current_periods, compute_cycles

router = APIRouter(prefix="/v1/numerology", tags=["numerology"])
logger = logging.getLogger("numero.numerology")


def _parse_today(today: str | None) -> date_type:
    if not today:
        return date_type.today()
    try:
        return date_type.fromisoformat(from_devanagari_numerals(today.strip()))
    except ValueError:
        raise HTTPException(status_code=422, detail="today must be an ISO date (YYYY-MM-DD)")


@router.post("/calculate", response_model=schemas.NumerologyAnalysisResponse)
@limiter.limit(settings.rate_limit_calculate)
def calculate_numerology(request: Request, payload: schemas.NumerologyCalculateRequest):
    """Stateless analysis of a name and birth date; nothing is stored.

    When ``today`` is given the response also carries the current age and the
    pinnacle, challenge and life period active on that day.
    """
    system = services.resolve_system(payload.system)
    logger.info("Numerology calculate | system=%s | birth_date=%s", system.value, payload.birth_date)

    analysis = compute_analysis(payload.full_name, payload.birth_date, system)
    response = services.present_analysis(analysis.to_dict())
    if payload.today is not None:
        response["current"] = services.present_current_periods(
            compute_current_periods(payload.birth_date, payload.today).to_dict()
        )
    return response


@router.get("/profiles/{profile_id}/analysis", response_model=schemas.NumerologyAnalysisResponse)
def get_profile_analysis(
    profile_id: int,
    system: LetterSystem | None = Query(default=None),
    refresh: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    if refresh:
        record = services.recalculate_analysis(db, profile_id, system)
    else:
        record = services.get_or_calculate_analysis(db, profile_id, system)
    return services.analysis_record_response(record)


@router.get("/profiles/{profile_id}/current-periods", response_model=schemas.CurrentPeriodsOut)
def get_current_periods(
    profile_id: int,
    today: str | None = Query(default=None, max_length=32),
    db: Session = Depends(get_db),
):
    return services.current_periods_for_profile(db, profile_id, _parse_today(today))


@router.post("/cycles", response_model=schemas.CyclesResponse)
def calculate_cycles(payload: schemas.CyclesRequest):
    today = payload.today or date_type.today()
    return compute_cycles(payload.birth_date, today).to_dict()

import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from .. import schemas, services
from ..config import settings
from ..database import get_db
from ..limiter import limiter
from ..numerology_engine import compute_auspicious_dates, compute_compatibility, compute_relationship_number

router = APIRouter(prefix="/v1/compat", tags=["compat"])
logger = logging.getLogger("numero.compat")


@router.post("/calculate", response_model=schemas.CompatibilityResponse)
@limiter.limit(settings.rate_limit_calculate)
def calculate_compat(request: Request, payload: schemas.CompatCalculateRequest):
    system = services.resolve_system(payload.system)
    result = compute_compatibility(
        payload.name_1, payload.birth_date_1, payload.name_2, payload.birth_date_2, system
    )
    logger.info(
        "Compat calculate | system=%s | score=%s | level=%s",
        system.value,
        result.overall_score,
        result.level.value,
    )
    relationship_number = compute_relationship_number(payload.birth_date_1, payload.birth_date_2)
    return services.present_compatibility(result.to_dict(), relationship_number)


@router.post("/profiles", response_model=schemas.CompatibilityRecordResponse)
def calculate_profiles_compat(payload: schemas.CompatProfilesRequest, db: Session = Depends(get_db)):
    return services.calculate_and_store_compatibility(db, payload.profile1_id, payload.profile2_id, payload.system)


@router.get("/profiles/{profile_id}", response_model=schemas.CompatibilityListResponse)
def list_profile_compat(profile_id: int, db: Session = Depends(get_db)):
    items = services.list_compatibilities(db, profile_id)
    return {
        "profile_id": profile_id,
        "average_score": services.average_compatibility_score(db, profile_id),
        "items": items,
    }


@router.get("/top", response_model=list[schemas.CompatibilityRecordResponse])
def top_compat(limit: int = Query(default=10, ge=1, le=100), db: Session = Depends(get_db)):
    return services.top_compatibilities(db, limit)


@router.post("/relationship-number", response_model=schemas.RelationshipNumberResponse)
def relationship_number(payload: schemas.RelationshipNumberRequest):
    return {"relationship_number": compute_relationship_number(payload.birth_date_1, payload.birth_date_2)}


@router.post("/auspicious-dates", response_model=schemas.AuspiciousDatesResponse)
@limiter.limit(settings.rate_limit_scan)
async def auspicious_dates(request: Request, payload: schemas.AuspiciousDatesRequest):
    """Best days of a year for the pair.

    With a task queue the scan runs in the worker and the response carries a
    task_id to poll at /v1/tasks/{task_id}; without one it runs inline.
    """
    arq_pool = getattr(request.app.state, "arq_pool", None)
    if arq_pool is not None:
        job = await arq_pool.enqueue_job(
            "task_auspicious_dates",
            birth_date_1=payload.birth_date_1.isoformat(),
            birth_date_2=payload.birth_date_2.isoformat(),
            year=payload.year,
            min_score=settings.auspicious_dates_min_score,
            limit=settings.auspicious_dates_limit,
        )
        logger.info("Auspicious dates enqueued | year=%s | job_id=%s", payload.year, job.job_id)
        return {"status": "pending", "year": payload.year, "task_id": job.job_id}

    logger.info("Auspicious dates inline (no task queue) | year=%s", payload.year)
    dates = compute_auspicious_dates(
        payload.birth_date_1,
        payload.birth_date_2,
        payload.year,
        min_score=settings.auspicious_dates_min_score,
        limit=settings.auspicious_dates_limit,
    )
    return {"status": "done", "year": payload.year, "dates": [item.to_dict() for item in dates]}

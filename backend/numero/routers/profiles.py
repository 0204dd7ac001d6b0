import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from .. import schemas, services
from ..config import settings
from ..database import get_db
from ..limiter import limiter

router = APIRouter(prefix="/v1/profiles", tags=["profiles"])
logger = logging.getLogger("numero.profiles")


@router.get("", response_model=list[schemas.ProfileResponse])
def list_profiles(db: Session = Depends(get_db)):
    return services.list_profiles(db)


@router.post("", response_model=schemas.ProfileResponse, status_code=201)
@limiter.limit(settings.rate_limit_profile_write)
def create_profile(request: Request, payload: schemas.ProfileCreateRequest, db: Session = Depends(get_db)):
    return services.create_profile(
        db,
        first_name=payload.first_name,
        middle_name=payload.middle_name,
        last_name=payload.last_name,
        birth_date=payload.birth_date,
        is_primary=payload.is_primary,
    )


@router.get("/export", response_model=schemas.ProfileExportResponse)
def export_profiles(db: Session = Depends(get_db)):
    return {"profiles": services.export_profiles(db)}


@router.post("/import", response_model=schemas.ProfileImportResponse)
@limiter.limit(settings.rate_limit_import)
def import_profiles(request: Request, payload: schemas.ProfileImportRequest, db: Session = Depends(get_db)):
    created, skipped = services.import_profiles(db, [item.model_dump() for item in payload.profiles])
    return {"imported": len(created), "skipped": skipped, "profiles": created}


@router.get("/{profile_id}", response_model=schemas.ProfileResponse)
def get_profile(profile_id: int, db: Session = Depends(get_db)):
    return services.get_profile(db, profile_id)


@router.patch("/{profile_id}", response_model=schemas.ProfileResponse)
def update_profile(profile_id: int, payload: schemas.ProfilePatchRequest, db: Session = Depends(get_db)):
    return services.update_profile(db, profile_id, payload.model_dump(exclude_unset=True))


@router.delete("/{profile_id}", status_code=204)
def delete_profile(profile_id: int, db: Session = Depends(get_db)):
    services.delete_profile(db, profile_id)
    return Response(status_code=204)


@router.post("/{profile_id}/primary", response_model=schemas.ProfileResponse)
def set_primary_profile(profile_id: int, db: Session = Depends(get_db)):
    return services.set_primary_profile(db, profile_id)

from io import BytesIO

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from .. import services
from ..database import get_db
from ..letters import LetterSystem
from ..reporting import build_analysis_report_pdf

router = APIRouter(prefix="/v1/reports", tags=["reports"])


@router.get("/profiles/{profile_id}/analysis.pdf")
def get_analysis_pdf_report(
    profile_id: int,
    system: LetterSystem | None = Query(default=None),
    db: Session = Depends(get_db),
):
    profile = services.get_profile(db, profile_id)
    record = services.get_or_calculate_analysis(db, profile.id, system)

    pdf_bytes = build_analysis_report_pdf(
        profile_name=profile.full_name,
        birth_date=profile.birth_date.isoformat(),
        analysis=services.analysis_record_response(record),
    )

    filename = f"numerology-report-{profile.id}-{record.system}.pdf"
    return StreamingResponse(
        BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

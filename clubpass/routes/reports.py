from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from clubpass.database.db import get_db
from clubpass.schemas.reports import ReportOut
from clubpass.services.reports import get_overall_report

router = APIRouter(prefix="/report", tags=["reports"])


@router.get("", response_model=ReportOut)
def overall_report(db: Session = Depends(get_db)):
    """Totals across all events; per-event figures live at /event/{id}/stats."""
    return get_overall_report(db)

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from clubpass.core.errors import DomainError
from clubpass.database.db import get_db
from clubpass.routes.errors import to_http_exception
from clubpass.schemas.attendance import AttendanceRecordOut, RedeemRequest
from clubpass.schemas.bookings import BookingOut
from clubpass.services.attendance import list_event_attendance, redeem

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.post("/redeem", response_model=BookingOut)
def redeem_scan(payload: RedeemRequest, db: Session = Depends(get_db)):
    try:
        return redeem(db, payload.token, payload.event_id)
    except DomainError as e:
        raise to_http_exception(e)


@router.get("/event/{event_id}", response_model=list[AttendanceRecordOut])
def event_attendance(event_id: int, db: Session = Depends(get_db)):
    try:
        return list_event_attendance(db, event_id)
    except DomainError as e:
        raise to_http_exception(e)

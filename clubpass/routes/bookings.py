from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from clubpass.core.errors import DomainError
from clubpass.database.db import get_db
from clubpass.routes.errors import to_http_exception
from clubpass.schemas.bookings import BookingOut, BookRequest
from clubpass.services.bookings import get_booking, get_user_bookings, reserve

router = APIRouter(prefix="/book", tags=["bookings"])


@router.post("", response_model=list[BookingOut])
def book_events(payload: BookRequest, db: Session = Depends(get_db)):
    try:
        return reserve(db, payload.user_id, payload.event_ids)
    except DomainError as e:
        raise to_http_exception(e)


@router.get("/user/{user_id}", response_model=list[BookingOut])
def user_bookings(user_id: str, db: Session = Depends(get_db)):
    return get_user_bookings(db, user_id)


@router.get("/{booking_id}", response_model=BookingOut)
def booking_detail(booking_id: str, db: Session = Depends(get_db)):
    booking = get_booking(db, booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking

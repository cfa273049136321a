"""Booking record access.

Writes here expect to run inside the transaction opened by the reservation
engine or the attendance redeemer.
"""

import datetime as dt

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from clubpass.models.bookings import Booking
from clubpass.models.events import Event


def booking_id_for(user_id: str, event_id: int) -> str:
    return f"{user_id}_{event_id}"


def get_booking(db: Session, booking_id: str) -> Booking | None:
    return db.scalar(
        select(Booking)
        .where(Booking.id == booking_id)
        .execution_options(populate_existing=True)
    )


def get_user_booking(db: Session, user_id: str, event_id: int) -> Booking | None:
    return db.scalar(
        select(Booking)
        .where(Booking.user_id == user_id, Booking.event_id == event_id)
        .execution_options(populate_existing=True)
    )


def list_user_bookings(db: Session, user_id: str) -> list[Booking]:
    return list(
        db.scalars(
            select(Booking).where(Booking.user_id == user_id).order_by(Booking.created_at, Booking.id)
        ).all()
    )


def list_user_booked_events(db: Session, user_id: str) -> list[Event]:
    """Events behind a user's existing bookings; deleted events drop out."""
    return list(
        db.scalars(
            select(Event)
            .join(Booking, Booking.event_id == Event.id)
            .where(Booking.user_id == user_id)
            .order_by(Event.slot)
        ).all()
    )


def count_user_bookings(db: Session, user_id: str) -> int:
    return int(db.scalar(select(func.count(Booking.id)).where(Booking.user_id == user_id)) or 0)


def create_booking_record(
    db: Session,
    *,
    user_id: str,
    event: Event,
    proof_token: str,
) -> Booking:
    booking = Booking(
        id=booking_id_for(user_id, event.id),
        user_id=user_id,
        event_id=event.id,
        event_name=event.name,
        attended=False,
        proof_token=proof_token,
    )
    db.add(booking)
    db.flush()  # surfaces a key collision inside the transaction
    db.refresh(booking)
    return booking


def set_attended(db: Session, booking_id: str, when: dt.datetime) -> bool:
    """Mark a booking attended only if it was not already.

    Returns False when another writer got there first.
    """
    stmt = (
        update(Booking)
        .where(Booking.id == booking_id)
        .where(Booking.attended.is_(False))
        .values(attended=True, attendance_time=when)
        .execution_options(synchronize_session=False)
    )
    res = db.execute(stmt)
    return res.rowcount == 1  # type: ignore

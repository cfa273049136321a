from sqlalchemy import func, select
from sqlalchemy.orm import Session

from clubpass.models.bookings import Booking
from clubpass.models.events import Event


def get_overall_report(db: Session) -> dict:
    """Return aggregated totals across all events."""
    total_capacity = db.scalar(select(func.sum(Event.capacity)))
    total_reserved = db.scalar(select(func.sum(Event.booked_count)))

    total_attended = db.scalar(
        select(func.count(Booking.id)).where(Booking.attended.is_(True))
    )

    return {
        "total_events": int(db.scalar(select(func.count(Event.id))) or 0),
        "total_capacity": int(total_capacity or 0),
        "total_reserved": int(total_reserved or 0),
        "total_attended": int(total_attended or 0),
    }

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from clubpass.models.bookings import Booking
from clubpass.models.events import MAX_EVENT_ID, Event


def create_event(
    db: Session,
    *,
    name: str,
    venue: str,
    club_name: str,
    slot: int,
    capacity: int,
    description: str | None = None,
) -> Event:
    event = Event(
        name=name,
        venue=venue,
        club_name=club_name,
        slot=slot,
        capacity=capacity,
        booked_count=0,
        description=description,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def get_event(db: Session, event_id: int) -> Event | None:
    if not 1 <= event_id <= MAX_EVENT_ID:
        return None
    return db.scalar(
        select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
    )


def list_events(db: Session, club: str | None = None) -> list[Event]:
    stmt = select(Event).order_by(Event.slot, Event.id)
    if club:
        stmt = stmt.where(Event.club_name == club)
    return list(db.scalars(stmt).all())


def list_clubs(db: Session) -> list[str]:
    return list(db.scalars(select(Event.club_name).distinct().order_by(Event.club_name)).all())


def lock_events(db: Session, event_ids: list[int]) -> dict[int, Event]:
    """Re-read and row-lock events for the current transaction.

    Rows are locked in ascending id order so concurrent batches never wait
    on each other in a cycle.
    """
    ids = [i for i in event_ids if 1 <= i <= MAX_EVENT_ID]
    stmt = (
        select(Event)
        .where(Event.id.in_(ids))
        .order_by(Event.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return {event.id: event for event in db.scalars(stmt).all()}


def increment_booked(db: Session, event_id: int) -> bool:
    """Take one seat if any is left. Only valid inside an open transaction.

    Returns False when the event is full (or gone) at write time.
    """
    if not db.in_transaction():
        raise RuntimeError("booked_count can only change inside a reservation transaction")
    stmt = (
        update(Event)
        .where(Event.id == event_id)
        .where(Event.booked_count < Event.capacity)
        .values(booked_count=Event.booked_count + 1)
        .execution_options(synchronize_session=False)
    )
    res = db.execute(stmt)
    return res.rowcount == 1  # type: ignore


def get_event_stats(db: Session, event_id: int) -> dict:
    event = get_event(db, event_id)
    if not event:
        return {}

    attended_count = db.scalar(
        select(func.count(Booking.id)).where(
            Booking.event_id == event_id,
            Booking.attended.is_(True),
        )
    )

    return {
        "event_id": event.id,
        "capacity": event.capacity,
        "booked_count": event.booked_count,
        "remaining": event.capacity - event.booked_count,
        "attended_count": int(attended_count or 0),
    }

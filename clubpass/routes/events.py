from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from clubpass.database.db import get_db
from clubpass.schemas.events import EventCreate, EventOut, EventStatsOut
from clubpass.services import catalog

router = APIRouter(prefix="/event", tags=["events"])


@router.post("", response_model=EventOut)
def create_event(payload: EventCreate, db: Session = Depends(get_db)):
    return catalog.create_event(db, **payload.model_dump())


@router.get("", response_model=list[EventOut])
def list_events(club: str | None = None, db: Session = Depends(get_db)):
    return catalog.list_events(db, club=club)


@router.get("/clubs", response_model=list[str])
def list_clubs(db: Session = Depends(get_db)):
    return catalog.list_clubs(db)


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: int, db: Session = Depends(get_db)):
    event = catalog.get_event(db, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.get("/{event_id}/stats", response_model=EventStatsOut)
def event_stats(event_id: int, db: Session = Depends(get_db)):
    stats = catalog.get_event_stats(db, event_id)
    if not stats:
        raise HTTPException(status_code=404, detail="Event not found")
    return stats

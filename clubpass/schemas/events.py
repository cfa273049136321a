from pydantic import BaseModel, ConfigDict, Field

from clubpass.core.config import settings


# ---------- Event ----------
class EventCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    venue: str = Field(min_length=1, max_length=200)
    club_name: str = Field(min_length=1, max_length=120)
    slot: int = Field(ge=1, le=settings.EVENT_SLOTS)
    capacity: int = Field(ge=1)
    description: str | None = None


class EventOut(BaseModel):
    id: int
    name: str
    venue: str
    club_name: str
    slot: int
    capacity: int
    booked_count: int
    description: str | None = None

    model_config = ConfigDict(from_attributes=True)


class EventStatsOut(BaseModel):
    event_id: int
    capacity: int
    booked_count: int
    remaining: int
    attended_count: int

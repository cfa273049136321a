from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from clubpass.models.events import MAX_EVENT_ID

EventId = Annotated[int, Field(ge=1, le=MAX_EVENT_ID)]


class BookRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=128)
    event_ids: list[EventId] = Field(min_length=1)


class BookingOut(BaseModel):
    id: str
    user_id: str
    event_id: int
    event_name: str
    attended: bool
    created_at: datetime | None = None
    attendance_time: datetime | None = None
    proof_token: str

    model_config = ConfigDict(from_attributes=True)

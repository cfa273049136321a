from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from clubpass.models.events import MAX_EVENT_ID


class RedeemRequest(BaseModel):
    token: str = Field(min_length=1)
    event_id: int = Field(ge=1, le=MAX_EVENT_ID)


class AttendanceRecordOut(BaseModel):
    id: str
    user_id: str
    event_id: int
    attended: bool
    created_at: datetime | None = None
    attendance_time: datetime | None = None

    model_config = ConfigDict(from_attributes=True)

from pydantic import BaseModel


class ReportOut(BaseModel):
    total_events: int
    total_capacity: int
    total_reserved: int
    total_attended: int

from sqlalchemy import CheckConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clubpass.database.db import Base

# Largest id a 64-bit INTEGER column can hold
MAX_EVENT_ID = 2**63 - 1


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    venue: Mapped[str] = mapped_column(String(200), nullable=False)
    club_name: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    slot: Mapped[int] = mapped_column(Integer, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    booked_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    bookings: Mapped[list["Booking"]] = relationship(back_populates="event")

    __table_args__ = (
        CheckConstraint("capacity > 0", name="check_event_capacity_positive"),
        CheckConstraint("booked_count >= 0", name="check_event_booked_non_negative"),
        CheckConstraint("booked_count <= capacity", name="check_event_booked_lte_capacity"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name={self.name}, booked={self.booked_count}/{self.capacity})>"

import datetime as dt

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clubpass.database.db import Base
from clubpass.models.events import Event


class Booking(Base):
    __tablename__ = "bookings"

    # "<user_id>_<event_id>", so a repeat booking collides on the key
    id: Mapped[str] = mapped_column(String(160), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id"), nullable=False, index=True)
    event_name: Mapped[str] = mapped_column(String(200), nullable=False)
    attended: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    attendance_time: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    proof_token: Mapped[str] = mapped_column(Text, nullable=False)

    event: Mapped["Event"] = relationship(back_populates="bookings")

    __table_args__ = (UniqueConstraint("user_id", "event_id", name="uq_booking_user_event"),)

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, attended={self.attended})>"

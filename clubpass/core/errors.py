"""Domain error kinds for reservations and attendance.

Every error carries a machine-readable kind and a user-safe message so
callers can branch on the kind instead of parsing strings.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    """Domain error codes."""

    # storage-state races, definitive
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    EVENT_FULL = "EVENT_FULL"
    DUPLICATE_BOOKING = "DUPLICATE_BOOKING"
    INVALID_BATCH = "INVALID_BATCH"

    # business rules
    SLOT_CONFLICT = "SLOT_CONFLICT"
    CLUB_CONFLICT = "CLUB_CONFLICT"
    DAILY_CAP_EXCEEDED = "DAILY_CAP_EXCEEDED"
    RESTRICTED_WINDOW_EXCEEDED = "RESTRICTED_WINDOW_EXCEEDED"

    # transient
    CONTENTION = "CONTENTION"

    # token codec
    MALFORMED_TOKEN = "MALFORMED_TOKEN"

    # redemption
    INVALID_TOKEN = "INVALID_TOKEN"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    EVENT_MISMATCH = "EVENT_MISMATCH"
    ALREADY_ATTENDED = "ALREADY_ATTENDED"


@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error with kind and user-safe message."""

    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class ReservationError(DomainError):
    """Raised by the reservation engine."""


class EventNotFoundError(ReservationError):
    def __init__(self, event_id: int) -> None:
        super().__init__(
            kind=ErrorKind.EVENT_NOT_FOUND,
            message=f"Event {event_id} no longer exists",
        )
        self.event_id = event_id


class EventFullError(ReservationError):
    def __init__(self, event_id: int, event_name: str) -> None:
        super().__init__(
            kind=ErrorKind.EVENT_FULL,
            message=f"Event {event_name} has reached its maximum capacity",
        )
        self.event_id = event_id


class DuplicateBookingError(ReservationError):
    def __init__(self, event_id: int, event_name: str) -> None:
        super().__init__(
            kind=ErrorKind.DUPLICATE_BOOKING,
            message=f"You have already booked event: {event_name}",
        )
        self.event_id = event_id


class InvalidBatchError(ReservationError):
    def __init__(self, message: str) -> None:
        super().__init__(kind=ErrorKind.INVALID_BATCH, message=message)


class BusinessRuleError(ReservationError):
    """A booking policy rejected the batch before any storage access."""


class SlotConflictError(BusinessRuleError):
    def __init__(self, event_name: str, slot: int, other_name: str) -> None:
        super().__init__(
            kind=ErrorKind.SLOT_CONFLICT,
            message=f"Event {event_name} is in slot {slot}, already taken by {other_name}",
        )
        self.slot = slot


class ClubConflictError(BusinessRuleError):
    def __init__(self, event_name: str, club_name: str, other_name: str) -> None:
        super().__init__(
            kind=ErrorKind.CLUB_CONFLICT,
            message=f"Only one event per club: {event_name} and {other_name} are both run by {club_name}",
        )
        self.club_name = club_name


class DailyCapExceededError(BusinessRuleError):
    def __init__(self, limit: int, requested: int) -> None:
        super().__init__(
            kind=ErrorKind.DAILY_CAP_EXCEEDED,
            message=f"At most {limit} events can be booked per day ({requested} requested)",
        )
        self.limit = limit


class RestrictedWindowExceededError(BusinessRuleError):
    def __init__(self, limit: int, start_hour: int, end_hour: int) -> None:
        super().__init__(
            kind=ErrorKind.RESTRICTED_WINDOW_EXCEEDED,
            message=(
                f"Only {limit} event(s) can be booked between "
                f"{start_hour}:00 and {end_hour}:00"
            ),
        )
        self.limit = limit


class ContentionError(DomainError):
    """Transient conflict; the caller may try again."""

    def __init__(self, message: str = "The system is busy, please try again.") -> None:
        super().__init__(kind=ErrorKind.CONTENTION, message=message)


class TokenError(DomainError):
    """Raised by the proof token codec."""


class MalformedTokenError(TokenError):
    def __init__(self, reason: str) -> None:
        super().__init__(kind=ErrorKind.MALFORMED_TOKEN, message=f"Malformed proof token: {reason}")


class RedeemError(DomainError):
    """Raised by the attendance redeemer."""


class InvalidTokenError(RedeemError):
    def __init__(self, reason: str) -> None:
        super().__init__(kind=ErrorKind.INVALID_TOKEN, message=f"Invalid QR code ({reason})")


class BookingNotFoundError(RedeemError):
    def __init__(self, booking_id: str) -> None:
        super().__init__(kind=ErrorKind.BOOKING_NOT_FOUND, message="Invalid booking")
        self.booking_id = booking_id


class EventMismatchError(RedeemError):
    def __init__(self, booking_event_id: int, expected_event_id: int) -> None:
        super().__init__(
            kind=ErrorKind.EVENT_MISMATCH,
            message="This QR code is for a different event",
        )
        self.booking_event_id = booking_event_id
        self.expected_event_id = expected_event_id


class AlreadyAttendedError(RedeemError):
    def __init__(self, booking_id: str) -> None:
        super().__init__(kind=ErrorKind.ALREADY_ATTENDED, message="Attendance already marked")
        self.booking_id = booking_id

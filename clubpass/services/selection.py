"""Client-side selection policy.

Pure predicates over an in-memory list of candidate events, used to give
immediate feedback while a user assembles a batch. The reservation engine
checks the same rules again against fresh storage reads and is the only
thing that authorizes a booking.

Events are duck-typed: anything with ``id``, ``slot`` and ``club_name``
works (ORM rows, API schemas, test doubles). ``capacity`` and
``booked_count`` are consulted when present.
"""

import datetime as dt
from collections.abc import Iterable, Sequence
from typing import Protocol

from clubpass.core.config import BookingRules
from clubpass.core.errors import ErrorKind


class SlottedEvent(Protocol):
    id: int
    slot: int
    club_name: str


def has_slot_conflict(candidate: SlottedEvent, selection: Iterable[SlottedEvent]) -> bool:
    return any(e.slot == candidate.slot and e.id != candidate.id for e in selection)


def has_club_conflict(candidate: SlottedEvent, selection: Iterable[SlottedEvent]) -> bool:
    return any(e.club_name == candidate.club_name and e.id != candidate.id for e in selection)


def is_at_daily_cap(selection: Sequence[SlottedEvent], max_events: int, existing_count: int = 0) -> bool:
    return existing_count + len(selection) >= max_events


def is_full(candidate: SlottedEvent) -> bool:
    capacity = getattr(candidate, "capacity", None)
    booked = getattr(candidate, "booked_count", None)
    if capacity is None or booked is None:
        return False
    return booked >= capacity


def in_restricted_window(now: dt.datetime, rules: BookingRules) -> bool:
    return rules.restricted_start_hour <= now.hour < rules.restricted_end_hour


def restricted_count(events: Iterable[SlottedEvent], rules: BookingRules) -> int:
    return sum(1 for e in events if rules.restricted_slot_min <= e.slot <= rules.restricted_slot_max)


def exceeds_restricted_window(
    events: Sequence[SlottedEvent], rules: BookingRules, now: dt.datetime
) -> bool:
    if not in_restricted_window(now, rules):
        return False
    return restricted_count(events, rules) > rules.max_events_during_restriction


def rejection_reason(
    candidate: SlottedEvent,
    selection: Sequence[SlottedEvent],
    rules: BookingRules,
    *,
    existing: Sequence[SlottedEvent] = (),
    now: dt.datetime | None = None,
) -> ErrorKind | None:
    """Why ``candidate`` cannot join ``selection``, or None if it can.

    ``existing`` holds the events the user has already booked.
    """
    if is_full(candidate):
        return ErrorKind.EVENT_FULL
    if any(e.id == candidate.id for e in existing):
        return ErrorKind.DUPLICATE_BOOKING
    if any(e.id == candidate.id for e in selection):
        return ErrorKind.INVALID_BATCH
    taken = [*existing, *selection]
    if has_slot_conflict(candidate, taken):
        return ErrorKind.SLOT_CONFLICT
    if has_club_conflict(candidate, taken):
        return ErrorKind.CLUB_CONFLICT
    if is_at_daily_cap(selection, rules.max_events_per_day, existing_count=len(existing)):
        return ErrorKind.DAILY_CAP_EXCEEDED
    if now is not None and exceeds_restricted_window([*selection, candidate], rules, now):
        return ErrorKind.RESTRICTED_WINDOW_EXCEEDED
    return None


def can_add(
    candidate: SlottedEvent,
    selection: Sequence[SlottedEvent],
    rules: BookingRules,
    *,
    existing: Sequence[SlottedEvent] = (),
    now: dt.datetime | None = None,
) -> bool:
    return rejection_reason(candidate, selection, rules, existing=existing, now=now) is None


class Selection:
    """The in-progress set of events a user is about to book."""

    def __init__(self, rules: BookingRules, existing: Sequence[SlottedEvent] = ()) -> None:
        self.rules = rules
        self.existing = tuple(existing)
        self._events: list[SlottedEvent] = []

    @property
    def events(self) -> tuple[SlottedEvent, ...]:
        return tuple(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def event_ids(self) -> list[int]:
        return [e.id for e in self._events]

    def reason(self, event: SlottedEvent, now: dt.datetime | None = None) -> ErrorKind | None:
        return rejection_reason(event, self._events, self.rules, existing=self.existing, now=now)

    def can_add(self, event: SlottedEvent, now: dt.datetime | None = None) -> bool:
        return self.reason(event, now) is None

    def add(self, event: SlottedEvent, now: dt.datetime | None = None) -> bool:
        if not self.can_add(event, now):
            return False
        self._events.append(event)
        return True

    def remove(self, event_id: int) -> None:
        self._events = [e for e in self._events if e.id != event_id]

    def clear(self) -> None:
        self._events = []

    def has_event_in_slot(self, slot: int) -> bool:
        return any(e.slot == slot for e in self._events)

    def has_event_from_club(self, club_name: str) -> bool:
        return any(e.club_name == club_name for e in self._events)

    def covers_all_slots(self, slot_count: int) -> bool:
        return all(self.has_event_in_slot(slot) for slot in range(1, slot_count + 1))

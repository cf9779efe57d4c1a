from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from uuid import UUID, uuid4


class InvalidTransition(ValueError):
    pass


class Location(str, Enum):
    redmond = "redmond"
    tacoma = "tacoma"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class MembershipTier(str, Enum):
    cascade = "cascade"
    pike = "pike"
    rainier = "rainier"


class SessionStatus(str, Enum):
    scheduled = "scheduled"
    active = "active"
    completed = "completed"
    cancelled = "cancelled"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.completed, SessionStatus.cancelled)


class SessionKind(str, Enum):
    simulator = "simulator"


class BookingState(str, Enum):
    currently_playing = "currently_playing"
    upcoming_booking = "upcoming_booking"
    walk_in = "walk_in"

    @property
    def display_text(self) -> str:
        return {
            BookingState.currently_playing: "Currently Playing",
            BookingState.upcoming_booking: "Upcoming Booking",
            BookingState.walk_in: "Walk-in",
        }[self]


# Statuses only move forward; completed and cancelled are terminal.
ALLOWED_TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.scheduled: frozenset({SessionStatus.active, SessionStatus.cancelled}),
    SessionStatus.active: frozenset({SessionStatus.completed, SessionStatus.cancelled}),
    SessionStatus.completed: frozenset(),
    SessionStatus.cancelled: frozenset(),
}


def can_transition(current: SessionStatus, new: SessionStatus) -> bool:
    return new in ALLOWED_TRANSITIONS[current]


def advance_timestamp(previous: datetime, now: datetime) -> datetime:
    # last_updated must strictly increase even when the clock stands still
    if now > previous:
        return now
    return previous + timedelta(microseconds=1)


@dataclass
class Session:
    customer_id: UUID
    customer_name: str
    membership_tier: MembershipTier | None
    bay_id: UUID
    bay_name: str
    location: Location
    start_time: datetime
    planned_end_time: datetime
    status: SessionStatus
    last_updated: datetime
    kind: SessionKind = SessionKind.simulator
    actual_end_time: datetime | None = None
    id: UUID = field(default_factory=uuid4)

    @property
    def duration(self) -> timedelta:
        return self.planned_end_time - self.start_time

    @property
    def actual_duration(self) -> timedelta | None:
        if self.actual_end_time is None:
            return None
        return self.actual_end_time - self.start_time

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.active

    @property
    def is_scheduled(self) -> bool:
        return self.status == SessionStatus.scheduled

    @property
    def is_completed(self) -> bool:
        return self.status == SessionStatus.completed

    @property
    def location_display_name(self) -> str:
        return f"{self.bay_name} • {self.location.display_name}"

    @property
    def time_slot_text(self) -> str:
        return f"{self.start_time:%H:%M} - {self.planned_end_time:%H:%M}"

    def touch(self, now: datetime) -> None:
        self.last_updated = advance_timestamp(self.last_updated, now)

    def extend(self, extra: timedelta, now: datetime) -> None:
        if extra <= timedelta(0):
            raise ValueError("Extension must be positive")
        self.planned_end_time = self.planned_end_time + extra
        self.touch(now)

    def transition(self, new: SessionStatus, now: datetime) -> None:
        if not can_transition(self.status, new):
            raise InvalidTransition(f"Cannot move session from {self.status.value} to {new.value}")
        self.status = new
        if new.is_terminal:
            self.actual_end_time = now
        self.touch(now)

    def copy(self) -> "Session":
        return replace(self)


@dataclass
class BayStatus:
    id: UUID
    bay_name: str
    location: Location
    is_available: bool = True
    is_under_maintenance: bool = False
    estimated_available: datetime | None = None

    @property
    def status_text(self) -> str:
        if self.is_under_maintenance:
            return "Maintenance"
        if self.is_available:
            return "Available"
        return "In Use"


@dataclass(frozen=True)
class CurrentCustomer:
    id: UUID
    first_name: str
    membership_tier: MembershipTier | None = None

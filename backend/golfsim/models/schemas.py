from __future__ import annotations

import datetime as dt
from uuid import UUID

from pydantic import BaseModel, Field

from .entities import BookingState, Location, MembershipTier, SessionKind, SessionStatus


class CustomerOut(BaseModel):
    id: str
    email: str
    first_name: str
    membership_tier: MembershipTier | None
    is_active: bool

    class Config:
        from_attributes = True


class RegisterIn(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=4, max_length=128)
    first_name: str = Field(min_length=1, max_length=120)
    membership_tier: MembershipTier | None = None


class LoginIn(BaseModel):
    email: str
    password: str


class LoginOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    customer: CustomerOut


class SessionOut(BaseModel):
    id: UUID
    customer_id: UUID
    customer_name: str
    membership_tier: MembershipTier | None
    bay_id: UUID
    bay_name: str
    location: Location
    location_display_name: str
    start_time: dt.datetime
    planned_end_time: dt.datetime
    actual_end_time: dt.datetime | None = None
    status: SessionStatus
    kind: SessionKind
    last_updated: dt.datetime
    time_slot_text: str

    class Config:
        from_attributes = True


class TrackerStateOut(BaseModel):
    """Everything a client needs to render the customer's session card."""
    guest_id: str | None = None
    session: SessionOut | None
    is_session_active: bool
    booking_state: BookingState
    booking_state_text: str
    current_bay_name: str | None
    current_location: Location | None
    session_time_remaining: float | None
    session_time_remaining_text: str | None
    upcoming_time_until_start: float | None
    upcoming_time_text: str | None
    last_session_update: dt.datetime
    last_ended_session: SessionOut | None = None


class SessionStartIn(BaseModel):
    bay_id: UUID
    duration_minutes: int | None = Field(default=None, ge=1, le=600)


class SessionScheduleIn(BaseModel):
    bay_id: UUID
    start_time: dt.datetime
    duration_minutes: int | None = Field(default=None, ge=1, le=600)


class SessionExtendIn(BaseModel):
    minutes: int = Field(..., ge=1, le=240, description="Minutes to add to the planned end")


class BayOut(BaseModel):
    id: UUID
    bay_name: str
    location: Location
    is_available: bool
    is_under_maintenance: bool
    estimated_available: dt.datetime | None = None
    status_text: str

    class Config:
        from_attributes = True


class BayAvailabilityIn(BaseModel):
    is_available: bool


class BayMaintenanceIn(BaseModel):
    under_maintenance: bool
    estimated_available: dt.datetime | None = None


class LocationSummaryOut(BaseModel):
    location: Location
    available: int
    total: int

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Callable
from uuid import UUID, uuid4

from ..core.clock import Clock, SystemClock, ensure_aware
from ..core.config import Settings, settings
from ..core.scheduler import TickHandle, TickScheduler
from ..models.entities import (
    BayStatus,
    BookingState,
    Location,
    Session,
    SessionStatus,
    advance_timestamp,
)
from .bay_status import BayStatusProvider
from .formatting import format_time_remaining, format_time_until_start
from .identity import IdentityProvider

logger = logging.getLogger(__name__)


Observer = Callable[["SessionTracker", "Session | None"], None]


class SessionTracker:
    """
    Holds one customer's current bay session.

    Display state is derived from the clock on every read. Two ticks move
    the session along on their own: the status tick promotes a scheduled
    session once its start time passes, the active tick completes an
    active session once its planned end passes. Only one tick is armed
    at a time and it is re-armed whenever the status changes.
    """

    def __init__(
        self,
        bay_provider: BayStatusProvider,
        identity: IdentityProvider,
        scheduler: TickScheduler,
        clock: Clock | None = None,
        config: Settings | None = None,
    ) -> None:
        self._bays = bay_provider
        self._identity = identity
        self._scheduler = scheduler
        self._clock = clock or SystemClock()
        self._config = config or settings

        self._session: Session | None = None
        self._tick: TickHandle | None = None
        self._observers: list[Observer] = []
        self._last_update = self._clock.now()
        self._closed = False

        self.last_ended_session: Session | None = None
        self.mismatch_count = 0

        self._unsubscribe_bays = bay_provider.subscribe(self._on_bays_changed)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def _publish(self) -> None:
        snapshot = self.current_session
        for observer in list(self._observers):
            try:
                observer(self, snapshot)
            except Exception:
                logger.exception("Session observer failed")

    def _mark_updated(self, now: datetime) -> None:
        self._last_update = advance_timestamp(self._last_update, now)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_session(
        self,
        bay_id: UUID,
        bay_name: str,
        location: Location,
        duration: timedelta | None = None,
    ) -> Session:
        now = self._clock.now()
        duration = self._checked_duration(duration)
        session = self._new_session(bay_id, bay_name, location, now, duration, SessionStatus.active, now)
        self._install(session, now)
        logger.info(f"Session started: {bay_name} for {duration.total_seconds() / 60:g} minutes")
        return session.copy()

    def schedule_upcoming_session(
        self,
        bay_id: UUID,
        bay_name: str,
        location: Location,
        start_time: datetime,
        duration: timedelta | None = None,
    ) -> Session:
        now = self._clock.now()
        start_time = ensure_aware(start_time)
        duration = self._checked_duration(duration)
        session = self._new_session(bay_id, bay_name, location, start_time, duration, SessionStatus.scheduled, now)
        self._install(session, now)
        logger.info(f"Upcoming session scheduled: {bay_name} at {start_time.isoformat()}")
        return session.copy()

    def extend_session(self, extra: timedelta) -> None:
        session = self._session
        if session is None:
            logger.debug("extend_session ignored: no current session")
            return
        if extra <= timedelta(0):
            logger.warning(f"extend_session ignored: non-positive extension {extra}")
            return

        now = self._clock.now()
        session.extend(extra, now)
        self._mark_updated(now)
        self._publish()
        logger.info(f"Session extended by {extra.total_seconds() / 60:g} minutes")

    def end_session(self) -> None:
        session = self._session
        if session is None:
            logger.debug("end_session ignored: no current session")
            return
        # a booking that never started cannot complete
        if session.is_scheduled:
            self._finish(SessionStatus.cancelled)
        else:
            self._finish(SessionStatus.completed)

    def cancel_session(self) -> None:
        session = self._session
        if session is None or session.status.is_terminal:
            logger.debug("cancel_session ignored: nothing to cancel")
            return
        self._finish(SessionStatus.cancelled)

    def clear_session(self) -> None:
        """Drop the current session without archiving it (reset or logout)."""
        self._cancel_tick()
        self._session = None
        self._mark_updated(self._clock.now())
        self._publish()
        logger.debug("Session cleared")

    def start_demo_active_session(self) -> Session:
        bay_id, bay_name = self._demo_bay("Mickelson - Tacoma")
        return self.start_session(bay_id, bay_name, Location.tacoma, timedelta(hours=1))

    def schedule_demo_upcoming_session(self) -> Session:
        bay_id, bay_name = self._demo_bay("Palmer - Tacoma")
        return self.schedule_upcoming_session(
            bay_id,
            bay_name,
            Location.tacoma,
            self._clock.now() + timedelta(minutes=25),
            timedelta(hours=1),
        )

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._cancel_tick()
        self._unsubscribe_bays()
        self._observers.clear()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def current_session(self) -> Session | None:
        return self._session.copy() if self._session else None

    @property
    def is_session_active(self) -> bool:
        return self._session is not None and self._session.is_active

    @property
    def last_session_update(self) -> datetime:
        return self._last_update

    @property
    def tick_name(self) -> str | None:
        return self._tick.name if self._tick else None

    @property
    def booking_state(self) -> BookingState:
        session = self._session
        if session is None:
            return BookingState.walk_in
        if session.status == SessionStatus.active:
            return BookingState.currently_playing
        if session.status == SessionStatus.scheduled:
            return BookingState.upcoming_booking
        return BookingState.walk_in

    @property
    def current_bay_name(self) -> str | None:
        return self._session.bay_name if self._session else None

    @property
    def current_location(self) -> Location | None:
        return self._session.location if self._session else None

    @property
    def session_time_remaining(self) -> float | None:
        session = self._session
        if session is None or not session.is_active:
            return None
        return (session.planned_end_time - self._clock.now()).total_seconds()

    @property
    def session_time_remaining_text(self) -> str | None:
        remaining = self.session_time_remaining
        if remaining is None:
            return None
        return format_time_remaining(remaining)

    @property
    def upcoming_time_until_start(self) -> float | None:
        session = self._session
        if session is None or not session.is_scheduled:
            return None
        return (session.start_time - self._clock.now()).total_seconds()

    @property
    def upcoming_time_text(self) -> str | None:
        until = self.upcoming_time_until_start
        if until is None:
            return None
        return format_time_until_start(until)

    def current_bay_status(self) -> BayStatus | None:
        if self._session is None:
            return None
        return self._bays.get(self._session.bay_id)

    def available_bays(self, location: Location) -> list[BayStatus]:
        return [b for b in self._bays.by_location(location) if b.is_available]

    def snapshot(self) -> dict[str, Any]:
        state = self.booking_state
        return {
            "session": self.current_session,
            "is_session_active": self.is_session_active,
            "booking_state": state,
            "booking_state_text": state.display_text,
            "current_bay_name": self.current_bay_name,
            "current_location": self.current_location,
            "session_time_remaining": self.session_time_remaining,
            "session_time_remaining_text": self.session_time_remaining_text,
            "upcoming_time_until_start": self.upcoming_time_until_start,
            "upcoming_time_text": self.upcoming_time_text,
            "last_session_update": self.last_session_update,
            "last_ended_session": self.last_ended_session,
        }

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    def status_tick(self) -> None:
        session = self._session
        if session is None:
            return

        now = self._clock.now()
        if session.is_scheduled and now >= session.start_time:
            session.transition(SessionStatus.active, now)
            logger.info(f"Scheduled session on {session.bay_name} is now active")
            self._arm()

        self._mark_updated(now)
        self._publish()

    def active_tick(self) -> None:
        session = self._session
        if session is None or not session.is_active:
            return

        now = self._clock.now()
        if now >= session.planned_end_time:
            logger.info(f"Session on {session.bay_name} reached its planned end")
            self._finish(SessionStatus.completed)
            return

        session.touch(now)
        self._mark_updated(now)
        self._publish()

    def _arm(self) -> None:
        self._cancel_tick()
        session = self._session
        if session is None or self._closed:
            return
        if session.is_scheduled:
            self._tick = self._scheduler.every(self._config.STATUS_TICK_SECONDS, self.status_tick, "status")
        elif session.is_active:
            self._tick = self._scheduler.every(self._config.ACTIVE_TICK_SECONDS, self.active_tick, "active")

    def _cancel_tick(self) -> None:
        if self._tick is not None:
            self._tick.cancel()
            self._tick = None

    # ------------------------------------------------------------------
    # Bay cross-check
    # ------------------------------------------------------------------

    def _on_bays_changed(self, bays: list[BayStatus]) -> None:
        session = self._session
        if session is None or not session.is_active:
            return

        bay = next((b for b in bays if b.id == session.bay_id), None)
        if bay is None or not bay.is_available:
            return

        self.mismatch_count += 1
        logger.warning(
            f"Session bay status mismatch: {session.bay_name} reports available "
            f"while session {session.id} is active"
        )
        if self._config.BAY_MISMATCH_POLICY == "complete":
            logger.info(f"Completing session {session.id} after bay mismatch")
            self._finish(SessionStatus.completed)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _checked_duration(self, duration: timedelta | None) -> timedelta:
        if duration is None:
            return timedelta(minutes=self._config.DEFAULT_SESSION_MINUTES)
        if duration < timedelta(0):
            logger.warning(f"Negative session duration {duration} clamped to zero")
            return timedelta(0)
        return duration

    def _new_session(
        self,
        bay_id: UUID,
        bay_name: str,
        location: Location,
        start_time: datetime,
        duration: timedelta,
        status: SessionStatus,
        now: datetime,
    ) -> Session:
        customer = self._identity.resolve()
        return Session(
            customer_id=customer.id,
            customer_name=customer.first_name,
            membership_tier=customer.membership_tier,
            bay_id=bay_id,
            bay_name=bay_name,
            location=location,
            start_time=start_time,
            planned_end_time=start_time + duration,
            status=status,
            last_updated=now,
        )

    def _install(self, session: Session, now: datetime) -> None:
        if self._session is not None:
            logger.info(f"Replacing current session {self._session.id} ({self._session.status.value})")
        self._session = session
        self._mark_updated(now)
        self._arm()
        self._publish()

    def _finish(self, status: SessionStatus) -> None:
        session = self._session
        if session is None:
            return

        now = self._clock.now()
        self._cancel_tick()
        session.transition(status, now)
        self._mark_updated(now)
        # observers see the terminal status before the slot is emptied
        self._publish()

        self.last_ended_session = session.copy()
        self._session = None
        self._mark_updated(now)
        self._publish()
        logger.info(f"Session ended: {session.bay_name} ({status.value})")

    def _demo_bay(self, bay_name: str) -> tuple[UUID, str]:
        for bay in self._bays.bays:
            if bay.bay_name == bay_name:
                return bay.id, bay.bay_name
        return uuid4(), bay_name

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterable
from uuid import UUID, uuid4

from ..models.entities import BayStatus, Location

logger = logging.getLogger(__name__)


BayListener = Callable[[list[BayStatus]], None]


class BayNotFound(LookupError):
    pass


DEMO_BAYS: dict[Location, list[str]] = {
    Location.tacoma: [
        "Woods", "Mickelson", "Palmer", "Nicklaus", "Ochoa", "Garcia", "McIlroy",
        "Spieth", "Day", "Fowler", "Thomas", "Koepka", "Rahm",
    ],
    Location.redmond: [
        "Watson", "Hogan", "Snead", "Nelson", "Player", "Trevino", "Couples", "Singh",
    ],
}

# Bays that start out occupied or closed in the demo board
_DEMO_BUSY = {"Mickelson", "Nicklaus", "Garcia", "Day", "Koepka", "Hogan", "Player", "Couples"}
_DEMO_MAINTENANCE = {"Koepka"}


class BayStatusProvider:
    """
    Live board of simulator bays.

    Every change pushes the full bay list to subscribers, the way the front
    desk screen and customer trackers consume it.
    """

    def __init__(self, bays: Iterable[BayStatus] = ()) -> None:
        self._bays: dict[UUID, BayStatus] = {b.id: b for b in bays}
        self._listeners: list[BayListener] = []

    @property
    def bays(self) -> list[BayStatus]:
        return [replace(b) for b in self._bays.values()]

    def get(self, bay_id: UUID) -> BayStatus | None:
        bay = self._bays.get(bay_id)
        return replace(bay) if bay else None

    def require(self, bay_id: UUID) -> BayStatus:
        bay = self.get(bay_id)
        if bay is None:
            raise BayNotFound(f"Bay {bay_id} not found")
        return bay

    def by_location(self, location: Location) -> list[BayStatus]:
        return [b for b in self.bays if b.location == location]

    def available_count(self, location: Location) -> int:
        return sum(1 for b in self.by_location(location) if b.is_available)

    def total_count(self, location: Location) -> int:
        return len(self.by_location(location))

    def subscribe(self, listener: BayListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def set_availability(self, bay_id: UUID, is_available: bool) -> BayStatus:
        bay = self._require_mutable(bay_id)
        bay.is_available = is_available
        if is_available:
            bay.estimated_available = None
        logger.info(f"Bay {bay.bay_name} is now {bay.status_text}")
        self._publish()
        return replace(bay)

    def set_maintenance(
        self,
        bay_id: UUID,
        under_maintenance: bool,
        estimated_available: datetime | None = None,
    ) -> BayStatus:
        bay = self._require_mutable(bay_id)
        bay.is_under_maintenance = under_maintenance
        if under_maintenance:
            bay.is_available = False
            bay.estimated_available = estimated_available
        else:
            bay.estimated_available = None
        logger.info(f"Bay {bay.bay_name} maintenance={under_maintenance}")
        self._publish()
        return replace(bay)

    def replace(self, bays: Iterable[BayStatus]) -> None:
        self._bays = {b.id: replace(b) for b in bays}
        self._publish()

    def seed_demo_bays(self) -> None:
        seeded: list[BayStatus] = []
        for location, names in DEMO_BAYS.items():
            for name in names:
                seeded.append(
                    BayStatus(
                        id=uuid4(),
                        bay_name=f"{name} - {location.display_name}",
                        location=location,
                        is_available=name not in _DEMO_BUSY,
                        is_under_maintenance=name in _DEMO_MAINTENANCE,
                    )
                )
        self.replace(seeded)
        logger.info(f"Seeded {len(seeded)} demo bays")

    def _require_mutable(self, bay_id: UUID) -> BayStatus:
        bay = self._bays.get(bay_id)
        if bay is None:
            raise BayNotFound(f"Bay {bay_id} not found")
        return bay

    def _publish(self) -> None:
        snapshot = self.bays
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Bay status listener failed")

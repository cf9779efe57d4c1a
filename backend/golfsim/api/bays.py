from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from ..core.deps import get_registry, require_staff
from ..core.store import TrackerRegistry
from ..models.entities import Location
from ..models.schemas import BayAvailabilityIn, BayMaintenanceIn, BayOut, LocationSummaryOut
from ..services.bay_status import BayNotFound

router = APIRouter(prefix="/api/bays", tags=["bays"])


@router.get("", response_model=list[BayOut])
async def list_bays(
    location: Location | None = Query(default=None),
    available_only: bool = Query(default=False),
    registry: TrackerRegistry = Depends(get_registry),
) -> list[BayOut]:
    bays = registry.bays.by_location(location) if location else registry.bays.bays
    if available_only:
        bays = [b for b in bays if b.is_available]
    return [BayOut.model_validate(b) for b in bays]


@router.get("/summary", response_model=list[LocationSummaryOut])
async def summary(registry: TrackerRegistry = Depends(get_registry)) -> list[LocationSummaryOut]:
    return [
        LocationSummaryOut(
            location=loc,
            available=registry.bays.available_count(loc),
            total=registry.bays.total_count(loc),
        )
        for loc in Location
    ]


@router.put(
    "/{bay_id}/availability",
    response_model=BayOut,
    dependencies=[Depends(require_staff)],
)
async def set_availability(
    bay_id: UUID,
    payload: BayAvailabilityIn,
    registry: TrackerRegistry = Depends(get_registry),
) -> BayOut:
    try:
        bay = registry.bays.set_availability(bay_id, payload.is_available)
    except BayNotFound:
        raise HTTPException(status_code=404, detail="Bay not found")
    return BayOut.model_validate(bay)


@router.put(
    "/{bay_id}/maintenance",
    response_model=BayOut,
    dependencies=[Depends(require_staff)],
)
async def set_maintenance(
    bay_id: UUID,
    payload: BayMaintenanceIn,
    registry: TrackerRegistry = Depends(get_registry),
) -> BayOut:
    try:
        bay = registry.bays.set_maintenance(bay_id, payload.under_maintenance, payload.estimated_available)
    except BayNotFound:
        raise HTTPException(status_code=404, detail="Bay not found")
    return BayOut.model_validate(bay)

from __future__ import annotations

from datetime import timedelta
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from ..core.deps import TrackerContext, get_registry, get_tracker
from ..core.store import TrackerRegistry
from ..models.entities import BayStatus
from ..models.schemas import (
    SessionExtendIn,
    SessionScheduleIn,
    SessionStartIn,
    TrackerStateOut,
)
from ..services.bay_status import BayNotFound

router = APIRouter(prefix="/api/session", tags=["session"])


def _state(ctx: TrackerContext) -> TrackerStateOut:
    state = {**ctx.tracker.snapshot(), "guest_id": ctx.guest_id}
    return TrackerStateOut.model_validate(state, from_attributes=True)


def _require_bay(registry: TrackerRegistry, bay_id: UUID) -> BayStatus:
    try:
        return registry.bays.require(bay_id)
    except BayNotFound:
        raise HTTPException(status_code=404, detail="Bay not found")


def _duration(minutes: int | None) -> timedelta | None:
    return timedelta(minutes=minutes) if minutes is not None else None


@router.get("", response_model=TrackerStateOut)
async def get_state(ctx: TrackerContext = Depends(get_tracker)) -> TrackerStateOut:
    return _state(ctx)


@router.post("/start", response_model=TrackerStateOut)
async def start_session(
    payload: SessionStartIn,
    ctx: TrackerContext = Depends(get_tracker),
    registry: TrackerRegistry = Depends(get_registry),
) -> TrackerStateOut:
    bay = _require_bay(registry, payload.bay_id)
    ctx.tracker.start_session(bay.id, bay.bay_name, bay.location, _duration(payload.duration_minutes))
    return _state(ctx)


@router.post("/schedule", response_model=TrackerStateOut)
async def schedule_session(
    payload: SessionScheduleIn,
    ctx: TrackerContext = Depends(get_tracker),
    registry: TrackerRegistry = Depends(get_registry),
) -> TrackerStateOut:
    bay = _require_bay(registry, payload.bay_id)
    ctx.tracker.schedule_upcoming_session(
        bay.id,
        bay.bay_name,
        bay.location,
        payload.start_time,
        _duration(payload.duration_minutes),
    )
    return _state(ctx)


@router.post("/extend", response_model=TrackerStateOut)
async def extend_session(
    payload: SessionExtendIn,
    ctx: TrackerContext = Depends(get_tracker),
) -> TrackerStateOut:
    ctx.tracker.extend_session(timedelta(minutes=payload.minutes))
    return _state(ctx)


@router.post("/end", response_model=TrackerStateOut)
async def end_session(ctx: TrackerContext = Depends(get_tracker)) -> TrackerStateOut:
    ctx.tracker.end_session()
    return _state(ctx)


@router.post("/cancel", response_model=TrackerStateOut)
async def cancel_session(ctx: TrackerContext = Depends(get_tracker)) -> TrackerStateOut:
    ctx.tracker.cancel_session()
    return _state(ctx)


@router.post("/clear", response_model=TrackerStateOut)
async def clear_session(ctx: TrackerContext = Depends(get_tracker)) -> TrackerStateOut:
    ctx.tracker.clear_session()
    return _state(ctx)

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, AsyncIterator, cast
from uuid import UUID, uuid4

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session as DBSession

from .config import settings
from .db import SessionLocal
from .security import decode_customer_id
from .store import TrackerRegistry, store
from ..models.db import Customer
from ..models.entities import CurrentCustomer, MembershipTier
from ..services.identity import IdentityProvider
from ..services.session_tracker import SessionTracker


bearer = HTTPBearer(auto_error=False)


def _as_bool(v: Any) -> bool:
    return bool(cast(bool, v))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_registry() -> TrackerRegistry:
    return store


def _load_customer(db: DBSession, token: str) -> Customer:
    customer_id = decode_customer_id(token)
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if customer is None or not _as_bool(customer.is_active):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return customer


def get_current_customer(
    db: DBSession = Depends(get_db),
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> Customer:
    if creds is None or not creds.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return _load_customer(db, creds.credentials)


def get_optional_customer(
    db: DBSession = Depends(get_db),
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> Customer | None:
    if creds is None or not creds.credentials:
        return None
    return _load_customer(db, creds.credentials)


def require_staff(customer: Customer = Depends(get_current_customer)) -> Customer:
    if cast(str, customer.email).lower() not in settings.staff_list():
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return customer


def to_current_customer(customer: Customer) -> CurrentCustomer:
    tier = cast(str | None, customer.membership_tier)
    return CurrentCustomer(
        id=UUID(cast(str, customer.id)),
        first_name=cast(str, customer.first_name),
        membership_tier=MembershipTier(tier) if tier else None,
    )


@dataclass
class TrackerContext:
    key: str
    guest_id: str | None
    tracker: SessionTracker


async def get_tracker(
    customer: Customer | None = Depends(get_optional_customer),
    x_guest_id: str | None = Header(default=None, max_length=64),
    registry: TrackerRegistry = Depends(get_registry),
) -> AsyncIterator[TrackerContext]:
    """Lease the caller's tracker for one request; an idle tracker is dropped afterwards."""
    if customer is not None:
        key, guest_id = f"customer:{customer.id}", None
        identity = IdentityProvider(to_current_customer(customer))
    else:
        guest_id = (x_guest_id or "").strip() or str(uuid4())
        key = f"guest:{guest_id}"
        identity = IdentityProvider()

    tracker = registry.acquire(key, identity)
    try:
        yield TrackerContext(key=key, guest_id=guest_id, tracker=tracker)
    finally:
        registry.release(key)

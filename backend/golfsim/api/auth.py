from __future__ import annotations

from typing import Any, cast

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..core.deps import get_current_customer, get_db, get_registry
from ..core.security import create_access_token, get_password_hash, verify_password
from ..core.store import TrackerRegistry
from ..models.db import Customer
from ..models.schemas import CustomerOut, LoginIn, LoginOut, RegisterIn

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _as_str(v: Any) -> str:
    return cast(str, v)


def _as_bool(v: Any) -> bool:
    return bool(cast(bool, v))


def _login_out(customer: Customer) -> LoginOut:
    token = create_access_token(_as_str(customer.id))
    return LoginOut(access_token=token, customer=CustomerOut.model_validate(customer))


@router.post("/register", response_model=LoginOut, status_code=201)
def register(payload: RegisterIn, db: Session = Depends(get_db)) -> LoginOut:
    email = payload.email.strip().lower()
    if db.query(Customer).filter(Customer.email == email).first():
        raise HTTPException(status_code=409, detail="Email already registered")

    customer = Customer(
        email=email,
        first_name=payload.first_name.strip(),
        password_hash=get_password_hash(payload.password),
        membership_tier=payload.membership_tier.value if payload.membership_tier else None,
        is_active=True,
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return _login_out(customer)


@router.post("/login", response_model=LoginOut)
def login(payload: LoginIn, db: Session = Depends(get_db)) -> LoginOut:
    customer = db.query(Customer).filter(Customer.email == payload.email.strip().lower()).first()

    if (customer is None) or (not _as_bool(customer.is_active)):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if not verify_password(payload.password, _as_str(customer.password_hash)):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return _login_out(customer)


@router.post("/logout", status_code=204)
async def logout(
    customer: Customer = Depends(get_current_customer),
    registry: TrackerRegistry = Depends(get_registry),
) -> None:
    key = f"customer:{customer.id}"
    tracker = registry.get(key)
    if tracker is not None:
        tracker.clear_session()
    registry.drop(key)


@router.get("/me", response_model=CustomerOut)
def me(customer: Customer = Depends(get_current_customer)) -> CustomerOut:
    return CustomerOut.model_validate(customer)

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi import HTTPException
from jose import JWTError, ExpiredSignatureError, jwt
from passlib.context import CryptContext

from .config import settings


pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(customer_id: str, expires_delta: timedelta | None = None) -> str:
    """Bearer token naming the customer; the customer row is reloaded on every request."""
    issued = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=int(settings.JWT_EXPIRES_MINUTES))
    claims = {"sub": customer_id, "iat": issued, "exp": issued + lifetime}
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_customer_id(token: str) -> str:
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    customer_id = claims.get("sub")
    if not customer_id:
        raise HTTPException(status_code=401, detail="Invalid token")
    return str(customer_id)

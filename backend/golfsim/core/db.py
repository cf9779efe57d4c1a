from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings

_connect_args = {}
_engine_kwargs = {}
if settings.DB_URL.startswith("sqlite"):
    _connect_args = {"check_same_thread": False}
    if ":memory:" in settings.DB_URL:
        # one shared connection, otherwise every checkout sees an empty database
        _engine_kwargs = {"poolclass": StaticPool}

engine = create_engine(settings.DB_URL, connect_args=_connect_args, **_engine_kwargs)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

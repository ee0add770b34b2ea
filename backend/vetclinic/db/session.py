"""Module: session."""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from vetclinic.core.config import settings

_connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

# Process-wide engine and session factory shared by request handlers and scripts.
engine = create_engine(settings.database_url, future=True, pool_pre_ping=True, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

"""Module: health."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vetclinic.api.v1.routes.deps import get_db
from vetclinic.core.errors import BackendError

logger = logging.getLogger(__name__)

router = APIRouter()

# Endpoint: liveness check that also touches the database.
@router.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Health check could not reach the database: %s", exc)
        raise BackendError("Database unavailable") from exc
    return {"status": "ok", "database": "ok"}

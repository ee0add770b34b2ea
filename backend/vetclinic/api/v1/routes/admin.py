"""Module: admin."""

import logging
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from vetclinic.api.v1.routes.auth import UserPayload, as_user_payload, email_taken, normalize_email
from vetclinic.api.v1.routes.deps import get_db, require_role
from vetclinic.core.errors import NotFoundError, ValidationError
from vetclinic.core.security import hash_password
from vetclinic.db.models.audit_log import AuditLog
from vetclinic.db.models.clinic import Clinic
from vetclinic.db.models.user import User
from vetclinic.db.models.veterinarian import Veterinarian
from vetclinic.services.stats import StatsService
from vetclinic.utils.sanitize import normalize_optional

logger = logging.getLogger(__name__)

router = APIRouter()


class VeterinarianCreatePayload(BaseModel):
    email: str
    password: str = Field(min_length=8)
    full_name: str
    phone: str | None = None
    clinic_id: int = Field(gt=0)
    specialization: str | None = None
    license_number: str | None = None
    years_experience: int | None = Field(default=None, ge=0)
    consultation_fee: Decimal | None = Field(default=None, ge=0)


class VeterinarianCreated(BaseModel):
    veterinarian_id: int
    clinic_id: int
    user: UserPayload


@router.post("/veterinarians", response_model=VeterinarianCreated, summary="Create a veterinarian account")
def create_veterinarian(
    payload: VeterinarianCreatePayload,
    admin: User = Depends(require_role("ADMIN")),
    db: Session = Depends(get_db),
):
    normalized_email = normalize_email(payload.email)
    if email_taken(db, normalized_email):
        raise HTTPException(status_code=409, detail="Email already registered")

    clinic = db.get(Clinic, payload.clinic_id)
    if not clinic:
        raise NotFoundError("Clinic not found")

    user = User(
        email=normalized_email,
        password=hash_password(payload.password),
        role="VET",
        full_name=payload.full_name.strip(),
        phone=normalize_optional(payload.phone),
    )
    db.add(user)
    db.flush()

    vet = Veterinarian(
        user_id=user.user_id,
        clinic_id=clinic.id,
        full_name=user.full_name,
        specialization=normalize_optional(payload.specialization),
        license_number=normalize_optional(payload.license_number),
        years_experience=payload.years_experience,
        consultation_fee=payload.consultation_fee,
        is_available=True,
    )
    db.add(vet)
    db.flush()
    db.add(
        AuditLog(
            actor_user_id=admin.user_id,
            action="veterinarian.create",
            target_type="veterinarian",
            target_id=str(vet.id),
            meta={"clinic_id": clinic.id, "email": normalized_email},
        )
    )
    db.commit()
    db.refresh(user)
    db.refresh(vet)

    logger.info("Admin %s created veterinarian %s at clinic %s", admin.user_id, vet.id, clinic.id)
    return VeterinarianCreated(veterinarian_id=vet.id, clinic_id=clinic.id, user=as_user_payload(user))


def _checked_range(start: date | None, end: date | None) -> tuple[date | None, date | None]:
    if start and end and start > end:
        raise ValidationError("start must be on or before end")
    return start, end


@router.get("/analytics/overview", summary="System-wide counts and revenue")
def analytics_overview(
    start: date | None = None,
    end: date | None = None,
    admin: User = Depends(require_role("ADMIN")),
    db: Session = Depends(get_db),
):
    start, end = _checked_range(start, end)
    return StatsService(db).admin_overview(start=start, end=end)


@router.get("/analytics/financial", summary="Revenue breakdown across clinics")
def analytics_financial(
    start: date | None = None,
    end: date | None = None,
    admin: User = Depends(require_role("ADMIN")),
    db: Session = Depends(get_db),
):
    start, end = _checked_range(start, end)
    return StatsService(db).admin_financial(start=start, end=end)

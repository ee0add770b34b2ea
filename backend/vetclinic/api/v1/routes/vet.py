"""Module: vet (veterinarian side)."""

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from vetclinic.api.v1.routes.deps import get_db, require_role
from vetclinic.core.errors import NotFoundError
from vetclinic.db.models.clinic import Clinic
from vetclinic.db.models.patient import Patient
from vetclinic.db.models.pet_owner_profile import PetOwnerProfile
from vetclinic.db.models.review import Review
from vetclinic.db.models.user import User
from vetclinic.services.appointments import AppointmentService, appointment_to_dict
from vetclinic.services.stats import StatsService
from vetclinic.utils.sanitize import normalize_optional

router = APIRouter()


class StatusUpdatePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    appointment_id: int = Field(alias="appointmentId", gt=0)
    status: str
    decline_reason: str | None = Field(default=None, alias="declineReason")
    total_amount: Decimal | None = Field(default=None, alias="totalAmount")


class VetProfileUpdatePayload(BaseModel):
    full_name: str | None = None
    specialization: str | None = None
    license_number: str | None = None
    years_experience: int | None = Field(default=None, ge=0)
    consultation_fee: Decimal | None = Field(default=None, ge=0)
    bio: str | None = None
    is_available: bool | None = None


class ClinicUpdatePayload(BaseModel):
    name: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    latitude: Decimal | None = None
    longitude: Decimal | None = None
    operating_hours: dict | None = None


def vet_to_dict(vet) -> dict:
    return {
        "id": vet.id,
        "user_id": str(vet.user_id),
        "clinic_id": vet.clinic_id,
        "full_name": vet.full_name,
        "specialization": vet.specialization,
        "license_number": vet.license_number,
        "years_experience": vet.years_experience,
        "consultation_fee": vet.consultation_fee,
        "bio": vet.bio,
        "is_available": vet.is_available,
    }


def clinic_to_dict(clinic: Clinic) -> dict:
    return {
        "id": clinic.id,
        "name": clinic.name,
        "address": clinic.address,
        "phone": clinic.phone,
        "email": clinic.email,
        "latitude": clinic.latitude,
        "longitude": clinic.longitude,
        "operating_hours": clinic.operating_hours,
        "is_active": clinic.is_active,
    }


# Endpoint: schedule for the calling vet, including unclaimed requests at their clinic.
@router.get("/appointments", summary="List my appointments")
def list_vet_appointments(
    status: str | None = None,
    day: date | None = Query(default=None),
    user: User = Depends(require_role("VET")),
    db: Session = Depends(get_db),
):
    service = AppointmentService(db)
    return service.list_for_vet(service.vet_profile(user), status=status, day=day)


# Endpoint: privileged status transition (confirm, decline, start, complete, no-show, cancel).
@router.post("/appointments/update-status", summary="Change an appointment's status")
def update_appointment_status(
    payload: StatusUpdatePayload,
    user: User = Depends(require_role("VET")),
    db: Session = Depends(get_db),
):
    appointment = AppointmentService(db).transition(
        payload.appointment_id,
        user,
        payload.status,
        reason=payload.decline_reason,
        total_amount=payload.total_amount,
    )
    return {
        "success": True,
        "message": f"Appointment {appointment.status} successfully",
        "appointment": appointment_to_dict(appointment),
    }


@router.get("/stats", summary="Dashboard counters for the calling vet")
def vet_stats(
    user: User = Depends(require_role("VET")),
    db: Session = Depends(get_db),
):
    vet = AppointmentService(db).vet_profile(user)
    return StatsService(db).vet_stats(vet)


@router.get("/reviews", summary="Reviews left for the calling vet")
def vet_reviews(
    user: User = Depends(require_role("VET")),
    db: Session = Depends(get_db),
):
    vet = AppointmentService(db).vet_profile(user)
    rows = db.execute(
        select(
            Review.id,
            Review.appointment_id,
            Review.rating,
            Review.comment,
            Review.created_at,
            Patient.name.label("pet_name"),
            PetOwnerProfile.full_name.label("owner_name"),
        )
        .select_from(Review)
        .outerjoin(Patient, Patient.id == Review.patient_id)
        .outerjoin(PetOwnerProfile, PetOwnerProfile.id == Review.pet_owner_id)
        .where(Review.veterinarian_id == vet.id)
        .order_by(Review.created_at.desc())
    ).mappings().all()
    return [dict(r) for r in rows]


@router.get("/profile", summary="Calling vet's profile and clinic")
def get_vet_profile(
    user: User = Depends(require_role("VET")),
    db: Session = Depends(get_db),
):
    vet = AppointmentService(db).vet_profile(user)
    clinic = db.get(Clinic, vet.clinic_id) if vet.clinic_id else None
    return {**vet_to_dict(vet), "clinic": clinic_to_dict(clinic) if clinic else None}


@router.put("/profile", summary="Update the calling vet's profile")
def update_vet_profile(
    payload: VetProfileUpdatePayload,
    user: User = Depends(require_role("VET")),
    db: Session = Depends(get_db),
):
    vet = AppointmentService(db).vet_profile(user)

    updates = payload.model_dump(exclude_unset=True)
    for field in ("full_name", "specialization", "license_number", "bio"):
        if field in updates:
            updates[field] = normalize_optional(updates[field])
    if "full_name" in updates and not updates["full_name"]:
        del updates["full_name"]

    for field, value in updates.items():
        setattr(vet, field, value)

    db.commit()
    db.refresh(vet)
    return vet_to_dict(vet)


@router.put("/clinic", summary="Update the calling vet's clinic")
def update_vet_clinic(
    payload: ClinicUpdatePayload,
    user: User = Depends(require_role("VET")),
    db: Session = Depends(get_db),
):
    vet = AppointmentService(db).vet_profile(user)
    clinic = db.get(Clinic, vet.clinic_id) if vet.clinic_id else None
    if not clinic:
        raise NotFoundError("No clinic is linked to this veterinarian")

    updates = payload.model_dump(exclude_unset=True)
    if "name" in updates and not normalize_optional(updates["name"]):
        del updates["name"]
    for field, value in updates.items():
        setattr(clinic, field, normalize_optional(value) if isinstance(value, str) else value)

    db.commit()
    db.refresh(clinic)
    return clinic_to_dict(clinic)

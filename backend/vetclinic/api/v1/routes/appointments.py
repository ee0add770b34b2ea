"""Module: appointments (pet owner side)."""

from datetime import date, time
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from vetclinic.api.v1.routes.deps import get_current_user, get_db, require_role
from vetclinic.core.appointment_rules import AppointmentStatus
from vetclinic.db.models.user import User
from vetclinic.services.appointments import AppointmentService, appointment_to_dict


class AppointmentCreatePayload(BaseModel):
    patient_id: int = Field(gt=0)
    veterinarian_id: int = Field(gt=0)
    clinic_id: int = Field(gt=0)
    service_id: int | None = Field(default=None, gt=0)
    appointment_date: date
    appointment_time: time
    reason_for_visit: str | None = None
    symptoms: str | None = None
    estimated_duration: int | None = 30
    total_amount: Decimal | None = None


class AppointmentCancelPayload(BaseModel):
    reason: str | None = None

router = APIRouter()


# Endpoint: caller's appointments with pet, vet, clinic and service names.
@router.get("", summary="List my appointments")
def list_appointments(
    status: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user: User = Depends(require_role("OWNER")),
    db: Session = Depends(get_db),
):
    service = AppointmentService(db)
    owner = service.owner_profile(user)
    return service.list_for_owner(owner, status=status, page=page, limit=limit)


# Endpoint: advisory daily booking count; booking re-checks it authoritatively.
@router.get("/capacity", summary="Active appointments for a day against the daily limit")
def appointment_capacity(
    day: date | None = None,
    user: User = Depends(require_role("OWNER")),
    db: Session = Depends(get_db),
):
    service = AppointmentService(db)
    owner = service.owner_profile(user)
    target = day or date.today()
    return {"date": target, **service.daily_capacity(owner.id, target).as_dict()}


@router.post("", summary="Book an appointment")
def book_appointment(
    payload: AppointmentCreatePayload,
    user: User = Depends(require_role("OWNER")),
    db: Session = Depends(get_db),
):
    appointment = AppointmentService(db).book(user, **payload.model_dump())
    return {
        "success": True,
        "message": "Appointment created successfully",
        "data": appointment_to_dict(appointment),
    }


@router.get("/{appointment_id}", summary="Appointment details")
def get_appointment(
    appointment_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return AppointmentService(db).get_for_user(appointment_id, user)


@router.post("/{appointment_id}/cancel", summary="Cancel one of my appointments")
def cancel_appointment(
    appointment_id: int,
    payload: AppointmentCancelPayload | None = None,
    user: User = Depends(require_role("OWNER")),
    db: Session = Depends(get_db),
):
    appointment = AppointmentService(db).transition(
        appointment_id,
        user,
        AppointmentStatus.CANCELLED.value,
        reason=payload.reason if payload else None,
    )
    return {
        "success": True,
        "message": "Appointment cancelled successfully",
        "appointment": appointment_to_dict(appointment),
    }

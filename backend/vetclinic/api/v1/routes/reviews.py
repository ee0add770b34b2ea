"""Module: reviews."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from vetclinic.api.v1.routes.deps import get_db, require_role
from vetclinic.core.appointment_rules import AppointmentStatus
from vetclinic.core.errors import InvalidTransitionError, NotFoundError, PermissionDeniedError, ValidationError
from vetclinic.db.models.appointment import Appointment
from vetclinic.db.models.review import Review
from vetclinic.db.models.user import User
from vetclinic.services.appointments import AppointmentService
from vetclinic.utils.sanitize import sanitize_text

logger = logging.getLogger(__name__)

router = APIRouter()


class ReviewCreatePayload(BaseModel):
    appointment_id: int = Field(gt=0)
    rating: int = Field(ge=1, le=5)
    comment: str | None = None


@router.post("", summary="Review a completed appointment")
def create_review(
    payload: ReviewCreatePayload,
    user: User = Depends(require_role("OWNER")),
    db: Session = Depends(get_db),
):
    owner = AppointmentService(db).owner_profile(user)

    appointment = db.execute(
        select(Appointment).where(Appointment.id == payload.appointment_id).with_for_update()
    ).scalar_one_or_none()
    if not appointment:
        raise NotFoundError("Appointment not found")
    if appointment.pet_owner_id != owner.id:
        raise PermissionDeniedError("You can only review your own appointments")
    if appointment.status != AppointmentStatus.COMPLETED.value:
        raise InvalidTransitionError(
            appointment.status, message="Only completed appointments can be reviewed"
        )
    if appointment.veterinarian_id is None:
        raise ValidationError("Appointment has no veterinarian to review")
    if appointment.has_review:
        raise HTTPException(status_code=409, detail="This appointment has already been reviewed")

    review = Review(
        veterinarian_id=appointment.veterinarian_id,
        pet_owner_id=owner.id,
        patient_id=appointment.patient_id,
        appointment_id=appointment.id,
        service_id=appointment.service_id,
        rating=payload.rating,
        comment=sanitize_text(payload.comment),
    )
    db.add(review)
    appointment.has_review = True
    db.commit()
    db.refresh(review)

    logger.info("Owner %s reviewed appointment %s (%s stars)", owner.id, appointment.id, review.rating)
    return {
        "id": review.id,
        "appointment_id": review.appointment_id,
        "veterinarian_id": review.veterinarian_id,
        "rating": review.rating,
        "comment": review.comment,
        "created_at": review.created_at,
    }

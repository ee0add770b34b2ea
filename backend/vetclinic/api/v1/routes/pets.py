"""Module: pets."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from vetclinic.api.v1.routes.deps import get_current_user, get_db, require_role
from vetclinic.core.errors import NotFoundError, PermissionDeniedError
from vetclinic.db.models.patient import Patient
from vetclinic.db.models.pet_owner_profile import PetOwnerProfile
from vetclinic.db.models.user import User
from vetclinic.services.appointments import AppointmentService
from vetclinic.utils.sanitize import normalize_optional

logger = logging.getLogger(__name__)

router = APIRouter()

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png"}
MAX_IMAGE_BYTES = 5 * 1024 * 1024


# -------------------------
# Helpers
# -------------------------
def owned_pet(db: Session, pet_id: int, profile: PetOwnerProfile) -> Patient:
    pet = db.get(Patient, pet_id)
    if not pet or not pet.is_active:
        raise NotFoundError("Pet not found")
    if pet.owner_id != profile.id:
        raise PermissionDeniedError("You can only manage your own pets")
    return pet


async def _read_image_file(photo: UploadFile | None) -> tuple[bytes | None, str | None]:
    if not photo:
        return None, None

    content_type = (photo.content_type or "").lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(status_code=400, detail="Photo must be JPEG or PNG")

    data = await photo.read()
    if len(data) > MAX_IMAGE_BYTES:
        raise HTTPException(status_code=400, detail="Photo must be 5MB or smaller")

    return data, content_type


def pet_to_dict(pet: Patient) -> dict:
    return {
        "id": pet.id,
        "owner_id": pet.owner_id,
        "name": pet.name,
        "species": pet.species,
        "breed": pet.breed,
        "gender": pet.gender,
        "date_of_birth": pet.date_of_birth,
        "weight": pet.weight,
        "medical_conditions": pet.medical_conditions,
        "has_photo": bool(pet.photo_mime_type),
        "created_at": pet.created_at,
    }


# -------------------------
# Endpoints
# -------------------------

@router.get("", summary="List the caller's active pets")
def list_pets(
    user: User = Depends(require_role("OWNER")),
    db: Session = Depends(get_db),
):
    profile = AppointmentService(db).owner_profile(user)
    pets = db.execute(
        select(Patient)
        .where(Patient.owner_id == profile.id, Patient.is_active.is_(True))
        .order_by(Patient.created_at)
    ).scalars().all()
    return [pet_to_dict(p) for p in pets]


@router.post("", summary="Add a pet")
async def create_pet(
    name: str = Form(...),
    species: str = Form(...),
    breed: str | None = Form(default=None),
    gender: str | None = Form(default=None),
    date_of_birth: date | None = Form(default=None),
    weight: Decimal | None = Form(default=None),
    medical_conditions: str | None = Form(default=None),
    photo: UploadFile | None = File(default=None),
    user: User = Depends(require_role("OWNER")),
    db: Session = Depends(get_db),
):
    profile = AppointmentService(db).owner_profile(user)
    if not name.strip() or not species.strip():
        raise HTTPException(status_code=400, detail="Pet name and species are required")

    photo_data, photo_mime_type = await _read_image_file(photo)

    pet = Patient(
        owner_id=profile.id,
        name=name.strip(),
        species=species.strip(),
        breed=normalize_optional(breed),
        gender=normalize_optional(gender),
        date_of_birth=date_of_birth,
        weight=weight,
        medical_conditions=normalize_optional(medical_conditions),
        photo_data=photo_data,
        photo_mime_type=photo_mime_type,
        is_active=True,
    )
    db.add(pet)
    db.commit()
    db.refresh(pet)

    logger.info("Owner %s added pet %s", profile.id, pet.id)
    return pet_to_dict(pet)


@router.put("/{pet_id}", summary="Update pet details")
async def update_pet(
    pet_id: int,
    name: str = Form(...),
    species: str = Form(...),
    breed: str | None = Form(default=None),
    gender: str | None = Form(default=None),
    date_of_birth: date | None = Form(default=None),
    weight: Decimal | None = Form(default=None),
    medical_conditions: str | None = Form(default=None),
    photo: UploadFile | None = File(default=None),
    user: User = Depends(require_role("OWNER")),
    db: Session = Depends(get_db),
):
    pet = owned_pet(db, pet_id, AppointmentService(db).owner_profile(user))

    pet.name = name.strip()
    pet.species = species.strip()
    pet.breed = normalize_optional(breed)
    pet.gender = normalize_optional(gender)
    pet.date_of_birth = date_of_birth
    pet.weight = weight
    pet.medical_conditions = normalize_optional(medical_conditions)

    if photo:
        photo_data, photo_mime_type = await _read_image_file(photo)
        pet.photo_data = photo_data
        pet.photo_mime_type = photo_mime_type

    db.commit()
    db.refresh(pet)
    return pet_to_dict(pet)


@router.delete("/{pet_id}", summary="Remove a pet (soft delete)")
def delete_pet(
    pet_id: int,
    user: User = Depends(require_role("OWNER")),
    db: Session = Depends(get_db),
):
    pet = owned_pet(db, pet_id, AppointmentService(db).owner_profile(user))
    pet.is_active = False
    db.commit()

    logger.info("Pet %s deactivated by owner %s", pet.id, pet.owner_id)
    return {"id": pet.id, "is_active": False}


@router.get("/{pet_id}/photo", summary="Get pet photo")
def get_pet_photo(
    pet_id: int,
    user: User = Depends(require_role("OWNER")),
    db: Session = Depends(get_db),
):
    pet = owned_pet(db, pet_id, AppointmentService(db).owner_profile(user))
    if not pet.photo_data or not pet.photo_mime_type:
        raise HTTPException(status_code=404, detail="Pet photo not found")

    return Response(content=pet.photo_data, media_type=pet.photo_mime_type)


@router.get("/{pet_id}/medical-records", summary="Appointment and review history for one pet")
def get_medical_records(
    pet_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return AppointmentService(db).medical_record(pet_id, user)

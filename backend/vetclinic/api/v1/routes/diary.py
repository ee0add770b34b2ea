"""Module: diary."""

from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from vetclinic.api.v1.routes.deps import get_db, require_role
from vetclinic.api.v1.routes.pets import owned_pet
from vetclinic.core.errors import NotFoundError, PermissionDeniedError
from vetclinic.db.models.pet_diary_entry import PetDiaryEntry
from vetclinic.db.models.user import User
from vetclinic.services.appointments import AppointmentService
from vetclinic.utils.sanitize import normalize_optional

router = APIRouter()

TEXT_FIELDS = ("title", "content", "mood", "activity_level", "appetite", "behavior_notes", "health_observations", "symptoms")


class DiaryEntryPayload(BaseModel):
    patient_id: int = Field(gt=0)
    entry_date: date
    title: str | None = None
    content: str | None = None
    mood: str | None = None
    activity_level: str | None = None
    appetite: str | None = None
    behavior_notes: str | None = None
    health_observations: str | None = None
    symptoms: str | None = None
    is_vet_visit_related: bool = False
    tags: list[str] = Field(default_factory=list)
    photos: list[str] = Field(default_factory=list)


def _entry_values(payload: DiaryEntryPayload) -> dict:
    values = {field: normalize_optional(getattr(payload, field)) for field in TEXT_FIELDS}
    tags = [t.strip() for t in payload.tags if t and t.strip()]
    values.update(
        entry_date=payload.entry_date,
        is_vet_visit_related=payload.is_vet_visit_related,
        tags=tags or None,
        photos=payload.photos or None,
    )
    return values


def entry_to_dict(entry: PetDiaryEntry) -> dict:
    return {
        "id": entry.id,
        "patient_id": entry.patient_id,
        "pet_owner_id": entry.pet_owner_id,
        "entry_date": entry.entry_date,
        **{field: getattr(entry, field) for field in TEXT_FIELDS},
        "is_vet_visit_related": entry.is_vet_visit_related,
        "tags": entry.tags or [],
        "photos": entry.photos or [],
        "created_at": entry.created_at,
        "updated_at": entry.updated_at,
    }


def _owned_entry(db: Session, entry_id: int, owner_id: int) -> PetDiaryEntry:
    entry = db.get(PetDiaryEntry, entry_id)
    if not entry:
        raise NotFoundError("Diary entry not found")
    if entry.pet_owner_id != owner_id:
        raise PermissionDeniedError("You can only manage your own diary entries")
    return entry


@router.get("", summary="Diary entries for one of my pets")
def list_entries(
    patient_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
    user: User = Depends(require_role("OWNER")),
    db: Session = Depends(get_db),
):
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must be on or before end_date")

    pet = owned_pet(db, patient_id, AppointmentService(db).owner_profile(user))
    stmt = (
        select(PetDiaryEntry)
        .where(PetDiaryEntry.patient_id == pet.id)
        .order_by(desc(PetDiaryEntry.entry_date), desc(PetDiaryEntry.created_at), desc(PetDiaryEntry.id))
    )
    if start_date:
        stmt = stmt.where(PetDiaryEntry.entry_date >= start_date)
    if end_date:
        stmt = stmt.where(PetDiaryEntry.entry_date <= end_date)

    return [entry_to_dict(e) for e in db.execute(stmt).scalars().all()]


@router.post("", summary="Write a diary entry")
def create_entry(
    payload: DiaryEntryPayload,
    user: User = Depends(require_role("OWNER")),
    db: Session = Depends(get_db),
):
    profile = AppointmentService(db).owner_profile(user)
    pet = owned_pet(db, payload.patient_id, profile)

    entry = PetDiaryEntry(patient_id=pet.id, pet_owner_id=profile.id, **_entry_values(payload))
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry_to_dict(entry)


@router.put("/{entry_id}", summary="Edit a diary entry")
def update_entry(
    entry_id: int,
    payload: DiaryEntryPayload,
    user: User = Depends(require_role("OWNER")),
    db: Session = Depends(get_db),
):
    profile = AppointmentService(db).owner_profile(user)
    entry = _owned_entry(db, entry_id, profile.id)
    pet = owned_pet(db, payload.patient_id, profile)

    entry.patient_id = pet.id
    for field, value in _entry_values(payload).items():
        setattr(entry, field, value)
    entry.updated_at = datetime.utcnow()

    db.commit()
    db.refresh(entry)
    return entry_to_dict(entry)


@router.delete("/{entry_id}", summary="Delete a diary entry")
def delete_entry(
    entry_id: int,
    user: User = Depends(require_role("OWNER")),
    db: Session = Depends(get_db),
):
    entry = _owned_entry(db, entry_id, AppointmentService(db).owner_profile(user).id)
    db.delete(entry)
    db.commit()
    return {"id": entry_id, "deleted": True}

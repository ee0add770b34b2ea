"""Module: clinics."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from vetclinic.api.v1.routes.deps import get_db
from vetclinic.api.v1.routes.vet import clinic_to_dict
from vetclinic.core.errors import NotFoundError
from vetclinic.db.models.clinic import Clinic
from vetclinic.db.models.review import Review
from vetclinic.db.models.service import Service
from vetclinic.db.models.veterinarian import Veterinarian

router = APIRouter()


def _active_clinic(db: Session, clinic_id: int) -> Clinic:
    clinic = db.get(Clinic, clinic_id)
    if not clinic or not clinic.is_active:
        raise NotFoundError("Clinic not found")
    return clinic


# Endpoint: public clinic directory used by the booking flow.
@router.get("", summary="List active clinics")
def list_clinics(
    q: str | None = Query(default=None, description="Case-insensitive name filter"),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    stmt = select(Clinic).where(Clinic.is_active.is_(True)).order_by(Clinic.name)
    if q and q.strip():
        stmt = stmt.where(func.lower(Clinic.name).like(f"%{q.strip().lower()}%"))
    clinics = db.execute(stmt.offset(offset).limit(limit)).scalars().all()
    return [clinic_to_dict(c) for c in clinics]


@router.get("/{clinic_id}/services", summary="Active services of a clinic")
def list_clinic_services(clinic_id: int, db: Session = Depends(get_db)):
    clinic = _active_clinic(db, clinic_id)
    services = db.execute(
        select(Service)
        .where(Service.clinic_id == clinic.id, Service.is_active.is_(True))
        .order_by(Service.name)
    ).scalars().all()
    return [
        {
            "id": s.id,
            "name": s.name,
            "description": s.description,
            "price": s.price,
            "duration_minutes": s.duration_minutes,
        }
        for s in services
    ]


@router.get("/{clinic_id}/veterinarians", summary="Bookable veterinarians of a clinic")
def list_clinic_veterinarians(clinic_id: int, db: Session = Depends(get_db)):
    clinic = _active_clinic(db, clinic_id)

    rating_sq = (
        select(
            Review.veterinarian_id.label("veterinarian_id"),
            func.avg(Review.rating).label("average_rating"),
            func.count(Review.id).label("review_count"),
        )
        .group_by(Review.veterinarian_id)
        .subquery()
    )
    rows = db.execute(
        select(
            Veterinarian.id,
            Veterinarian.full_name,
            Veterinarian.specialization,
            Veterinarian.years_experience,
            Veterinarian.consultation_fee,
            rating_sq.c.average_rating,
            rating_sq.c.review_count,
        )
        .outerjoin(rating_sq, rating_sq.c.veterinarian_id == Veterinarian.id)
        .where(Veterinarian.clinic_id == clinic.id, Veterinarian.is_available.is_(True))
        .order_by(Veterinarian.full_name)
    ).mappings().all()

    out = []
    for r in rows:
        d = dict(r)
        d["average_rating"] = round(float(d["average_rating"]), 1) if d["average_rating"] is not None else 0.0
        d["review_count"] = int(d["review_count"] or 0)
        out.append(d)
    return out

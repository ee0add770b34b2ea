"""Module: appointments.

Privileged appointment operations: booking, listing, and status transitions.
Every write re-checks ownership and the rules in the same transaction that
persists it.
"""

import logging
from datetime import date, datetime, time
from decimal import Decimal

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vetclinic.core.appointment_rules import (
    Action,
    Actor,
    AppointmentStatus,
    DailyCapacity,
    allowed_actions,
    evaluate_daily_capacity,
    next_state,
    parse_status,
    resolve_action,
)
from vetclinic.core.errors import (
    BackendError,
    DailyLimitReachedError,
    NotFoundError,
    PermissionDeniedError,
    SlotUnavailableError,
    ValidationError,
)
from vetclinic.db.models.appointment import Appointment
from vetclinic.db.models.audit_log import AuditLog
from vetclinic.db.models.clinic import Clinic
from vetclinic.db.models.patient import Patient
from vetclinic.db.models.pet_owner_profile import PetOwnerProfile
from vetclinic.db.models.review import Review
from vetclinic.db.models.service import Service
from vetclinic.db.models.user import User
from vetclinic.db.models.veterinarian import Veterinarian
from vetclinic.services.notifier import Notifier
from vetclinic.utils.sanitize import sanitize_text

logger = logging.getLogger(__name__)

MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 180
# Statuses that keep a veterinarian's time slot taken.
SLOT_HOLDING_STATUSES = (AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value)

ROLE_ACTORS = {
    "OWNER": Actor.PET_OWNER,
    "VET": Actor.VETERINARIAN,
}


def actor_for(user: User) -> Actor:
    actor = ROLE_ACTORS.get((user.role or "").upper())
    if actor is None:
        raise PermissionDeniedError("Only pet owners and veterinarians can manage appointments")
    return actor


def _age(born: date | None, today: date) -> dict | None:
    if born is None or born > today:
        return None
    months = (today.year - born.year) * 12 + (today.month - born.month)
    if today.day < born.day:
        months -= 1
    return {"years": months // 12, "months": months % 12}


def appointment_to_dict(appointment: Appointment) -> dict:
    return {
        "id": appointment.id,
        "pet_owner_id": appointment.pet_owner_id,
        "patient_id": appointment.patient_id,
        "veterinarian_id": appointment.veterinarian_id,
        "clinic_id": appointment.clinic_id,
        "service_id": appointment.service_id,
        "appointment_date": appointment.appointment_date,
        "appointment_time": appointment.appointment_time,
        "status": appointment.status,
        "reason_for_visit": appointment.reason_for_visit,
        "symptoms": appointment.symptoms,
        "notes": appointment.notes,
        "estimated_duration": appointment.estimated_duration,
        "total_amount": appointment.total_amount,
        "payment_status": appointment.payment_status,
        "is_approved": appointment.is_approved,
        "approved_at": appointment.approved_at,
        "has_review": appointment.has_review,
        "created_at": appointment.created_at,
        "updated_at": appointment.updated_at,
    }


class AppointmentService:
    def __init__(self, db: Session, notifier: Notifier | None = None):
        self.db = db
        self.notifier = notifier or Notifier(db)

    # -------------------------
    # Profiles
    # -------------------------
    def owner_profile(self, user: User) -> PetOwnerProfile:
        profile = self.db.execute(
            select(PetOwnerProfile).where(PetOwnerProfile.user_id == user.user_id)
        ).scalar_one_or_none()
        if not profile:
            raise NotFoundError("Pet owner profile not found")
        return profile

    def vet_profile(self, user: User) -> Veterinarian:
        vet = self.db.execute(
            select(Veterinarian).where(Veterinarian.user_id == user.user_id)
        ).scalar_one_or_none()
        if not vet:
            raise NotFoundError("Veterinarian profile not found")
        return vet

    def _profile_for(self, user: User, actor: Actor):
        if actor == Actor.PET_OWNER:
            return self.owner_profile(user)
        return self.vet_profile(user)

    @staticmethod
    def _can_access(appointment: Appointment, actor: Actor, profile) -> bool:
        if actor == Actor.PET_OWNER:
            return appointment.pet_owner_id == profile.id
        if appointment.veterinarian_id is not None:
            return appointment.veterinarian_id == profile.id
        # Unassigned requests can be picked up by any vet of the booked clinic.
        return appointment.clinic_id is not None and appointment.clinic_id == profile.clinic_id

    # -------------------------
    # Reads
    # -------------------------
    def _listing_stmt(self):
        return (
            select(
                Appointment,
                Patient.name.label("pet_name"),
                Patient.species.label("pet_species"),
                Veterinarian.full_name.label("veterinarian_name"),
                Clinic.name.label("clinic_name"),
                Service.name.label("service_name"),
                Service.price.label("service_price"),
                PetOwnerProfile.full_name.label("owner_name"),
            )
            .select_from(Appointment)
            .join(Patient, Patient.id == Appointment.patient_id)
            .join(PetOwnerProfile, PetOwnerProfile.id == Appointment.pet_owner_id)
            .outerjoin(Veterinarian, Veterinarian.id == Appointment.veterinarian_id)
            .outerjoin(Clinic, Clinic.id == Appointment.clinic_id)
            .outerjoin(Service, Service.id == Appointment.service_id)
            .order_by(Appointment.appointment_date, Appointment.appointment_time)
        )

    @staticmethod
    def _listing_row(row) -> dict:
        d = appointment_to_dict(row.Appointment)
        d.update(
            pet_name=row.pet_name,
            pet_species=row.pet_species,
            veterinarian_name=row.veterinarian_name,
            clinic_name=row.clinic_name,
            service_name=row.service_name,
            service_price=row.service_price,
            owner_name=row.owner_name,
        )
        return d

    def list_for_owner(
        self,
        owner: PetOwnerProfile,
        status: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> list[dict]:
        stmt = self._listing_stmt().where(Appointment.pet_owner_id == owner.id)
        if status:
            stmt = stmt.where(Appointment.status == parse_status(status).value)
        stmt = stmt.offset((max(page, 1) - 1) * limit).limit(limit)
        return [self._listing_row(r) for r in self.db.execute(stmt).all()]

    def list_for_vet(
        self,
        vet: Veterinarian,
        status: str | None = None,
        day: date | None = None,
    ) -> list[dict]:
        stmt = self._listing_stmt().where(
            or_(
                Appointment.veterinarian_id == vet.id,
                and_(Appointment.veterinarian_id.is_(None), Appointment.clinic_id == vet.clinic_id),
            )
        )
        if status:
            stmt = stmt.where(Appointment.status == parse_status(status).value)
        if day:
            stmt = stmt.where(Appointment.appointment_date == day)
        return [self._listing_row(r) for r in self.db.execute(stmt).all()]

    def get_for_user(self, appointment_id: int, user: User) -> dict:
        actor = actor_for(user)
        profile = self._profile_for(user, actor)

        row = self.db.execute(
            self._listing_stmt().where(Appointment.id == appointment_id)
        ).first()
        if not row:
            raise NotFoundError("Appointment not found")
        if not self._can_access(row.Appointment, actor, profile):
            raise PermissionDeniedError("You do not have access to this appointment")
        d = self._listing_row(row)
        d["allowed_actions"] = [a.value for a in allowed_actions(row.Appointment.status, actor)]
        return d

    def medical_record(self, patient_id: int, user: User, today: date | None = None) -> dict:
        """
        One patient's appointment and review history.

        Readable by the owning pet owner, by any vet who has an appointment
        with the patient, and by admins.
        """
        today = today or date.today()
        pet = self.db.get(Patient, patient_id)
        if not pet:
            raise NotFoundError("Pet not found")

        role = (user.role or "").upper()
        if role == "OWNER":
            allowed = pet.owner_id == self.owner_profile(user).id
        elif role == "VET":
            vet = self.vet_profile(user)
            allowed = self.db.execute(
                select(Appointment.id).where(
                    Appointment.patient_id == pet.id,
                    Appointment.veterinarian_id == vet.id,
                )
            ).first() is not None
        else:
            allowed = role == "ADMIN"
        if not allowed:
            raise PermissionDeniedError("You do not have access to this pet's records")

        rows = self.db.execute(
            self._listing_stmt()
            .where(Appointment.patient_id == pet.id)
            .order_by(None)
            .order_by(Appointment.appointment_date.desc(), Appointment.appointment_time.desc())
        ).all()
        appointments = [self._listing_row(r) for r in rows]

        reviews = self.db.execute(
            select(
                Review.id,
                Review.appointment_id,
                Review.rating,
                Review.comment,
                Review.created_at,
                Veterinarian.full_name.label("veterinarian_name"),
            )
            .select_from(Review)
            .outerjoin(Veterinarian, Veterinarian.id == Review.veterinarian_id)
            .where(Review.patient_id == pet.id)
            .order_by(Review.created_at.desc(), Review.id.desc())
        ).mappings().all()

        owner = self.db.get(PetOwnerProfile, pet.owner_id)
        statuses = [a["status"] for a in appointments]
        ratings = [r["rating"] for r in reviews]
        completed_days = [
            a["appointment_date"] for a in appointments
            if a["status"] == AppointmentStatus.COMPLETED.value
        ]
        upcoming_days = [
            a["appointment_date"] for a in appointments
            if a["status"] in SLOT_HOLDING_STATUSES and a["appointment_date"] >= today
        ]

        return {
            "patient": {
                "id": pet.id,
                "name": pet.name,
                "species": pet.species,
                "breed": pet.breed,
                "gender": pet.gender,
                "date_of_birth": pet.date_of_birth,
                "age": _age(pet.date_of_birth, today),
                "weight": pet.weight,
                "medical_conditions": pet.medical_conditions,
                "is_active": pet.is_active,
            },
            "owner": {
                "id": owner.id,
                "full_name": owner.full_name,
                "phone": owner.phone,
                "emergency_contact_name": owner.emergency_contact_name,
                "emergency_contact_phone": owner.emergency_contact_phone,
            } if owner else None,
            "appointments": appointments,
            "reviews": [dict(r) for r in reviews],
            "statistics": {
                "total_appointments": len(statuses),
                "completed_appointments": statuses.count(AppointmentStatus.COMPLETED.value),
                "pending_appointments": statuses.count(AppointmentStatus.PENDING.value),
                "cancelled_appointments": statuses.count(AppointmentStatus.CANCELLED.value),
                "average_rating": round(sum(ratings) / len(ratings), 1) if ratings else None,
                "total_reviews": len(ratings),
                "last_visit": max(completed_days, default=None),
                "next_appointment": min(upcoming_days, default=None),
            },
        }

    def daily_capacity(self, owner_id: int, day: date) -> DailyCapacity:
        statuses = self.db.execute(
            select(Appointment.status).where(
                Appointment.pet_owner_id == owner_id,
                Appointment.appointment_date == day,
            )
        ).scalars().all()
        return evaluate_daily_capacity(statuses)

    # -------------------------
    # Booking
    # -------------------------
    def book(
        self,
        user: User,
        *,
        patient_id: int,
        veterinarian_id: int,
        clinic_id: int,
        appointment_date: date,
        appointment_time: time,
        service_id: int | None = None,
        reason_for_visit: str | None = None,
        symptoms: str | None = None,
        estimated_duration: int | None = 30,
        total_amount: Decimal | None = None,
    ) -> Appointment:
        if actor_for(user) != Actor.PET_OWNER:
            raise PermissionDeniedError("Only pet owners can book appointments")

        # Serialise bookings per owner so the daily count cannot change under us.
        owner = self.db.execute(
            select(PetOwnerProfile)
            .where(PetOwnerProfile.user_id == user.user_id)
            .with_for_update()
        ).scalar_one_or_none()
        if not owner:
            raise NotFoundError("Pet owner profile not found")

        pet = self.db.get(Patient, patient_id)
        if not pet or pet.owner_id != owner.id or not pet.is_active:
            raise PermissionDeniedError("Unauthorized to book appointment for this pet")

        if appointment_date < date.today():
            raise ValidationError("Appointments cannot be booked in the past")

        vet = self.db.get(Veterinarian, veterinarian_id)
        if not vet or not vet.is_available:
            raise ValidationError("Selected veterinarian is not available")
        if vet.clinic_id != clinic_id:
            raise ValidationError("Selected veterinarian does not work at this clinic")

        service = None
        if service_id is not None:
            service = self.db.get(Service, service_id)
            if not service or service.clinic_id != clinic_id or not service.is_active:
                raise ValidationError("Selected service is not offered by this clinic")

        conflict = self.db.execute(
            select(Appointment.id).where(
                Appointment.veterinarian_id == veterinarian_id,
                Appointment.appointment_date == appointment_date,
                Appointment.appointment_time == appointment_time,
                Appointment.status.in_(SLOT_HOLDING_STATUSES),
            )
        ).first()
        if conflict:
            raise SlotUnavailableError("Selected time slot is not available")

        capacity = self.daily_capacity(owner.id, appointment_date)
        if capacity.limit_reached:
            logger.warning(
                "Owner %s reached daily limit (%s/%s) for %s",
                owner.id, capacity.count, capacity.limit, appointment_date,
            )
            raise DailyLimitReachedError(
                f"You have reached the daily appointment limit of {capacity.limit} appointments. "
                "Please try booking for another date."
            )

        duration = max(MIN_DURATION_MINUTES, min(MAX_DURATION_MINUTES, int(estimated_duration or 30)))
        if total_amount is None and service is not None:
            total_amount = service.price
        if total_amount is not None:
            total_amount = max(Decimal("0"), Decimal(str(total_amount)))

        appointment = Appointment(
            pet_owner_id=owner.id,
            patient_id=pet.id,
            veterinarian_id=vet.id,
            clinic_id=clinic_id,
            service_id=service.id if service else None,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            status=AppointmentStatus.PENDING.value,
            reason_for_visit=sanitize_text(reason_for_visit),
            symptoms=sanitize_text(symptoms),
            estimated_duration=duration,
            total_amount=total_amount,
            payment_status="pending",
            booking_type="web",
        )
        self.db.add(appointment)
        self.db.flush()
        self.db.add(
            AuditLog(
                actor_user_id=user.user_id,
                action="appointment.book",
                target_type="appointment",
                target_id=str(appointment.id),
                meta={"appointment_date": appointment_date.isoformat(), "daily_count": capacity.count + 1},
            )
        )
        self._commit("Failed to create appointment")
        self.db.refresh(appointment)

        logger.info("Appointment %s booked by owner %s for %s", appointment.id, owner.id, appointment_date)
        return appointment

    # -------------------------
    # Status transitions
    # -------------------------
    def transition(
        self,
        appointment_id: int,
        user: User,
        target_status: str,
        reason: str | None = None,
        total_amount: Decimal | None = None,
    ) -> Appointment:
        """
        Move an appointment to ``target_status`` on behalf of ``user``.

        The row is locked, ownership is checked, and the rules module decides
        whether the move is legal. Nothing is written unless every check passes.
        """
        actor = actor_for(user)
        profile = self._profile_for(user, actor)

        appointment = self.db.execute(
            select(Appointment).where(Appointment.id == appointment_id).with_for_update()
        ).scalar_one_or_none()
        if not appointment:
            raise NotFoundError("Appointment not found")

        if not self._can_access(appointment, actor, profile):
            logger.warning(
                "User %s (%s) denied status change on appointment %s",
                user.user_id, actor.value, appointment_id,
            )
            raise PermissionDeniedError("Cannot update this appointment - it is not assigned to you")

        action = resolve_action(appointment.status, target_status, actor)
        previous = appointment.status
        new_status = next_state(previous, action, actor, reason)
        reason_text = sanitize_text(reason)
        if action == Action.DECLINE and not reason_text:
            raise ValidationError("A reason is required to decline an appointment")
        now = datetime.utcnow()

        if action == Action.CONFIRM:
            appointment.is_approved = True
            appointment.approved_by = user.user_id
            appointment.approved_at = now
            if appointment.veterinarian_id is None:
                appointment.veterinarian_id = profile.id
        elif action == Action.DECLINE:
            appointment.notes = f"DECLINED BY VETERINARIAN: {reason_text}"
        elif action == Action.CANCEL and reason_text:
            appointment.notes = f"CANCELLED: {reason_text}"
        elif action == Action.COMPLETE:
            appointment.total_amount = self._settled_amount(appointment, total_amount)

        appointment.status = new_status.value
        appointment.updated_at = now

        self.db.add(
            AuditLog(
                actor_user_id=user.user_id,
                action=f"appointment.{action.value}",
                target_type="appointment",
                target_id=str(appointment.id),
                meta={"from": previous, "to": new_status.value, "actor": actor.value, "reason": reason_text},
            )
        )
        notification = self._notify(appointment, action, actor, reason_text)
        self._commit("Failed to update appointment")
        self.db.refresh(appointment)

        logger.info(
            "Appointment %s moved %s -> %s by %s %s",
            appointment.id, previous, new_status.value, actor.value, user.user_id,
        )
        if notification is not None:
            self.notifier.dispatch(notification)
        return appointment

    def _settled_amount(self, appointment: Appointment, supplied: Decimal | None):
        if supplied is not None:
            if Decimal(str(supplied)) < 0:
                raise ValidationError("total_amount cannot be negative")
            return supplied
        if appointment.total_amount is not None:
            return appointment.total_amount
        if appointment.service_id is not None:
            service = self.db.get(Service, appointment.service_id)
            if service and service.price is not None:
                return service.price
        return Decimal("0")

    def _notify(self, appointment: Appointment, action: Action, actor: Actor, reason: str | None):
        pet = self.db.get(Patient, appointment.patient_id)
        pet_name = pet.name if pet else None

        if actor == Actor.VETERINARIAN:
            owner = self.db.get(PetOwnerProfile, appointment.pet_owner_id)
            recipient = owner.user_id if owner else None
        else:
            vet = self.db.get(Veterinarian, appointment.veterinarian_id) if appointment.veterinarian_id else None
            recipient = vet.user_id if vet else None

        if recipient is None:
            return None
        return self.notifier.appointment_updated(appointment, action, recipient, pet_name, reason)

    def _commit(self, failure_message: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(failure_message)
            raise BackendError(failure_message)

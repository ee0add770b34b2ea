"""Module: stats.

Dashboard counters and analytics. Every call re-reads the appointments in
scope (one owner, one vet, or every clinic for admins) and recomputes from
scratch; nothing is cached or patched incrementally.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from vetclinic.core.appointment_rules import ACTIVE_STATUSES, AppointmentStatus, evaluate_daily_capacity
from vetclinic.db.models.appointment import Appointment
from vetclinic.db.models.clinic import Clinic
from vetclinic.db.models.patient import Patient
from vetclinic.db.models.pet_owner_profile import PetOwnerProfile
from vetclinic.db.models.review import Review
from vetclinic.db.models.service import Service
from vetclinic.db.models.user import User
from vetclinic.db.models.veterinarian import Veterinarian

DEFAULT_SERVICE_NAME = "General Checkup"
MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
UPCOMING_STATUSES = {AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value}
ACTIVE_STATUS_VALUES = {s.value for s in ACTIVE_STATUSES}


def _amount(row) -> Decimal:
    # Settled amount wins; otherwise fall back to the service list price.
    value = row.total_amount if row.total_amount is not None else row.service_price
    return Decimal(str(value)) if value is not None else Decimal("0")


def _average(total: Decimal, count: int) -> Decimal:
    if not count:
        return Decimal("0")
    return (total / count).quantize(Decimal("0.01"))


def _months_back(today: date, count: int) -> list[tuple[int, int]]:
    out = []
    for i in range(count - 1, -1, -1):
        month_index = today.year * 12 + (today.month - 1) - i
        out.append((month_index // 12, month_index % 12 + 1))
    return out


class StatsService:
    def __init__(self, db: Session):
        self.db = db

    def _owner_appointments(self, owner_id: int):
        stmt = (
            select(
                Appointment.id,
                Appointment.patient_id,
                Appointment.status,
                Appointment.appointment_date,
                Appointment.total_amount,
                Service.name.label("service_name"),
                Service.price.label("service_price"),
            )
            .select_from(Appointment)
            .outerjoin(Service, Service.id == Appointment.service_id)
            .where(Appointment.pet_owner_id == owner_id)
        )
        return self.db.execute(stmt).all()

    def owner_stats(self, owner: PetOwnerProfile, today: date | None = None) -> dict:
        today = today or date.today()
        rows = self._owner_appointments(owner.id)

        total_pets = self.db.execute(
            select(func.count(Patient.id)).where(Patient.owner_id == owner.id, Patient.is_active.is_(True))
        ).scalar_one()

        completed = [r for r in rows if r.status == AppointmentStatus.COMPLETED.value]
        upcoming = [
            r for r in rows
            if r.status in UPCOMING_STATUSES and r.appointment_date >= today
        ]
        capacity = evaluate_daily_capacity(r.status for r in rows if r.appointment_date == today)

        return {
            "total_pets": int(total_pets or 0),
            "upcoming_appointments": len(upcoming),
            "completed_appointments": len(completed),
            "total_spent": sum((_amount(r) for r in completed), Decimal("0")),
            "last_visit": max((r.appointment_date for r in completed), default=None),
            "today_appointment_count": capacity.count,
            "daily_limit": capacity.limit,
            "daily_limit_reached": capacity.limit_reached,
        }

    def vet_stats(self, vet: Veterinarian, today: date | None = None) -> dict:
        today = today or date.today()
        rows = self.db.execute(
            select(Appointment.status, Appointment.appointment_date).where(
                Appointment.veterinarian_id == vet.id
            )
        ).all()
        ratings = self.db.execute(
            select(Review.rating).where(Review.veterinarian_id == vet.id)
        ).scalars().all()

        valid = [int(r) for r in ratings if r is not None]
        average = round(sum(valid) / len(valid), 1) if valid else 0.0

        return {
            "total_appointments": len(rows),
            "pending_appointments": sum(1 for r in rows if r.status == AppointmentStatus.PENDING.value),
            "completed_today": sum(
                1 for r in rows
                if r.status == AppointmentStatus.COMPLETED.value and r.appointment_date == today
            ),
            "average_rating": average,
            "total_reviews": len(ratings),
        }

    def owner_analytics(self, owner: PetOwnerProfile, today: date | None = None, months: int = 6) -> dict:
        today = today or date.today()
        rows = self._owner_appointments(owner.id)
        completed = [r for r in rows if r.status == AppointmentStatus.COMPLETED.value]

        monthly_trends = []
        monthly_spending = []
        for year, month in _months_back(today, months):
            in_month = [
                r for r in rows
                if r.appointment_date.year == year and r.appointment_date.month == month
            ]
            done = [r for r in in_month if r.status == AppointmentStatus.COMPLETED.value]
            label = MONTH_NAMES[month - 1]
            monthly_trends.append(
                {
                    "month": label,
                    "year": year,
                    "total": len(in_month),
                    "completed": len(done),
                    "pending": sum(1 for r in in_month if r.status == AppointmentStatus.PENDING.value),
                    "cancelled": sum(1 for r in in_month if r.status == AppointmentStatus.CANCELLED.value),
                }
            )
            monthly_spending.append(
                {
                    "month": label,
                    "year": year,
                    "spending": sum((_amount(r) for r in done), Decimal("0")),
                    "appointments": len(done),
                }
            )

        service_counts: dict[str, int] = defaultdict(int)
        for r in completed:
            service_counts[r.service_name or DEFAULT_SERVICE_NAME] += 1
        service_breakdown = [
            {
                "service": name,
                "count": count,
                "percentage": round(count / len(completed) * 100, 2),
            }
            for name, count in sorted(service_counts.items(), key=lambda kv: (-kv[1], kv[0]))
        ]

        pets = self.db.execute(
            select(Patient.id, Patient.name, Patient.species).where(
                Patient.owner_id == owner.id, Patient.is_active.is_(True)
            )
        ).all()
        pet_health_metrics = []
        for pet in pets:
            pet_rows = [r for r in rows if r.patient_id == pet.id]
            pet_done = [r for r in pet_rows if r.status == AppointmentStatus.COMPLETED.value]
            spent = sum((_amount(r) for r in pet_done), Decimal("0"))
            pet_health_metrics.append(
                {
                    "pet_id": pet.id,
                    "name": pet.name,
                    "species": pet.species,
                    "total_visits": len(pet_rows),
                    "completed_visits": len(pet_done),
                    "total_spent": spent,
                    "avg_spent": _average(spent, len(pet_done)),
                    "last_visit": max((r.appointment_date for r in pet_done), default=None),
                }
            )

        return {
            "monthly_trends": monthly_trends,
            "monthly_spending": monthly_spending,
            "service_breakdown": service_breakdown,
            "pet_health_metrics": pet_health_metrics,
        }

    # -------------------------
    # Admin analytics
    # -------------------------
    def _clinic_appointments(self, start: date | None = None, end: date | None = None):
        stmt = (
            select(
                Appointment.id,
                Appointment.status,
                Appointment.appointment_date,
                Appointment.total_amount,
                Appointment.payment_status,
                Appointment.veterinarian_id,
                Veterinarian.full_name.label("veterinarian_name"),
                Service.price.label("service_price"),
            )
            .select_from(Appointment)
            .outerjoin(Service, Service.id == Appointment.service_id)
            .outerjoin(Veterinarian, Veterinarian.id == Appointment.veterinarian_id)
        )
        if start:
            stmt = stmt.where(Appointment.appointment_date >= start)
        if end:
            stmt = stmt.where(Appointment.appointment_date <= end)
        return self.db.execute(stmt).all()

    def admin_overview(self, today: date | None = None, start: date | None = None, end: date | None = None) -> dict:
        today = today or date.today()
        rows = self._clinic_appointments(start, end)
        completed = [r for r in rows if r.status == AppointmentStatus.COMPLETED.value]

        role_counts = dict(
            self.db.execute(select(User.role, func.count(User.user_id)).group_by(User.role)).all()
        )
        total_pets = self.db.execute(
            select(func.count(Patient.id)).where(Patient.is_active.is_(True))
        ).scalar_one()
        total_clinics = self.db.execute(
            select(func.count(Clinic.id)).where(Clinic.is_active.is_(True))
        ).scalar_one()

        revenue = sum((_amount(r) for r in completed), Decimal("0"))
        monthly = sum(
            (
                _amount(r) for r in completed
                if r.appointment_date.year == today.year and r.appointment_date.month == today.month
            ),
            Decimal("0"),
        )

        return {
            "total_users": sum(role_counts.values()),
            "total_pet_owners": role_counts.get("OWNER", 0),
            "total_veterinarians": role_counts.get("VET", 0),
            "total_pets": int(total_pets or 0),
            "total_clinics": int(total_clinics or 0),
            "total_appointments": len(rows),
            "active_appointments": sum(1 for r in rows if r.status in ACTIVE_STATUS_VALUES),
            "completed_appointments": len(completed),
            "total_revenue": revenue,
            "monthly_revenue": monthly,
            "average_appointment_value": _average(revenue, len(completed)),
        }

    def admin_financial(
        self,
        today: date | None = None,
        start: date | None = None,
        end: date | None = None,
        top: int = 5,
    ) -> dict:
        """
        Revenue figures across every clinic.

        Revenue is earned by completed appointments only, using the settled
        amount or the service price when nothing was settled.
        """
        today = today or date.today()
        rows = self._clinic_appointments(start, end)
        completed = [r for r in rows if r.status == AppointmentStatus.COMPLETED.value]
        revenue = sum((_amount(r) for r in completed), Decimal("0"))

        revenue_by_month = []
        for year, month in _months_back(today, 12):
            in_month = [
                r for r in completed
                if r.appointment_date.year == year and r.appointment_date.month == month
            ]
            revenue_by_month.append(
                {
                    "month": MONTH_NAMES[month - 1],
                    "year": year,
                    "revenue": sum((_amount(r) for r in in_month), Decimal("0")),
                    "appointments": len(in_month),
                }
            )

        payment_status_counts: dict[str, int] = defaultdict(int)
        for r in rows:
            payment_status_counts[r.payment_status or "unknown"] += 1

        by_vet: dict[int, dict] = {}
        for r in completed:
            if r.veterinarian_id is None:
                continue
            entry = by_vet.setdefault(
                r.veterinarian_id,
                {
                    "veterinarian_id": r.veterinarian_id,
                    "name": r.veterinarian_name,
                    "revenue": Decimal("0"),
                    "appointments": 0,
                },
            )
            entry["revenue"] += _amount(r)
            entry["appointments"] += 1
        top_vets = sorted(by_vet.values(), key=lambda v: (-v["revenue"], v["veterinarian_id"]))[:top]

        return {
            "total_revenue": revenue,
            "monthly_revenue": revenue_by_month[-1]["revenue"],
            "yearly_revenue": sum(
                (_amount(r) for r in completed if r.appointment_date.year == today.year),
                Decimal("0"),
            ),
            "revenue_by_month": revenue_by_month,
            "payment_status_counts": dict(payment_status_counts),
            "average_appointment_value": _average(revenue, len(completed)),
            "top_earning_veterinarians": top_vets,
        }

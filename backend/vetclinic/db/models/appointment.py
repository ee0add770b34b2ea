"""Module: appointment."""

import uuid
from datetime import date, datetime, time

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String, Time
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from vetclinic.db.base import Base

# Scheduled clinical visit linking a pet, its owner, a veterinarian, clinic and service.
# Rows are never deleted; cancellation is a status value.
class Appointment(Base):
    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    pet_owner_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("pet_owner_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    patient_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False
    )
    veterinarian_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("veterinarians.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    clinic_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("clinics.id", ondelete="SET NULL"),
        nullable=True
    )
    service_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("services.id", ondelete="SET NULL"),
        nullable=True
    )

    appointment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    appointment_time: Mapped[time] = mapped_column(Time, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")

    reason_for_visit: Mapped[str] = mapped_column(String, nullable=True)
    symptoms: Mapped[str] = mapped_column(String, nullable=True)
    notes: Mapped[str] = mapped_column(String, nullable=True)

    estimated_duration: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    total_amount: Mapped[float] = mapped_column(Numeric(10, 2), nullable=True)
    payment_status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    booking_type: Mapped[str] = mapped_column(String, nullable=False, default="web")

    is_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    approved_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.user_id", ondelete="SET NULL"),
        nullable=True
    )
    approved_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)
    has_review: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

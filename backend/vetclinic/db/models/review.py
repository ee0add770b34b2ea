"""Module: review."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from vetclinic.db.base import Base

# Owner rating of a completed appointment; at most one per appointment.
class Review(Base):
    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    veterinarian_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("veterinarians.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    pet_owner_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("pet_owner_profiles.id", ondelete="CASCADE"),
        nullable=False
    )
    patient_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("patients.id", ondelete="SET NULL"),
        nullable=True
    )
    appointment_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("appointments.id", ondelete="CASCADE"),
        unique=True,
        nullable=False
    )
    service_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("services.id", ondelete="SET NULL"),
        nullable=True
    )

    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str] = mapped_column(String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

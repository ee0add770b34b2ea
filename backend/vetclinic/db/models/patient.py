"""Module: patient."""

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, LargeBinary, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from vetclinic.db.base import Base


# Pet profile owned by a pet owner; referenced by appointments, reviews and diary entries.
class Patient(Base):
    __tablename__ = "patients"

    # Primary Key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("pet_owner_profiles.id", ondelete="CASCADE"),
        nullable=False
    )

    # Basic Info
    name: Mapped[str] = mapped_column(String, nullable=False)
    species: Mapped[str] = mapped_column(String, nullable=False)
    breed: Mapped[str] = mapped_column(String, nullable=True)
    gender: Mapped[str] = mapped_column(String, nullable=True)
    photo_data: Mapped[bytes] = mapped_column(LargeBinary, nullable=True)
    photo_mime_type: Mapped[str] = mapped_column(String, nullable=True)

    # Optional Info
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=True)
    weight: Mapped[float] = mapped_column(Numeric(6, 2), nullable=True)
    medical_conditions: Mapped[str] = mapped_column(String, nullable=True)

    # Removing a pet only clears this flag; appointment history keeps pointing at the row.
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Audit
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow
    )

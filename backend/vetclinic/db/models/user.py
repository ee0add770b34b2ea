"""Module: user."""

import uuid
from sqlalchemy import Boolean, String, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime

from vetclinic.db.base import Base

# Login identity shared by pet owners, veterinarians and admins.
# Role-specific data lives in pet_owner_profiles / veterinarians.
class User(Base):
    __tablename__ = "users"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )

    email: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    # pbkdf2_sha256$<iterations>$<salt_hex>$<hash_hex>
    password: Mapped[str] = mapped_column(String, nullable=False)
    # OWNER, VET or ADMIN
    role: Mapped[str] = mapped_column(String, nullable=False, default="OWNER", index=True)
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    phone: Mapped[str] = mapped_column(String, nullable=True)
    # Deactivated accounts keep their history but cannot authenticate.
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_login_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow
    )

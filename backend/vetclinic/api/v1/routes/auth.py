"""Module: auth."""

import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from vetclinic.api.v1.routes.deps import get_current_user, get_db, get_token_value
from vetclinic.core.security import hash_password, issue_token, revoke_token, verify_password
from vetclinic.db.models.patient import Patient
from vetclinic.db.models.pet_owner_profile import PetOwnerProfile
from vetclinic.db.models.user import User
from vetclinic.utils.sanitize import normalize_optional

logger = logging.getLogger(__name__)

router = APIRouter()


class LoginRequest(BaseModel):
    email: str
    password: str


class PetCreatePayload(BaseModel):
    name: str
    species: str
    breed: str | None = None
    gender: str | None = None
    date_of_birth: date | None = None


class RegisterRequest(BaseModel):
    email: str
    password: str
    full_name: str
    phone: str | None = None
    address: str | None = None
    pet: PetCreatePayload | None = None


class UserPayload(BaseModel):
    user_id: str
    email: str
    full_name: str
    phone: str | None = None
    role: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserPayload


def normalize_email(value: str) -> str:
    return value.strip().lower()


def as_user_payload(user: User) -> UserPayload:
    role = (user.role or "OWNER").upper()
    return UserPayload(
        user_id=str(user.user_id),
        email=user.email,
        full_name=user.full_name,
        phone=user.phone,
        role=role,
    )


def email_taken(db: Session, email: str) -> bool:
    return db.execute(select(User.user_id).where(func.lower(User.email) == email)).first() is not None


@router.post("/register", response_model=UserPayload)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    normalized_email = normalize_email(payload.email)
    if "@" not in normalized_email:
        raise HTTPException(status_code=400, detail="Invalid email address")
    if len(payload.password) < 8:
        raise HTTPException(status_code=400, detail="Password must be at least 8 characters")
    if email_taken(db, normalized_email):
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        email=normalized_email,
        password=hash_password(payload.password),
        role="OWNER",
        full_name=payload.full_name.strip(),
        phone=normalize_optional(payload.phone),
    )
    db.add(user)
    db.flush()

    profile = PetOwnerProfile(
        user_id=user.user_id,
        full_name=user.full_name,
        phone=user.phone,
        address=normalize_optional(payload.address),
    )
    db.add(profile)
    db.flush()

    if payload.pet is not None:
        db.add(
            Patient(
                owner_id=profile.id,
                name=payload.pet.name.strip(),
                species=payload.pet.species.strip(),
                breed=normalize_optional(payload.pet.breed),
                gender=normalize_optional(payload.pet.gender),
                date_of_birth=payload.pet.date_of_birth,
            )
        )

    db.commit()
    db.refresh(user)
    logger.info("Registered pet owner %s", user.user_id)
    return as_user_payload(user)


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    normalized_email = normalize_email(payload.email)
    user = db.execute(
        select(User).where(func.lower(User.email) == normalized_email)
    ).scalar_one_or_none()

    if not user or not user.is_active or not verify_password(payload.password, user.password):
        logger.warning("Failed login for %s", normalized_email)
        raise HTTPException(status_code=401, detail="Invalid email or password")

    user.last_login_at = datetime.utcnow()
    db.commit()

    return LoginResponse(
        access_token=issue_token(user.user_id),
        user=as_user_payload(user),
    )


@router.get("/me", response_model=UserPayload)
def me(user: User = Depends(get_current_user)):
    return as_user_payload(user)


@router.post("/logout")
def logout(authorization: str | None = Header(default=None)):
    revoke_token(get_token_value(authorization))
    return {"success": True}

"""Shared fixtures: in-memory SQLite database, API client and row factories."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("NOTIFICATION_WEBHOOK_URL", None)

from datetime import date, time, timedelta
from decimal import Decimal
from itertools import count

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import vetclinic.db.models  # noqa: F401
from vetclinic.api.v1.routes.deps import get_db
from vetclinic.core.security import TOKENS, hash_password, issue_token
from vetclinic.db.base import Base
from vetclinic.db.models.appointment import Appointment
from vetclinic.db.models.clinic import Clinic
from vetclinic.db.models.patient import Patient
from vetclinic.db.models.pet_owner_profile import PetOwnerProfile
from vetclinic.db.models.service import Service
from vetclinic.db.models.user import User
from vetclinic.db.models.veterinarian import Veterinarian
from vetclinic.main import app

PASSWORD = "correct-horse-battery"
PASSWORD_HASH = hash_password(PASSWORD)

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

_seq = count(1)


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        TOKENS.clear()


@pytest.fixture()
def client(db):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def future_day():
    return date.today() + timedelta(days=3)


@pytest.fixture()
def auth():
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {issue_token(user.user_id)}"}

    return _headers


def _user(db, role: str, full_name: str) -> User:
    n = next(_seq)
    user = User(
        email=f"{role.lower()}{n}@example.com",
        password=PASSWORD_HASH,
        role=role,
        full_name=full_name,
    )
    db.add(user)
    db.flush()
    return user


@pytest.fixture()
def make_owner(db):
    def _make(full_name: str = "Olive Owner"):
        user = _user(db, "OWNER", full_name)
        profile = PetOwnerProfile(user_id=user.user_id, full_name=full_name)
        db.add(profile)
        db.commit()
        return user, profile

    return _make


@pytest.fixture()
def make_clinic(db):
    def _make(name: str = "Harbour Vets"):
        clinic = Clinic(name=name, is_active=True)
        db.add(clinic)
        db.commit()
        return clinic

    return _make


@pytest.fixture()
def make_vet(db):
    def _make(clinic: Clinic, full_name: str = "Dr Vera Vet", is_available: bool = True):
        user = _user(db, "VET", full_name)
        vet = Veterinarian(
            user_id=user.user_id,
            clinic_id=clinic.id,
            full_name=full_name,
            is_available=is_available,
        )
        db.add(vet)
        db.commit()
        return user, vet

    return _make


@pytest.fixture()
def make_service(db):
    def _make(clinic: Clinic, name: str = "General Checkup", price: str = "80.00"):
        service = Service(clinic_id=clinic.id, name=name, price=Decimal(price), duration_minutes=30)
        db.add(service)
        db.commit()
        return service

    return _make


@pytest.fixture()
def make_pet(db):
    def _make(owner: PetOwnerProfile, name: str = "Biscuit", species: str = "Dog"):
        pet = Patient(owner_id=owner.id, name=name, species=species, is_active=True)
        db.add(pet)
        db.commit()
        return pet

    return _make


@pytest.fixture()
def make_appointment(db):
    def _make(
        pet: Patient,
        vet: Veterinarian | None,
        day: date,
        status: str = "pending",
        slot: time = time(10, 0),
        service: Service | None = None,
        total_amount: Decimal | None = None,
        clinic: Clinic | None = None,
    ):
        appointment = Appointment(
            pet_owner_id=pet.owner_id,
            patient_id=pet.id,
            veterinarian_id=vet.id if vet else None,
            clinic_id=clinic.id if clinic else vet.clinic_id,
            service_id=service.id if service else None,
            appointment_date=day,
            appointment_time=slot,
            status=status,
            total_amount=total_amount,
        )
        db.add(appointment)
        db.commit()
        return appointment

    return _make


@pytest.fixture()
def world(make_owner, make_clinic, make_vet, make_service, make_pet):
    """One clinic with a vet and a service, and one owner with one pet."""
    clinic = make_clinic()
    vet_user, vet = make_vet(clinic)
    service = make_service(clinic)
    owner_user, owner = make_owner()
    pet = make_pet(owner)
    return {
        "clinic": clinic,
        "vet_user": vet_user,
        "vet": vet,
        "service": service,
        "owner_user": owner_user,
        "owner": owner,
        "pet": pet,
    }

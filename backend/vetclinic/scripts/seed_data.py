"""Module: seed_data."""

from faker import Faker
import random
import string
import csv
from pathlib import Path
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from sqlalchemy import select, text

from vetclinic.core.appointment_rules import AppointmentStatus, MAX_DAILY_APPOINTMENTS
from vetclinic.core.security import hash_password
from vetclinic.db.init_db import init_db
from vetclinic.db.session import SessionLocal

from vetclinic.db.models.user import User
from vetclinic.db.models.pet_owner_profile import PetOwnerProfile
from vetclinic.db.models.clinic import Clinic
from vetclinic.db.models.veterinarian import Veterinarian
from vetclinic.db.models.service import Service
from vetclinic.db.models.patient import Patient
from vetclinic.db.models.appointment import Appointment
from vetclinic.db.models.review import Review
from vetclinic.db.models.pet_diary_entry import PetDiaryEntry

fake = Faker()

SPECIES_BREEDS = {
    "Dog": ["Labrador", "Kelpie", "Border Collie", "Staffy", "Cavoodle"],
    "Cat": ["Domestic Shorthair", "Ragdoll", "Siamese", "Maine Coon"],
    "Rabbit": ["Lop", "Netherland Dwarf"],
}
SERVICE_CATALOGUE = [
    # name, price, minutes
    ("General Checkup", Decimal("85.00"), 30),
    ("Vaccination", Decimal("95.00"), 20),
    ("Dental Cleaning", Decimal("320.00"), 90),
    ("Desexing", Decimal("450.00"), 120),
    ("Microchipping", Decimal("60.00"), 15),
]
SPECIALIZATIONS = ["General Practice", "Surgery", "Dentistry", "Dermatology", "Internal Medicine"]
SLOT_TIMES = [time(h, m) for h in range(9, 17) for m in (0, 30)]
DEFAULT_HOURS = {
    "mon": "08:00-18:00",
    "tue": "08:00-18:00",
    "wed": "08:00-18:00",
    "thu": "08:00-18:00",
    "fri": "08:00-17:00",
    "sat": "09:00-12:00",
}

# Plaintext passwords for the credentials export; only hashes are stored.
_seeded_passwords: dict[str, str] = {}


# Shared helpers used by multiple seed builders.
def generate_password(length: int = 12) -> str:
    chars = string.ascii_letters + string.digits
    return "".join(random.choice(chars) for _ in range(length))


def generate_au_mobile() -> str:
    # Australian mobile format: 04 + 8 digits
    return "04" + "".join(random.choice(string.digits) for _ in range(8))


def _new_user(role: str, full_name: str, email: str) -> User:
    password = generate_password()
    _seeded_passwords[email] = password
    return User(
        email=email,
        password=hash_password(password),
        role=role,
        full_name=full_name,
        phone=generate_au_mobile(),
    )


def export_credentials(users: list[User]) -> Path:
    out_path = Path(__file__).resolve().parent / "seeded_user_credentials.csv"
    with out_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["user_id", "email", "password", "role"])
        for user in users:
            writer.writerow([str(user.user_id), user.email, _seeded_passwords.get(user.email, ""), user.role])
    return out_path


def reset_db(session) -> None:
    # Keep reset order explicit so FK dependencies truncate cleanly.
    session.execute(text("""
        TRUNCATE TABLE
          audit_log,
          notifications,
          reviews,
          pet_diary_entries,
          appointments,
          patients,
          services,
          veterinarians,
          clinics,
          pet_owner_profiles,
          users
        RESTART IDENTITY CASCADE;
    """))
    session.commit()


def seed_admin(session) -> User:
    admin = _new_user("ADMIN", "Clinic Administrator", "admin@vetclinic.local")
    session.add(admin)
    session.commit()
    return admin


def seed_clinics(session, n: int = 5) -> list[Clinic]:
    clinics: list[Clinic] = []
    for _ in range(n):
        clinics.append(Clinic(
            name=f"{fake.last_name()} Veterinary Clinic",
            address=fake.address().replace("\n", ", "),
            phone=generate_au_mobile(),
            email=f"contact@{fake.domain_word()}clinic.au",
            latitude=round(random.uniform(-38.0, -12.0), 6),
            longitude=round(random.uniform(113.0, 153.0), 6),
            operating_hours=DEFAULT_HOURS,
            is_active=True,
        ))
    session.add_all(clinics)
    session.commit()
    return clinics


def seed_services(session, clinics: list[Clinic]) -> list[Service]:
    services: list[Service] = []
    for clinic in clinics:
        for name, price, minutes in SERVICE_CATALOGUE:
            services.append(Service(
                clinic_id=clinic.id,
                name=name,
                description=f"{name} at {clinic.name}",
                price=price,
                duration_minutes=minutes,
                is_active=True,
            ))
    session.add_all(services)
    session.commit()
    return services


def seed_vets(session, clinics: list[Clinic], per_clinic: int = 3) -> list[Veterinarian]:
    vets: list[Veterinarian] = []
    for clinic in clinics:
        for _ in range(per_clinic):
            first, last = fake.first_name(), fake.last_name()
            user = _new_user("VET", f"Dr {first} {last}", fake.unique.email())
            session.add(user)
            session.flush()
            vets.append(Veterinarian(
                user_id=user.user_id,
                clinic_id=clinic.id,
                full_name=user.full_name,
                specialization=random.choice(SPECIALIZATIONS),
                license_number=f"VET{random.randint(10000, 99999)}",
                years_experience=random.randint(1, 25),
                consultation_fee=Decimal(random.choice([75, 85, 95, 110])),
                bio=fake.sentence(nb_words=12),
                is_available=random.random() > 0.1,
            ))
    session.add_all(vets)
    session.commit()
    return vets


def seed_owners(session, n: int = 40) -> list[PetOwnerProfile]:
    owners: list[PetOwnerProfile] = []
    for _ in range(n):
        user = _new_user("OWNER", fake.name(), fake.unique.email())
        session.add(user)
        session.flush()
        owners.append(PetOwnerProfile(
            user_id=user.user_id,
            full_name=user.full_name,
            phone=user.phone,
            address=fake.address().replace("\n", ", "),
            emergency_contact_name=fake.name(),
            emergency_contact_phone=generate_au_mobile(),
        ))
    session.add_all(owners)
    session.commit()
    return owners


def seed_pets(session, owners: list[PetOwnerProfile]) -> list[Patient]:
    pets: list[Patient] = []
    for owner in owners:
        for _ in range(random.randint(1, 3)):
            species = random.choice(list(SPECIES_BREEDS))
            pets.append(Patient(
                owner_id=owner.id,
                name=fake.first_name(),
                species=species,
                breed=random.choice(SPECIES_BREEDS[species]),
                gender=random.choice(["Male", "Female"]),
                date_of_birth=fake.date_between(start_date="-15y", end_date="-3m"),
                weight=Decimal(str(round(random.uniform(1.5, 40.0), 2))),
                is_active=True,
            ))
    session.add_all(pets)
    session.commit()
    return pets


def seed_appointments(
    session,
    pets: list[Patient],
    vets: list[Veterinarian],
    services: list[Service],
) -> list[Appointment]:
    # Past visits settle into terminal statuses; future ones stay pending/confirmed.
    bookable = [v for v in vets if v.is_available]
    services_by_clinic: dict[int, list[Service]] = {}
    for s in services:
        services_by_clinic.setdefault(s.clinic_id, []).append(s)

    taken: set[tuple[int, date, time]] = set()
    per_owner_day: dict[tuple[int, date], int] = {}
    appointments: list[Appointment] = []
    today = date.today()

    for pet in pets:
        for _ in range(random.randint(1, 4)):
            vet = random.choice(bookable)
            day = today + timedelta(days=random.randint(-180, 30))
            slot = random.choice(SLOT_TIMES)
            if (vet.id, day, slot) in taken:
                continue
            if per_owner_day.get((pet.owner_id, day), 0) >= MAX_DAILY_APPOINTMENTS:
                continue

            if day < today:
                status = random.choices(
                    [AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW],
                    weights=[0.75, 0.15, 0.10],
                )[0]
            else:
                status = random.choice([AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED])

            service = random.choice(services_by_clinic[vet.clinic_id])
            approved = status not in (AppointmentStatus.PENDING, AppointmentStatus.CANCELLED)
            created = datetime.combine(day, slot) - timedelta(days=random.randint(1, 14))
            appointments.append(Appointment(
                pet_owner_id=pet.owner_id,
                patient_id=pet.id,
                veterinarian_id=vet.id,
                clinic_id=vet.clinic_id,
                service_id=service.id,
                appointment_date=day,
                appointment_time=slot,
                status=status.value,
                reason_for_visit=fake.sentence(nb_words=6),
                estimated_duration=service.duration_minutes,
                total_amount=service.price,
                payment_status="paid" if status == AppointmentStatus.COMPLETED else "pending",
                is_approved=approved,
                approved_by=vet.user_id if approved else None,
                approved_at=created + timedelta(hours=6) if approved else None,
                created_at=created,
                updated_at=created,
            ))
            taken.add((vet.id, day, slot))
            per_owner_day[(pet.owner_id, day)] = per_owner_day.get((pet.owner_id, day), 0) + 1

    session.add_all(appointments)
    session.commit()
    return appointments


def seed_reviews(session, appointments: list[Appointment]) -> int:
    reviews: list[Review] = []
    for appt in appointments:
        if appt.status != AppointmentStatus.COMPLETED.value or random.random() > 0.5:
            continue
        reviews.append(Review(
            veterinarian_id=appt.veterinarian_id,
            pet_owner_id=appt.pet_owner_id,
            patient_id=appt.patient_id,
            appointment_id=appt.id,
            service_id=appt.service_id,
            rating=random.choices([1, 2, 3, 4, 5], weights=[0.03, 0.05, 0.12, 0.35, 0.45])[0],
            comment=fake.sentence(nb_words=14),
        ))
        appt.has_review = True
    session.add_all(reviews)
    session.commit()
    return len(reviews)


def seed_diary(session, pets: list[Patient]) -> int:
    entries: list[PetDiaryEntry] = []
    today = date.today()
    for pet in pets:
        for _ in range(random.randint(0, 5)):
            entries.append(PetDiaryEntry(
                patient_id=pet.id,
                pet_owner_id=pet.owner_id,
                entry_date=today - timedelta(days=random.randint(0, 90)),
                title=fake.sentence(nb_words=4).rstrip("."),
                content=fake.paragraph(nb_sentences=3),
                mood=random.choice(["happy", "calm", "anxious", "lethargic"]),
                activity_level=random.choice(["low", "normal", "high"]),
                appetite=random.choice(["poor", "normal", "good"]),
                tags=random.sample(["walk", "meds", "grooming", "weight", "play"], k=2),
            ))
    session.add_all(entries)
    session.commit()
    return len(entries)


if __name__ == "__main__":
    # Full reseed pipeline: python -m vetclinic.scripts.seed_data
    init_db()
    session = SessionLocal()
    try:
        print("Resetting tables...")
        reset_db(session)

        print("Seeding admin user...")
        seed_admin(session)

        print("Seeding clinics (5)...")
        clinics = seed_clinics(session, 5)

        print("Seeding clinic services...")
        services = seed_services(session, clinics)

        print("Seeding veterinarians (3 per clinic)...")
        vets = seed_vets(session, clinics)

        print("Seeding pet owners (40)...")
        owners = seed_owners(session, 40)

        print("Seeding pets...")
        pets = seed_pets(session, owners)

        print("Seeding appointments...")
        appointments = seed_appointments(session, pets, vets, services)
        review_n = seed_reviews(session, appointments)
        diary_n = seed_diary(session, pets)

        all_users = session.execute(select(User)).scalars().all()
        creds_path = export_credentials(all_users)

        print(
            f"Done. clinics={len(clinics)}, services={len(services)}, vets={len(vets)}, owners={len(owners)}, "
            f"pets={len(pets)}, appointments={len(appointments)}, reviews={review_n}, diary_entries={diary_n}"
        )
        print(f"Credentials export: {creds_path}")
    finally:
        session.close()

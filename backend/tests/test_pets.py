"""Pet CRUD for owners and per-pet medical records."""

from datetime import date, time, timedelta

from vetclinic.db.models.patient import Patient
from vetclinic.db.models.review import Review
from vetclinic.db.models.user import User

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def test_create_and_list_pets(client, world, auth) -> None:
    headers = auth(world["owner_user"])

    created = client.post(
        "/api/v1/pets",
        data={"name": " Mittens ", "species": "Cat", "breed": "", "weight": "4.20"},
        headers=headers,
    )
    assert created.status_code == 200
    assert created.json()["name"] == "Mittens"
    assert created.json()["breed"] is None
    assert created.json()["has_photo"] is False

    names = [p["name"] for p in client.get("/api/v1/pets", headers=headers).json()]
    assert names == ["Biscuit", "Mittens"]


def test_blank_name_is_rejected(client, world, auth) -> None:
    response = client.post(
        "/api/v1/pets",
        data={"name": "  ", "species": "Dog"},
        headers=auth(world["owner_user"]),
    )
    assert response.status_code == 400


def test_photo_upload_and_download(client, world, auth) -> None:
    headers = auth(world["owner_user"])

    created = client.post(
        "/api/v1/pets",
        data={"name": "Rex", "species": "Dog"},
        files={"photo": ("rex.png", PNG_BYTES, "image/png")},
        headers=headers,
    )
    assert created.json()["has_photo"] is True

    photo = client.get(f"/api/v1/pets/{created.json()['id']}/photo", headers=headers)
    assert photo.status_code == 200
    assert photo.headers["content-type"] == "image/png"
    assert photo.content == PNG_BYTES


def test_non_image_upload_is_rejected(client, world, auth) -> None:
    response = client.post(
        "/api/v1/pets",
        data={"name": "Rex", "species": "Dog"},
        files={"photo": ("notes.txt", b"hello", "text/plain")},
        headers=auth(world["owner_user"]),
    )
    assert response.status_code == 400


def test_update_pet(client, world, auth) -> None:
    response = client.put(
        f"/api/v1/pets/{world['pet'].id}",
        data={"name": "Biscuit", "species": "Dog", "breed": "Kelpie", "medical_conditions": "Arthritis"},
        headers=auth(world["owner_user"]),
    )
    assert response.status_code == 200
    assert response.json()["breed"] == "Kelpie"
    assert response.json()["medical_conditions"] == "Arthritis"


def test_delete_is_soft(client, db, world, auth) -> None:
    headers = auth(world["owner_user"])

    response = client.delete(f"/api/v1/pets/{world['pet'].id}", headers=headers)

    assert response.status_code == 200
    db.expire_all()
    assert db.get(Patient, world["pet"].id).is_active is False
    assert client.get("/api/v1/pets", headers=headers).json() == []
    assert client.delete(f"/api/v1/pets/{world['pet'].id}", headers=headers).status_code == 404


def test_other_owners_pet_is_forbidden(client, world, auth, make_owner) -> None:
    intruder, _ = make_owner("Nosy Neighbour")

    response = client.put(
        f"/api/v1/pets/{world['pet'].id}",
        data={"name": "Stolen", "species": "Dog"},
        headers=auth(intruder),
    )
    assert response.status_code == 403


def test_owner_account_without_profile_is_not_found(client, db, auth) -> None:
    orphan = User(email="orphan@example.com", password="unused", role="OWNER", full_name="Orphan")
    db.add(orphan)
    db.commit()

    response = client.get("/api/v1/pets", headers=auth(orphan))

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


# -------------------------
# Medical records
# -------------------------

def _history(db, world, make_appointment):
    last_month = date.today() - timedelta(days=30)
    next_week = date.today() + timedelta(days=7)
    visit = make_appointment(world["pet"], world["vet"], last_month, status="completed", service=world["service"])
    make_appointment(world["pet"], world["vet"], last_month, status="cancelled", slot=time(15, 0))
    make_appointment(world["pet"], world["vet"], next_week, status="confirmed")
    db.add(
        Review(
            veterinarian_id=world["vet"].id,
            pet_owner_id=world["owner"].id,
            patient_id=world["pet"].id,
            appointment_id=visit.id,
            rating=4,
            comment="Gentle with Biscuit",
        )
    )
    db.commit()
    return last_month, next_week


def test_owner_reads_medical_record(client, db, world, auth, make_appointment) -> None:
    last_month, next_week = _history(db, world, make_appointment)

    response = client.get(f"/api/v1/pets/{world['pet'].id}/medical-records", headers=auth(world["owner_user"]))

    assert response.status_code == 200
    body = response.json()
    assert body["patient"]["name"] == "Biscuit"
    assert body["owner"]["full_name"] == "Olive Owner"
    assert body["appointments"][0]["appointment_date"] == next_week.isoformat()
    assert body["appointments"][0]["veterinarian_name"] == "Dr Vera Vet"
    assert body["reviews"][0]["rating"] == 4
    assert body["reviews"][0]["veterinarian_name"] == "Dr Vera Vet"
    assert body["statistics"] == {
        "total_appointments": 3,
        "completed_appointments": 1,
        "pending_appointments": 0,
        "cancelled_appointments": 1,
        "average_rating": 4.0,
        "total_reviews": 1,
        "last_visit": last_month.isoformat(),
        "next_appointment": next_week.isoformat(),
    }


def test_treating_vet_and_admin_read_medical_record(client, db, world, auth, make_appointment) -> None:
    _history(db, world, make_appointment)
    admin = User(email="admin@example.com", password="unused", role="ADMIN", full_name="Admin")
    db.add(admin)
    db.commit()
    url = f"/api/v1/pets/{world['pet'].id}/medical-records"

    assert client.get(url, headers=auth(world["vet_user"])).status_code == 200
    assert client.get(url, headers=auth(admin)).json()["statistics"]["total_appointments"] == 3


def test_medical_record_is_private(client, world, auth, make_owner, make_vet, make_appointment) -> None:
    make_appointment(world["pet"], world["vet"], date.today())
    stranger, _ = make_owner("Nosy Neighbour")
    colleague, _ = make_vet(world["clinic"], "Dr Other")
    url = f"/api/v1/pets/{world['pet'].id}/medical-records"

    assert client.get(url, headers=auth(stranger)).status_code == 403
    assert client.get(url, headers=auth(colleague)).status_code == 403
    assert client.get("/api/v1/pets/9999/medical-records", headers=auth(stranger)).status_code == 404

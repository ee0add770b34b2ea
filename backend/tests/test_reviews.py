"""Owner reviews of completed appointments."""

from datetime import date

from vetclinic.db.models.appointment import Appointment


def test_review_completed_appointment(client, db, world, auth, make_appointment) -> None:
    appointment = make_appointment(
        world["pet"], world["vet"], date.today(), status="completed", service=world["service"]
    )

    response = client.post(
        "/api/v1/reviews",
        json={"appointment_id": appointment.id, "rating": 5, "comment": "Lovely <i>vet</i>"},
        headers=auth(world["owner_user"]),
    )

    assert response.status_code == 200
    assert response.json()["veterinarian_id"] == world["vet"].id
    assert response.json()["comment"] == "Lovely vet"
    db.expire_all()
    assert db.get(Appointment, appointment.id).has_review is True

    stats = client.get("/api/v1/vet/stats", headers=auth(world["vet_user"])).json()
    assert stats["average_rating"] == 5.0


def test_only_one_review_per_appointment(client, world, auth, make_appointment) -> None:
    appointment = make_appointment(world["pet"], world["vet"], date.today(), status="completed")
    headers = auth(world["owner_user"])
    body = {"appointment_id": appointment.id, "rating": 4}

    assert client.post("/api/v1/reviews", json=body, headers=headers).status_code == 200
    assert client.post("/api/v1/reviews", json=body, headers=headers).status_code == 409


def test_unfinished_appointment_cannot_be_reviewed(client, world, auth, future_day, make_appointment) -> None:
    appointment = make_appointment(world["pet"], world["vet"], future_day, status="confirmed")

    response = client.post(
        "/api/v1/reviews",
        json={"appointment_id": appointment.id, "rating": 4},
        headers=auth(world["owner_user"]),
    )
    assert response.status_code == 409


def test_rating_must_be_one_to_five(client, world, auth, make_appointment) -> None:
    appointment = make_appointment(world["pet"], world["vet"], date.today(), status="completed")

    response = client.post(
        "/api/v1/reviews",
        json={"appointment_id": appointment.id, "rating": 6},
        headers=auth(world["owner_user"]),
    )
    assert response.status_code == 422


def test_cannot_review_someone_elses_appointment(client, world, auth, make_owner, make_appointment) -> None:
    appointment = make_appointment(world["pet"], world["vet"], date.today(), status="completed")
    intruder, _ = make_owner("Nosy Neighbour")

    response = client.post(
        "/api/v1/reviews",
        json={"appointment_id": appointment.id, "rating": 1},
        headers=auth(intruder),
    )
    assert response.status_code == 403

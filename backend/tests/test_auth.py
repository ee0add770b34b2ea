"""Registration, login and bearer token handling."""

from vetclinic.db.models.patient import Patient
from vetclinic.db.models.pet_owner_profile import PetOwnerProfile
from vetclinic.db.models.user import User

REGISTER_URL = "/api/v1/auth/register"
LOGIN_URL = "/api/v1/auth/login"


def _register(client, email: str = "Pat@Example.com", password: str = "s3cret-pass", **extra):
    body = {"email": email, "password": password, "full_name": "  Pat Owner ", **extra}
    return client.post(REGISTER_URL, json=body)


def test_register_creates_owner_profile_and_first_pet(client, db) -> None:
    response = _register(client, pet={"name": "Pepper", "species": "Cat", "breed": " "})

    assert response.status_code == 200
    body = response.json()
    assert body["email"] == "pat@example.com"
    assert body["role"] == "OWNER"
    assert body["full_name"] == "Pat Owner"

    db.expire_all()
    user = db.query(User).one()
    assert user.password != "s3cret-pass"
    profile = db.query(PetOwnerProfile).filter_by(user_id=user.user_id).one()
    pet = db.query(Patient).filter_by(owner_id=profile.id).one()
    assert pet.name == "Pepper"
    assert pet.breed is None


def test_duplicate_email_is_rejected_case_insensitively(client) -> None:
    assert _register(client).status_code == 200
    assert _register(client, email="pat@EXAMPLE.com").status_code == 409


def test_register_validates_email_and_password(client) -> None:
    assert _register(client, email="not-an-email").status_code == 400
    assert _register(client, password="short").status_code == 400


def test_login_me_and_logout(client) -> None:
    _register(client)

    login = client.post(LOGIN_URL, json={"email": "PAT@example.com", "password": "s3cret-pass"})
    assert login.status_code == 200
    token = login.json()["access_token"]
    assert login.json()["token_type"] == "bearer"
    headers = {"Authorization": f"Bearer {token}"}

    me = client.get("/api/v1/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["email"] == "pat@example.com"

    assert client.post("/api/v1/auth/logout", headers=headers).json() == {"success": True}
    assert client.get("/api/v1/auth/me", headers=headers).status_code == 401


def test_login_records_last_login(client, db) -> None:
    _register(client)
    user = db.query(User).filter(User.email == "pat@example.com").one()
    assert user.last_login_at is None

    client.post(LOGIN_URL, json={"email": "pat@example.com", "password": "s3cret-pass"})

    db.expire_all()
    assert db.get(User, user.user_id).last_login_at is not None


def test_wrong_password_is_unauthorised(client) -> None:
    _register(client)
    response = client.post(LOGIN_URL, json={"email": "pat@example.com", "password": "wrong-pass"})
    assert response.status_code == 401


def test_deactivated_user_token_is_rejected(client, db, make_owner, auth) -> None:
    user, _ = make_owner()
    headers = auth(user)
    user.is_active = False
    db.commit()

    assert client.get("/api/v1/auth/me", headers=headers).status_code == 401


def test_malformed_authorization_header(client) -> None:
    response = client.get("/api/v1/auth/me", headers={"Authorization": "Token abc"})
    assert response.status_code == 401
    assert response.json()["error"] == "authentication_failed"

from src.application.auth_service import issue_token
from src.domain.roles import UserRole
from src.infrastructure.repositories.user_repository import UserRepository

SIGNUP = {
    "name": "Kofi",
    "mobile": "9123456780",
    "role": "explorer",
    "email": "kofi@example.com",
    "password": "pass1234",
}


def test_signup_login_and_profile(client):
    signup = client.post("/api/auth/signup", json=SIGNUP)
    assert signup.status_code == 201
    assert signup.json()["user"]["role"] == "explorer"

    login = client.post("/api/auth/login", json={"email": "kofi@example.com", "password": "pass1234"})
    assert login.status_code == 200
    token = login.json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    profile = client.get("/api/auth/profile", headers=headers)
    assert profile.status_code == 200
    assert profile.json()["user"]["email"] == "kofi@example.com"
    assert profile.json()["user"]["mobile"] == "9123456780"


def test_signup_rejects_duplicates_and_bad_input(client):
    assert client.post("/api/auth/signup", json=SIGNUP).status_code == 201

    duplicate = client.post("/api/auth/signup", json={**SIGNUP, "mobile": "9000000009"})
    assert duplicate.status_code == 409

    bad_mobile = client.post("/api/auth/signup", json={**SIGNUP, "mobile": "123", "email": None})
    assert bad_mobile.status_code == 400

    bad_role = client.post(
        "/api/auth/signup",
        json={**SIGNUP, "mobile": "9000000010", "email": "x@example.com", "role": "admin"},
    )
    assert bad_role.status_code == 400


def test_login_with_wrong_password(client):
    client.post("/api/auth/signup", json=SIGNUP)

    response = client.post("/api/auth/login", json={"email": "kofi@example.com", "password": "nope"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"


def test_update_profile_changes_password(client):
    token = client.post("/api/auth/signup", json=SIGNUP).json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    updated = client.put(
        "/api/auth/profile",
        json={"name": "Kofi A.", "password": "newpass99"},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["user"]["name"] == "Kofi A."

    assert client.post(
        "/api/auth/login", json={"email": "kofi@example.com", "password": "pass1234"}
    ).status_code == 401
    assert client.post(
        "/api/auth/login", json={"email": "kofi@example.com", "password": "newpass99"}
    ).status_code == 200


def test_profile_for_unknown_user(client):
    token = issue_token("ghost-user", UserRole.EXPLORER)

    response = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 404


def test_signup_with_blank_email_for_several_users(client):
    first = client.post("/api/auth/signup", json={**SIGNUP, "mobile": "9000000021", "email": ""})
    second = client.post("/api/auth/signup", json={**SIGNUP, "mobile": "9000000022", "email": ""})

    assert first.status_code == 201
    assert second.status_code == 201
    assert first.json()["user"]["email"] is None
    assert second.json()["user"]["email"] is None


def test_profile_update_with_blank_email_clears_it(client):
    token = client.post("/api/auth/signup", json=SIGNUP).json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    updated = client.put("/api/auth/profile", json={"email": ""}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["user"]["email"] is None

    other = client.post("/api/auth/signup", json={**SIGNUP, "mobile": "9000000023", "email": ""})
    assert other.status_code == 201


def test_signup_race_on_unique_columns_is_a_conflict(client, monkeypatch):
    assert client.post("/api/auth/signup", json=SIGNUP).status_code == 201

    # Both requests pass the existence check before either inserts.
    monkeypatch.setattr(UserRepository, "exists_with", lambda self, mobile, email: False)

    duplicate = client.post("/api/auth/signup", json=SIGNUP)
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"] == "User already exists"

"""Test admin login and the bearer-token gate."""
from datetime import date, datetime, timedelta, timezone

import jwt
import pytest

import auth
import errors

SECRET = "test-secret-key-for-hs256-signing-0001"


@pytest.fixture
def april_third(monkeypatch):
    monkeypatch.setattr(auth, "current_date", lambda: date(2024, 4, 3))


@pytest.fixture
def client(make_client, file_store, april_third):
    return make_client(file_store, auth_enabled=True)


def login(client, password="0304"):
    return client.post("/api/auth/login", json={"username": "admin", "password": password})


def test_expected_password_is_day_then_month():
    assert auth.expected_password(date(2024, 4, 3)) == "0304"
    assert auth.expected_password(date(2024, 12, 25)) == "2512"


def test_check_credentials_rejects_wrong_user(april_third):
    with pytest.raises(errors.Unauthorized):
        auth.check_credentials("root", "0304")


def test_issued_token_carries_claims_and_expires_in_an_hour():
    token = auth.issue_token(SECRET)

    claims = jwt.decode(token, SECRET, algorithms=["HS256"])

    assert claims["id"] == auth.ADMIN_ID
    assert claims["username"] == "admin"
    expires = datetime.fromtimestamp(claims["exp"], timezone.utc)
    assert timedelta(minutes=59) < expires - datetime.now(timezone.utc) <= timedelta(hours=1)


def test_expired_token_is_forbidden():
    token = auth.issue_token(SECRET, ttl_minutes=-1)

    with pytest.raises(errors.Forbidden):
        auth.verify_token(token, SECRET)


def test_token_signed_with_other_key_is_forbidden():
    token = auth.issue_token("another-secret-key-for-hs256-signing-02")

    with pytest.raises(errors.Forbidden):
        auth.verify_token(token, SECRET)


@pytest.mark.parametrize("path,protected", [
    ("/api/appointments", True),
    ("/api/appointments/by-date", True),
    ("/api/auth/login", False),
    ("/api/keepwake", False),
    ("/api/bill-details/555-0100", False),
    ("/index.html", False),
])
def test_is_protected(path, protected):
    assert auth.is_protected(path) is protected


def test_login_with_todays_password(client):
    response = login(client)

    assert response.status_code == 200
    assert "token" in response.json()


def test_login_with_other_password_is_401(client):
    response = login(client, password="0403")

    assert response.status_code == 401


def test_protected_route_without_token_is_401(client):
    response = client.get("/api/appointments")

    assert response.status_code == 401
    assert response.json() == {"message": "Access denied. No token provided."}


def test_protected_route_with_bad_token_is_403(client):
    response = client.get("/api/appointments", headers={"Authorization": "Bearer nonsense"})

    assert response.status_code == 403


def test_protected_route_with_token(client, jane):
    token = login(client).json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    created = client.post("/api/appointments", json=dict(jane, phone="555-0100"), headers=headers)
    listed = client.get("/api/appointments", headers=headers)

    assert created.status_code == 201
    assert listed.status_code == 200
    assert len(listed.json()) == 1


def test_public_routes_need_no_token(client, jane):
    assert client.get("/api/keepwake").status_code == 404
    assert client.get("/api/bill-details/555-0100").status_code == 404


@pytest.mark.parametrize("header", ["Basic YWRtaW46MDMwNA==", "Bearer"])
def test_non_bearer_or_empty_authorization_is_401(client, header):
    response = client.get("/api/appointments", headers={"Authorization": header})

    assert response.status_code == 401

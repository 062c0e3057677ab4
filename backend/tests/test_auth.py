from datetime import datetime, timedelta, timezone

import jwt
from fastapi.testclient import TestClient

from patrol.auth import TokenSubject, create_access_token, create_refresh_token, decode_token
from patrol.config import settings


def test_login_refresh_me_flow(client: TestClient) -> None:
    response = client.post(
        "/auth/login",
        json={"email": "operator@patrol.local", "password": "changeme"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["access_token"]
    assert data["user"]["email"] == "operator@patrol.local"
    assert data["user"]["role"] == "supervisor"

    me_response = client.get(
        "/me",
        headers={"Authorization": f"Bearer {data['access_token']}"},
    )
    assert me_response.status_code == 200
    assert me_response.json()["user"]["email"] == "operator@patrol.local"

    refresh_response = client.post("/auth/refresh")
    assert refresh_response.status_code == 200
    refresh_data = refresh_response.json()
    assert refresh_data["access_token"]

    me_again = client.get(
        "/me",
        headers={"Authorization": f"Bearer {refresh_data['access_token']}"},
    )
    assert me_again.status_code == 200


def test_invalid_login(client: TestClient) -> None:
    response = client.post(
        "/auth/login",
        json={"email": "wrong@example.com", "password": "nope"},
    )
    assert response.status_code == 401


def test_wrong_password(client: TestClient) -> None:
    response = client.post(
        "/auth/login",
        json={"email": "operator@patrol.local", "password": "nope"},
    )
    assert response.status_code == 401


def test_inactive_user_cannot_login(client: TestClient) -> None:
    response = client.post(
        "/auth/login",
        json={"email": "retired@patrol.local", "password": "retired"},
    )
    assert response.status_code == 403


def test_refresh_requires_cookie(client: TestClient) -> None:
    response = client.post("/auth/refresh")
    assert response.status_code == 401


def test_logout_clears_refresh_cookie(client: TestClient) -> None:
    client.post(
        "/auth/login",
        json={"email": "operator@patrol.local", "password": "changeme"},
    )
    assert client.post("/auth/logout").json() == {"ok": True}
    assert client.post("/auth/refresh").status_code == 401


def test_me_requires_token(client: TestClient) -> None:
    assert client.get("/me").status_code == 401


def test_refresh_token_is_not_an_access_token(client: TestClient, operator) -> None:
    subject = TokenSubject(user_id=operator.id, email=operator.email)
    refresh_token = create_refresh_token(subject)

    assert decode_token(refresh_token, expected_type="access") is None
    response = client.get("/me", headers={"Authorization": f"Bearer {refresh_token}"})
    assert response.status_code == 401


def test_token_for_other_email_is_rejected(client: TestClient, operator) -> None:
    token = create_access_token(TokenSubject(user_id=operator.id, email="someone@else.local"))
    response = client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_access_token_cookie_is_accepted(client: TestClient, operator) -> None:
    token = create_access_token(TokenSubject(user_id=operator.id, email=operator.email))
    client.cookies.set("access_token", token)
    response = client.get("/me")
    assert response.status_code == 200


def test_tokens_carry_only_identity_claims(operator) -> None:
    token = create_access_token(TokenSubject(user_id=operator.id, email=operator.email))
    claims = jwt.decode(token, options={"verify_signature": False})
    assert set(claims) == {"sub", "uid", "type", "iat", "exp"}
    assert claims["uid"] == operator.id


def test_expired_token_is_rejected(operator) -> None:
    issued_at = datetime.now(timezone.utc) - timedelta(hours=2)
    token = jwt.encode(
        {
            "sub": operator.email,
            "uid": operator.id,
            "type": "access",
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=30),
        },
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    assert decode_token(token, expected_type="access") is None

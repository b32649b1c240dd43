from datetime import timedelta

from homecare.config import LOGIN_RATE_LIMIT
from homecare.security_headers import security_headers
from homecare.security_utils import (
    create_access_token,
    generate_feed_token,
    validate_password_length,
    verify_access_token,
)

from conftest import PASSWORD


class TestSecurityUtils:
    def test_access_token_round_trip(self):
        token = create_access_token({"sub": "42", "role": "staff"})
        payload = verify_access_token(token)
        assert payload["sub"] == "42"
        assert payload["role"] == "staff"

    def test_expired_token_is_rejected(self):
        token = create_access_token({"sub": "42"}, expires_delta=timedelta(seconds=-10))
        assert verify_access_token(token) is None

    def test_garbage_token_is_rejected(self):
        assert verify_access_token("not.a.token") is None

    def test_password_length(self):
        assert validate_password_length("12345") is not None
        assert validate_password_length(None) is not None
        assert validate_password_length("123456") is None

    def test_feed_token_is_64_hex_chars(self):
        token = generate_feed_token()
        assert len(token) == 64
        int(token, 16)
        assert generate_feed_token() != token


class TestLogin:
    def test_login_returns_token_and_user(self, client, seed):
        response = client.post(
            "/api/auth/login", json={"email": "Staff@Acme.example.com ", "password": PASSWORD}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["email"] == "staff@acme.example.com"
        assert body["user"]["organization"]["code"] == "acme"

        payload = verify_access_token(body["access_token"])
        assert payload["sub"] == str(seed["users"]["staff"].id)
        assert payload["role"] == "staff"

    def test_wrong_password(self, client, seed):
        response = client.post(
            "/api/auth/login", json={"email": "staff@acme.example.com", "password": "nope-nope"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_unknown_email(self, client, seed):
        response = client.post(
            "/api/auth/login", json={"email": "ghost@example.com", "password": PASSWORD}
        )
        assert response.status_code == 401

    def test_inactive_user(self, client, db, seed):
        seed["users"]["staff"].is_active = False
        db.commit()
        response = client.post(
            "/api/auth/login", json={"email": "staff@acme.example.com", "password": PASSWORD}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Account is disabled"

    def test_inactive_organization(self, client, db, seed):
        seed["organizations"]["acme"].is_active = False
        db.commit()
        response = client.post(
            "/api/auth/login", json={"email": "staff@acme.example.com", "password": PASSWORD}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Organization is disabled"

    def test_login_records_last_login(self, client, db, seed):
        client.post("/api/auth/login", json={"email": "admin@acme.example.com", "password": PASSWORD})
        db.refresh(seed["users"]["admin"])
        assert seed["users"]["admin"].last_login is not None

    def test_login_is_rate_limited(self, client, seed):
        payload = {"email": "staff@acme.example.com", "password": "wrong-password"}
        for _ in range(LOGIN_RATE_LIMIT):
            assert client.post("/api/auth/login", json=payload).status_code == 401

        response = client.post("/api/auth/login", json=payload)
        assert response.status_code == 429
        assert "Retry-After" in response.headers


class TestMe:
    def test_me(self, client, auth_headers):
        response = client.get("/api/auth/me", headers=auth_headers("admin"))
        assert response.status_code == 200
        assert response.json()["role"] == "admin"

    def test_me_without_token(self, client, seed):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication required"

    def test_malformed_token(self, client, seed):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401

    def test_token_of_deactivated_user(self, client, db, seed, auth_headers):
        headers = auth_headers("staff")
        seed["users"]["staff"].is_active = False
        db.commit()
        assert client.get("/api/auth/me", headers=headers).status_code == 401


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_security_headers(self, client, seed, auth_headers):
        response = client.get("/api/auth/me", headers=auth_headers("admin"))
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Cache-Control"] == "no-store"

    def test_hsts_only_in_production(self):
        assert "Strict-Transport-Security" in security_headers(production=True)
        assert "Strict-Transport-Security" not in security_headers(production=False)

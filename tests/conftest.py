"""
Shared pytest fixtures.

Every test runs against a fresh in-memory SQLite database seeded with two
organizations, users of every role, facilities and patients.
"""

import os

# Configure the application before anything imports it
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "test"
os.environ["APP_TIMEZONE"] = "Asia/Tokyo"
os.environ.pop("REDIS_URL", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from homecare.database import Base, SessionLocal, engine, get_db  # noqa: E402
from homecare.domain.documents.storage import get_document_storage  # noqa: E402
from homecare.main import app  # noqa: E402
from homecare.models import (  # noqa: E402
    ROLE_ADMIN,
    ROLE_STAFF,
    ROLE_SUPER_ADMIN,
    ROLE_VIEWER,
    Facility,
    Organization,
    Patient,
    User,
)
from homecare.rate_limiter import reset_rate_limits  # noqa: E402
from homecare.security_utils import create_access_token, hash_password  # noqa: E402

PASSWORD = "password123"
# Hashing once keeps the per-test seed fast
PASSWORD_HASH = hash_password(PASSWORD)


class FakeStorage:
    """In-memory stand-in for the S3 bucket"""

    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.fail_uploads = False

    def upload(self, key: str, body: bytes, content_type: str) -> None:
        if self.fail_uploads:
            raise RuntimeError("storage unavailable")
        self.objects[key] = (body, content_type)

    def presigned_url(self, key: str, expiration: int = 3600) -> str:
        return f"https://storage.test/{key}?expires={expiration}"

    def delete(self, key: str) -> None:
        self.objects.pop(key, None)


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture
def db():
    """Fresh schema and a session shared with the application"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seed(db):
    """
    Two tenants. "acme" has one user per role, a grouped and an individual
    facility and three patients; "other" has an admin and one patient.
    """
    acme = Organization(name="Acme Care", code="acme", is_active=True)
    other = Organization(name="Other Care", code="other", is_active=True)
    db.add_all([acme, other])
    db.flush()

    def user(email, name, role, organization):
        u = User(
            email=email,
            name=name,
            role=role,
            password_hash=PASSWORD_HASH,
            organization_id=organization.id if organization else None,
            is_active=True,
        )
        db.add(u)
        return u

    users = {
        "super_admin": user("root@example.com", "Root", ROLE_SUPER_ADMIN, None),
        "admin": user("admin@acme.example.com", "Alice Admin", ROLE_ADMIN, acme),
        "staff": user("staff@acme.example.com", "Sam Staff", ROLE_STAFF, acme),
        "viewer": user("viewer@acme.example.com", "Vera Viewer", ROLE_VIEWER, acme),
        "other_admin": user("admin@other.example.com", "Oscar Other", ROLE_ADMIN, other),
    }
    db.flush()

    sunrise = Facility(
        organization_id=acme.id,
        name="Sunrise Home",
        address="1-2-3 Chuo, Tokyo",
        display_mode="grouped",
        is_active=True,
    )
    maple = Facility(
        organization_id=acme.id,
        name="Maple House",
        display_mode="individual",
        is_active=True,
    )
    db.add_all([sunrise, maple])
    db.flush()

    patients = {
        "tanaka": Patient(
            organization_id=acme.id,
            facility_id=sunrise.id,
            name="Tanaka Taro",
            name_kana="タナカ タロウ",
            phone="03-1234-5678",
            is_active=True,
        ),
        "suzuki": Patient(
            organization_id=acme.id,
            facility_id=sunrise.id,
            name="Suzuki Hanako",
            name_kana="スズキ ハナコ",
            is_active=True,
        ),
        "home": Patient(
            organization_id=acme.id,
            name="Yamada Ichiro",
            name_kana="ヤマダ イチロウ",
            address="4-5-6 Kita, Tokyo",
            is_active=True,
        ),
        "foreign": Patient(organization_id=other.id, name="Other Patient", is_active=True),
    }
    db.add_all(patients.values())
    db.commit()

    return {
        "organizations": {"acme": acme, "other": other},
        "users": users,
        "facilities": {"sunrise": sunrise, "maple": maple},
        "patients": patients,
    }


# ============================================================================
# APPLICATION FIXTURES
# ============================================================================


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def client(db, storage):
    """TestClient bound to the test session and the fake storage"""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_document_storage] = lambda: storage
    reset_rate_limits()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        reset_rate_limits()


def token_for(user: User) -> str:
    return create_access_token({"sub": str(user.id), "role": user.role, "org": user.organization_id})


@pytest.fixture
def auth_headers(seed):
    """Authorization headers per seeded user key"""

    def headers(key: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token_for(seed['users'][key])}"}

    return headers

import os

os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("SEED_DEV_USER", "false")
os.environ.setdefault("SEED_SHIFT_WINDOWS", "false")
os.environ.setdefault("COOKIE_SECURE", "false")
os.environ.setdefault("COOKIE_SAMESITE", "lax")
os.environ.setdefault("SHIFT_TIMEZONE", "America/Lima")

from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy import delete  # noqa: E402

from patrol.db import Base, SessionLocal, engine  # noqa: E402
from patrol.main import app  # noqa: E402
from patrol.models import ShiftWindowEvent, ShiftWindowRecord, User  # noqa: E402
from patrol.security import hash_password  # noqa: E402

OPERATOR_EMAIL = "operator@patrol.local"
OPERATOR_PASSWORD = "changeme"


def _reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        db.add(
            User(
                email=OPERATOR_EMAIL,
                name="Duty Operator",
                password_hash=hash_password(OPERATOR_PASSWORD),
                is_admin=True,
                role="supervisor",
            )
        )
        db.add(
            User(
                email="retired@patrol.local",
                name="Retired Operator",
                password_hash=hash_password("retired"),
                role="operator",
                is_active=False,
            )
        )
        db.commit()


_reset_db()


@pytest.fixture(autouse=True)
def _clean_catalog():
    with SessionLocal() as db:
        db.execute(delete(ShiftWindowEvent))
        db.execute(delete(ShiftWindowRecord))
        db.commit()
    yield


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture()
def db():
    with SessionLocal() as session:
        yield session


@pytest.fixture()
def operator(db) -> User:
    return db.query(User).filter_by(email=OPERATOR_EMAIL).one()


@pytest.fixture()
def auth_headers(client: TestClient) -> dict[str, str]:
    response = client.post(
        "/auth/login",
        json={"email": OPERATOR_EMAIL, "password": OPERATOR_PASSWORD},
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}

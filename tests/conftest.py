import os

# must be set before orderdesk.core.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient

from orderdesk.core.rate_limit import InMemoryRateLimitStore
from orderdesk.core.security import hash_password
from orderdesk.db.base import Base
from orderdesk.db.init_db import seed
from orderdesk.db.session import SessionLocal, engine
from orderdesk.main import app
from orderdesk.models import Lead, User, UserRoleType
from orderdesk.services.rbac_helpers import default_employee_role, ensure_first_admin
from orderdesk.utils.jwt import create_access_token


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    seed(session)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db):
    app.state.rate_limiter = InMemoryRateLimitStore(limit=10_000, window_ms=60_000)
    with TestClient(app) as c:
        yield c


def make_user(db, name, email, *, role=UserRoleType.EMPLOYEE, password="secret123",
              is_active=True, with_default_role=True):
    u = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role.value,
        is_active=is_active,
    )
    if role == UserRoleType.EMPLOYEE and with_default_role:
        u.roles = [default_employee_role(db)]
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def make_lead(db, owner, **kw):
    data = {"name": "Patient", "phone": "9000000000"}
    data.update(kw)
    lead = Lead(assigned_to=owner.id, **data)
    db.add(lead)
    db.commit()
    db.refresh(lead)
    return lead


def auth_headers(user):
    token = create_access_token(user_id=user.id, role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin(db):
    return ensure_first_admin(db)


@pytest.fixture()
def employee(db):
    return make_user(db, "Emp One", "emp1@example.com")


@pytest.fixture()
def other_employee(db):
    return make_user(db, "Emp Two", "emp2@example.com")


@pytest.fixture()
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture()
def employee_headers(employee):
    return auth_headers(employee)


@pytest.fixture()
def other_headers(other_employee):
    return auth_headers(other_employee)

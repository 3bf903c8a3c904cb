"""
Pytest fixtures for the asset lifecycle test suite.

Provides:
- A fresh SQLite file database per test (WAL, busy timeout, foreign keys on)
- A session factory for tests that need one session per thread
- Seed-row helpers for users, organizations, assets and packages
- A FastAPI TestClient with get_db pointed at the test database
"""
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import app.models  # noqa: F401  (registers every table on Base.metadata)
from app.core.auth import CallerIdentity, create_session
from app.core.config import SESSION_COOKIE_NAME
from app.core.database import Base, build_engine, get_db
from app.models.asset import Asset
from app.models.subscription_package import SubscriptionPackage
from app.models.user import User
from app.services.organization import create_organization


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'assetverse_test.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    """Create a user. Emails are generated unless given."""
    counter = {"n": 0}

    def _make_user(role: str = "employee", email: str = None, full_name: str = None, **kwargs) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"{role}{counter['n']}@example.com",
            full_name=full_name or f"{role.title()} {counter['n']}",
            role=role,
            **kwargs,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_organization(db, make_user):
    """Create an organization with its own admin; returns (organization, admin identity)."""

    def _make_organization(name: str = "Acme", employee_limit: int = 5, subscription_tier: str = None):
        admin = make_user(role="admin")
        organization = create_organization(
            db, admin.id, name, employee_limit=employee_limit, subscription_tier=subscription_tier
        )
        identity = CallerIdentity(subject_id=admin.id, role="admin", organization_id=organization.id)
        return organization, identity

    return _make_organization


@pytest.fixture
def make_asset(db):
    def _make_asset(
        organization_id: int,
        name: str = "Laptop",
        asset_type: str = "Returnable",
        total_quantity: int = 3,
        available_quantity: int = None,
    ) -> Asset:
        asset = Asset(
            name=name,
            asset_type=asset_type,
            total_quantity=total_quantity,
            available_quantity=total_quantity if available_quantity is None else available_quantity,
            owner_organization_id=organization_id,
        )
        db.add(asset)
        db.commit()
        db.refresh(asset)
        return asset

    return _make_asset


@pytest.fixture
def make_package(db):
    def _make_package(name: str = "standard", employee_limit: int = 10, price: str = "8.00") -> SubscriptionPackage:
        package = SubscriptionPackage(
            name=name,
            employee_limit=employee_limit,
            price=Decimal(price),
            features=[f"Up to {employee_limit} employees"],
        )
        db.add(package)
        db.commit()
        db.refresh(package)
        return package

    return _make_package


@pytest.fixture
def make_employee(make_user):
    """Create an employee; returns (user, identity)."""

    def _make_employee(**kwargs):
        user = make_user(role="employee", **kwargs)
        return user, CallerIdentity(subject_id=user.id, role="employee")

    return _make_employee


@pytest.fixture
def workspace(make_organization, make_asset, make_employee):
    """One organization with a returnable and a non-returnable asset and one employee."""
    organization, admin = make_organization()
    laptop = make_asset(organization.id, name="Laptop", asset_type="Returnable", total_quantity=3)
    paper = make_asset(organization.id, name="Printer paper", asset_type="NonReturnable", total_quantity=10)
    employee_user, employee = make_employee()
    return SimpleNamespace(
        organization=organization,
        admin=admin,
        laptop=laptop,
        paper=paper,
        employee_user=employee_user,
        employee=employee,
    )


@pytest.fixture
def client(session_factory):
    from app.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # Not used as a context manager: startup hooks (scheduler) stay off
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Cookie header carrying a signed session for the given user."""

    def _auth_headers(user_id: int, role: str) -> dict:
        return {"Cookie": f"{SESSION_COOKIE_NAME}={create_session(user_id, role)}"}

    return _auth_headers

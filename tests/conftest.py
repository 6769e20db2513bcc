"""
Shared fixtures: one in-memory database for the whole run, recreated for every test.
"""
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from adboard.main import app
from adboard.core.database import Base, get_db

# Setup In-Memory Database
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def test_db():
    Base.metadata.create_all(bind=engine)
    app.state.lookups.reset()
    yield
    app.state.lookups.reset()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def make_billboard(id=1, size="4x12", level="A", faces_count=2, price=0.0, name=None, **extra):
    """Plain stand-in for a Billboard row in pure service tests."""
    values = dict(
        id=id,
        name=name or f"Billboard {id}",
        size=size,
        level=level,
        faces_count=faces_count,
        price=price,
        city=None,
        municipality=None,
        landmark=None,
        image_url=None,
        coordinates=None,
        status=None,
        contract_id=None,
        customer_name=None,
        rent_start_date=None,
        rent_end_date=None,
    )
    values.update(extra)
    return SimpleNamespace(**values)


@pytest.fixture
def billboard_factory():
    return make_billboard

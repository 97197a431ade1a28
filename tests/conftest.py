"""
Shared test fixtures: SQLite test database, test client, sample products.
"""

import os
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set DATABASE_URL before importing app modules
os.environ["DATABASE_URL"] = "sqlite:///./test.db"

from timberyard.database import Base, get_db
from timberyard.main import app
from timberyard.schemas import ShippingPolicy


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def policy():
    """Delivery policy used in the worked examples: free over £500, £35 min, £50/m³."""
    return ShippingPolicy(
        free_delivery_threshold=500.0,
        min_delivery_charge=35.0,
        shipping_rate_per_cubic_meter=50.0,
    )


@pytest.fixture
def garage_product(client):
    """A garage with a £1000 base price, created through the API."""
    response = client.post("/api/products/", json={
        "name": "Oak Frame Garage",
        "category": "garage",
        "base_price": 1000.0,
    })
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def beam_product(client):
    """Oak beams at £800 per m³."""
    response = client.post("/api/products/", json={
        "name": "Green Oak Beam",
        "category": "oak_beam",
        "base_price": 800.0,
    })
    assert response.status_code == 201
    return response.json()

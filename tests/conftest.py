import os

# must be set before app.database builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_taskboard.db")

import uuid
import pytest
from fastapi.testclient import TestClient
from app.main import app
from app.database import SessionLocal, Base, engine
from app.models.user import User

PASSWORD = "SecurePass123!"


# Recreate all tables for each test
@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def signed_up():
    """Factory for signed-up clients; each TestClient keeps its own session cookie."""
    def _make(name: str):
        c = TestClient(app)
        email = f"{name.lower()}_{uuid.uuid4().hex[:8]}@example.com"
        r = c.post("/auth/signup", json={"email": email, "password": PASSWORD, "name": name})
        assert r.status_code == 200, r.text
        c.user = r.json()["user"]
        return c
    return _make


@pytest.fixture
def make_user(db):
    """Insert a user row directly, bypassing the HTTP layer."""
    def _make(name: str) -> User:
        user = User(email=f"{name.lower()}_{uuid.uuid4().hex[:8]}@example.com", password="x", name=name)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make

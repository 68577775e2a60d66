import os

# must be set before src.config is imported
os.environ.setdefault("DATABASE_URL", "mongodb://localhost:27017")
os.environ.setdefault("MONGO_DB_NAME", "blog_test")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import mongomock
import pytest
from fastapi.testclient import TestClient

from src.database.connection import get_db
from src.main import app
from src.utils.security import create_access_token


@pytest.fixture
def db():
    return mongomock.MongoClient()["blog_test"]


@pytest.fixture
def client(db):
    # no `with`: the lifespan (real MongoClient) is not started
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _make_user(db, name, email):
    res = db.users.insert_one({"name": name, "email": email, "password": "x"})
    return db.users.find_one({"_id": res.inserted_id})


@pytest.fixture
def alice(db):
    return _make_user(db, "Alice", "alice@example.com")


@pytest.fixture
def bob(db):
    return _make_user(db, "Bob", "bob@example.com")


def auth_header(user):
    token = create_access_token({"sub": str(user["_id"])})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice_headers(alice):
    return auth_header(alice)


@pytest.fixture
def bob_headers(bob):
    return auth_header(bob)

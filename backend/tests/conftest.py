import os

# point the app at a throwaway in-memory database before ims is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""

import pytest
from fastapi.testclient import TestClient

from ims.database import Base, SessionLocal, engine
from ims.main import app

# fixed evaluation instant for ledger tests: 2025-06-15T15:06:40Z
NOW = 1_750_000_000_000


@pytest.fixture(autouse=True)
def create_test_db():
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
def now():
    return NOW

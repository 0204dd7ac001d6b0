import os
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["REDIS_URL"] = "redis://localhost:6399/0"

from numero.database import Base, SessionLocal, engine  # noqa: E402
from numero.limiter import limiter  # noqa: E402
from numero.main import app  # noqa: E402


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    limiter.reset()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client():
    # No Redis in tests: the lifespan falls back to inline scans immediately.
    with patch("numero.main.create_pool", AsyncMock(side_effect=ConnectionError("redis unavailable"))):
        with TestClient(app) as c:
            yield c


@pytest.fixture()
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def make_profile(client):
    def _make(first_name="John", last_name="Smith", birth_date="1994-11-29", **extra):
        payload = {"first_name": first_name, "last_name": last_name, "birth_date": birth_date, **extra}
        resp = client.post("/v1/profiles", json=payload)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make

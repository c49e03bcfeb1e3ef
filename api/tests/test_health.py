from fastapi.testclient import TestClient

from jobly.core.db import Database, get_database
from jobly.main import app


def test_healthz() -> None:
    client = TestClient(app)
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_readyz_without_database_url_returns_503() -> None:
    app.dependency_overrides[get_database] = lambda: Database(
        database_url=None,
        min_pool_size=1,
        max_pool_size=1,
        command_timeout=1.0,
    )
    try:
        response = TestClient(app).get("/readyz")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 503
    assert response.json()["detail"] == "JOBLY_DATABASE_URL is required"

import pytest

pytest.importorskip("httpx")

from fastapi.testclient import TestClient

from peermarks.main import app


def test_health_reports_database_status(engine) -> None:
    with TestClient(app) as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True, "db_ok": True}

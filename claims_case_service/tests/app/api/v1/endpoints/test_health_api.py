# Unit Tests for the health check endpoint
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError


def test_health_check_db_ok(client_fixture: TestClient, mock_db):
    response = client_fixture.get("/health")

    assert response.status_code == 200
    assert response.json()["components"]["mongodb"] == "connected"
    mock_db.command.assert_awaited_once_with("ping")


def test_health_check_db_down(client_fixture: TestClient, mock_db):
    mock_db.command = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))

    response = client_fixture.get("/health")

    assert response.status_code == 200
    assert response.json()["components"]["mongodb"] == "disconnected"

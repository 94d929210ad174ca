import pytest
from fastapi.testclient import TestClient

from claims_case_service.app.dependencies.auth import get_current_user
from claims_case_service.app.main import app
from claims_case_service.infrastructure.database.connection import get_db


@pytest.fixture
def acting_user(employee_user):
    return employee_user


@pytest.fixture
def client_fixture(mock_db, acting_user):
    async def override_get_db():
        yield mock_db

    async def override_get_current_user():
        return acting_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    yield TestClient(app)
    app.dependency_overrides = {}


@pytest.fixture
def admin_client(mock_db, admin_user):
    async def override_get_db():
        yield mock_db

    async def override_get_current_user():
        return admin_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    yield TestClient(app)
    app.dependency_overrides = {}

import asyncio
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from learnify.core.decorator import db_exception
from learnify.core.exceptions import (
    AuthorizationError,
    ConflictError,
    InternalError,
    NotFoundError,
)
from main import create_app


class Service:
    def __init__(self, error):
        self.db = MagicMock()
        self.error = error

    @db_exception
    def write(self):
        raise self.error

    @db_exception
    async def write_async(self):
        raise self.error


def test_integrity_error_becomes_conflict():
    service = Service(IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed")))

    with pytest.raises(ConflictError):
        service.write()
    service.db.rollback.assert_called_once()


def test_stale_data_becomes_conflict():
    service = Service(StaleDataError("version mismatch"))

    with pytest.raises(ConflictError) as exc_info:
        service.write()
    assert exc_info.value.status_code == 409


def test_other_database_errors_are_internal():
    service = Service(OperationalError("SELECT 1", {}, Exception("gone")))

    with pytest.raises(InternalError) as exc_info:
        service.write()
    assert exc_info.value.is_operational is False


def test_async_methods_are_wrapped():
    service = Service(StaleDataError("version mismatch"))

    with pytest.raises(ConflictError):
        asyncio.run(service.write_async())


def test_app_errors_pass_through_untouched():
    service = Service(NotFoundError("Course not found"))

    with pytest.raises(NotFoundError):
        service.write()
    service.db.rollback.assert_not_called()


def test_error_status_labels():
    assert NotFoundError().status == "fail"
    assert AuthorizationError().status_code == 403
    assert InternalError().status == "error"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/v1/does-not-exist")

    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["status"] == "fail"
    assert "/api/v1/does-not-exist" in body["message"]


def test_development_errors_include_stack(client):
    body = client.get("/api/v1/courses/12345").json()

    assert body["message"] == "Course not found"
    assert "stack" in body


def test_production_errors_hide_stack(settings, database, media_store, payment_gateway, mail_sender):
    settings.production = True
    app = create_app(
        settings,
        database=database,
        media_store=media_store,
        payment_gateway=payment_gateway,
        mail_sender=mail_sender,
    )
    with TestClient(app) as client:
        body = client.get("/api/v1/courses/12345").json()

    assert body == {"success": False, "status": "fail", "message": "Course not found"}


def test_request_headers_are_added(client):
    response = client.get("/", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"
    assert "X-Process-Time" in response.headers

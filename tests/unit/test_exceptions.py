"""Tests unitaires pour les exceptions métier et l'enveloppe d'erreur JSON."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from app.core.exceptions import (
    ConflictError,
    DuplicateProspectError,
    ForbiddenError,
    InvalidReferenceError,
    NotFoundError,
    ServiceUnavailableError,
    UnauthorizedError,
    ValidationError,
    setup_exception_handlers,
)


class TestAppExceptions:
    @pytest.mark.parametrize(
        ("exc_class", "status_code", "code"),
        [
            (ValidationError, 400, "VALIDATION_ERROR"),
            (InvalidReferenceError, 400, "INVALID_REFERENCE"),
            (UnauthorizedError, 401, "NO_TOKEN"),
            (ForbiddenError, 403, "INSUFFICIENT_PERMISSION"),
            (NotFoundError, 404, "NOT_FOUND"),
            (ConflictError, 409, "CONFLICT"),
            (ServiceUnavailableError, 503, "SERVICE_UNAVAILABLE"),
        ],
    )
    def test_defaults(self, exc_class, status_code, code):
        exc = exc_class()

        assert exc.status_code == status_code
        assert exc.code == code
        assert exc.to_dict() == {"success": False, "error": exc.default_message, "code": code}

    def test_custom_code_and_details(self):
        exc = ForbiddenError(error="Prospect hors de votre scope", code="OUT_OF_SCOPE")

        assert exc.to_dict() == {
            "success": False,
            "error": "Prospect hors de votre scope",
            "code": "OUT_OF_SCOPE",
        }
        assert str(exc) == "Prospect hors de votre scope"

    def test_custom_code_does_not_leak_to_class(self):
        ForbiddenError(code="OUT_OF_SCOPE")

        assert ForbiddenError().code == "INSUFFICIENT_PERMISSION"

    def test_invalid_reference_details(self):
        exc = InvalidReferenceError(details=["Ville introuvable: city-404"])

        assert exc.to_dict()["details"] == ["Ville introuvable: city-404"]

    def test_duplicate_prospect_carries_existing(self):
        exc = DuplicateProspectError(existing={"id": "12345678"}, reason="Doublon")

        assert exc.status_code == 409
        assert exc.to_dict() == {
            "success": False,
            "error": "Ce prospect existe déjà dans ce segment",
            "code": "DUPLICATE_PROSPECT",
            "details": {"reason": "Doublon"},
            "data": {"id": "12345678"},
        }


class Payload(BaseModel):
    count: int


@pytest.fixture
def client():
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/not-found")
    async def not_found():
        raise NotFoundError(error="Prospect non trouvé")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("secret internals")

    @app.post("/payload")
    async def payload(body: Payload):
        return body

    return TestClient(app, raise_server_exceptions=False)


class TestExceptionHandlers:
    def test_app_exception_envelope(self, client):
        response = client.get("/not-found")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": "Prospect non trouvé",
            "code": "NOT_FOUND",
        }

    def test_request_validation_is_400(self, client):
        response = client.post("/payload", json={"count": "abc"})

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["success"] is False
        assert body["details"]

    def test_unknown_route(self, client):
        response = client.get("/missing")

        assert response.status_code == 404
        assert response.json()["code"] == "HTTP_404"

    def test_unhandled_exception_hides_message(self, client):
        response = client.get("/boom")

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "INTERNAL_ERROR"
        assert "secret internals" not in response.text

"""
Exceptions métier et handlers FastAPI pour core-gestion-pl.

Toutes les erreurs renvoyées par l'API partagent la même enveloppe JSON:

    {"success": false, "error": "<message>", "code": "<CODE>", "details": [...]}

Les services lèvent les sous-classes de AppException; setup_exception_handlers()
les traduit en réponses HTTP. Les exceptions inattendues sont journalisées et
renvoyées en 500 INTERNAL_ERROR (message exposé uniquement en DEBUG).
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings

logger = logging.getLogger(__name__)


class AppException(Exception):
    """
    Exception de base de l'application.

    Attributes:
        status_code: Code HTTP renvoyé au client
        code: Code d'erreur stable (ex: "OUT_OF_SCOPE")
        error: Message lisible (français)
        details: Informations complémentaires optionnelles
        extra: Champs additionnels fusionnés dans le corps de la réponse
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    default_message: str = "Erreur interne du serveur"

    def __init__(
        self,
        error: str | None = None,
        code: str | None = None,
        details: Any = None,
        extra: dict[str, Any] | None = None,
    ):
        self.error = error or self.default_message
        if code:
            self.code = code
        self.details = details
        self.extra = extra or {}
        super().__init__(self.error)

    def to_dict(self) -> dict[str, Any]:
        """Construit le corps JSON de la réponse d'erreur."""
        body: dict[str, Any] = {"success": False, "error": self.error, "code": self.code}
        if self.details is not None:
            body["details"] = self.details
        body.update(self.extra)
        return body


class ValidationError(AppException):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    default_message = "Données invalides"


class InvalidReferenceError(ValidationError):
    """Référence (clé étrangère) vers un enregistrement inexistant."""

    code = "INVALID_REFERENCE"
    default_message = "Validation des références échouée"


class UnauthorizedError(AppException):
    """Token absent ou expiré (401)."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "NO_TOKEN"
    default_message = "Authentification requise"


class ForbiddenError(AppException):
    """Token invalide, permission manquante ou ressource hors scope (403)."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "INSUFFICIENT_PERMISSION"
    default_message = "Permission insuffisante"


class NotFoundError(AppException):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Ressource introuvable"


class ConflictError(AppException):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_message = "Conflit avec une ressource existante"


class ServiceUnavailableError(AppException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "SERVICE_UNAVAILABLE"
    default_message = "Service temporairement indisponible"


class DuplicateProspectError(ConflictError):
    """
    Prospect déjà présent dans le segment et non réinjectable.

    Le prospect existant est renvoyé dans le champ "data" de la réponse.
    """

    code = "DUPLICATE_PROSPECT"
    default_message = "Ce prospect existe déjà dans ce segment"

    def __init__(self, existing: dict[str, Any], reason: str | None = None):
        super().__init__(
            details={"reason": reason} if reason else None,
            extra={"data": existing},
        )


# =============================================================================
# Handlers FastAPI
# =============================================================================


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code} sur {request.method} {request.url.path}: {exc.error}")
    else:
        logger.info(f"{exc.code} sur {request.method} {request.url.path}: {exc.error}")
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Erreurs de validation Pydantic des requêtes → 400 VALIDATION_ERROR."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder(
            {
                "success": False,
                "error": "Données invalides",
                "code": "VALIDATION_ERROR",
                "details": exc.errors(),
            }
        ),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail), "code": f"HTTP_{exc.status_code}"},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler global pour les exceptions non gérées.

    Journalise la trace complète et renvoie une erreur 500 générique.
    """
    logger.error(
        f"Exception non gérée dans {request.method} {request.url.path}: {exc}",
        exc_info=True,
        extra={
            "method": request.method,
            "path": request.url.path,
            "error_type": type(exc).__name__,
        },
    )
    body: dict[str, Any] = {
        "success": False,
        "error": "Erreur interne du serveur",
        "code": "INTERNAL_ERROR",
    }
    if settings.DEBUG:
        body["details"] = {"message": str(exc), "error_type": type(exc).__name__}
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Enregistre les handlers d'exceptions sur l'application FastAPI.

    Args:
        app: Instance FastAPI
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    logger.debug("Handlers d'exceptions enregistrés")


__all__ = [
    "AppException",
    "ConflictError",
    "DuplicateProspectError",
    "ForbiddenError",
    "InvalidReferenceError",
    "NotFoundError",
    "UnauthorizedError",
    "ValidationError",
    "setup_exception_handlers",
]

"""
Enveloppes de réponses de l'API et schémas OpenAPI des erreurs.

Succès:  {"success": true, "data": ..., "message": "..."}
Erreur:  {"success": false, "error": "...", "code": "...", "details": ...}
"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class SuccessResponse(BaseModel, Generic[T]):
    success: bool = Field(default=True, description="Toujours true pour une réponse de succès")
    data: T
    message: str | None = Field(default=None, description="Message informatif optionnel")


class ErrorResponse(BaseModel):
    success: bool = Field(default=False)
    error: str = Field(..., description="Message d'erreur lisible", examples=["Permission insuffisante"])
    code: str = Field(..., description="Code d'erreur stable", examples=["INSUFFICIENT_PERMISSION"])
    details: Any | None = Field(default=None, description="Détails complémentaires")


def build_responses(*status_codes: int) -> dict[int | str, dict[str, Any]]:
    """Construit le dictionnaire ``responses`` d'un endpoint pour les codes donnés."""
    descriptions = {
        400: "Requête invalide",
        401: "Token absent ou expiré",
        403: "Token invalide, permission manquante ou hors scope",
        404: "Ressource introuvable",
        409: "Conflit avec une ressource existante",
        500: "Erreur interne",
    }
    return {
        code: {"model": ErrorResponse, "description": descriptions.get(code, "Erreur")}
        for code in status_codes
    }


COMMON_RESPONSES = build_responses(400, 401, 403, 500)


__all__ = ["COMMON_RESPONSES", "ErrorResponse", "SuccessResponse", "build_responses"]

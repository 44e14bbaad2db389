"""Pré-validation des clés étrangères avant INSERT/UPDATE.

Transforme une référence invalide en erreur 400 explicite au lieu d'une
violation de contrainte remontée en 500.

Usage:
    await validate_foreign_keys(
        db,
        {
            "segment_id": (Segment, data.segment_id),
            "ville_id": (City, data.ville_id),
        },
    )
"""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidReferenceError

logger = logging.getLogger(__name__)

# Libellés lisibles des champs de référence
FIELD_LABELS = {
    "segment_id": "Segment",
    "ville_id": "Ville",
    "rdv_centre_ville_id": "Centre RDV",
    "assigned_to": "Utilisateur assigné",
    "role_id": "Rôle",
    "created_by": "Créateur",
}


async def validate_foreign_keys(db: AsyncSession, references: dict[str, tuple[type, Any]]) -> None:
    """
    Vérifie que chaque référence non nulle pointe vers un enregistrement existant.

    Args:
        db: Session de base de données
        references: {nom_du_champ: (Modèle, valeur)}

    Raises:
        InvalidReferenceError: Si au moins une référence est introuvable (details = liste)
    """
    errors = []
    for field, (model, value) in references.items():
        if value is None or value == "":
            continue
        result = await db.execute(select(model.id).where(model.id == value))
        if result.scalar_one_or_none() is None:
            label = FIELD_LABELS.get(field, field)
            errors.append(f"{label} introuvable: {value}")

    if errors:
        logger.info(f"Références invalides: {errors}")
        raise InvalidReferenceError(details=errors)


def integrity_error_to_invalid_reference(exc: IntegrityError) -> InvalidReferenceError:
    """Convertit une violation de contrainte résiduelle en erreur 400."""
    logger.warning(f"Violation de contrainte d'intégrité: {exc.orig}")
    return InvalidReferenceError(error="Référence invalide", details=[str(exc.orig)])

"""Annotations Pydantic réutilisables pour validation.

Ce module centralise les types annotés pour assurer la cohérence
de la validation à travers tous les schémas Pydantic du service.
"""

from typing import Annotated

from pydantic import Field, StringConstraints

# Téléphone saisi librement (normalisé côté service)
RawPhone = Annotated[
    str,
    StringConstraints(min_length=1, max_length=50, strip_whitespace=True),
    Field(
        description="Numéro tel que saisi (espaces, tirets, +, 00 acceptés)",
        examples=["06 12 34 56 78", "+33 6 12 34 56 78"],
    ),
]

# Identifiants
SegmentId = Annotated[str, Field(max_length=50, description="ID du segment")]
CityId = Annotated[str, Field(max_length=50, description="ID de la ville")]

# Textes
PersonName = Annotated[str, StringConstraints(max_length=255, strip_whitespace=True)]
Comment = Annotated[str, Field(max_length=2000, description="Commentaire libre")]
Title = Annotated[str, Field(min_length=1, max_length=255, description="Titre")]

# Carte d'identité nationale
NationalId = Annotated[
    str,
    StringConstraints(max_length=50, strip_whitespace=True),
    Field(description="Numéro de CIN"),
]

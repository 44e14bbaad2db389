"""Schémas Pydantic des prospects, de la réinjection et du nettoyage."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.responses import SuccessResponse
from app.schemas.utils import (
    CityId,
    Comment,
    NationalId,
    PersonName,
    RawPhone,
    SegmentId,
)


class PhoneNormalization(BaseModel):
    """Résultat de la normalisation d'un numéro de téléphone."""

    valid: bool
    phone_international: str | None = Field(default=None, examples=["+212612345678"])
    country_code: str | None = Field(default=None, examples=["212"])
    country: str | None = Field(default=None, examples=["Morocco"])
    error: str | None = None


class CountryCode(BaseModel):
    country_code: str
    country: str
    expected_national_length: int
    region: str | None = None

    model_config = {"from_attributes": True}


class ProspectCreate(BaseModel):
    phone: RawPhone
    segment_id: SegmentId | None = Field(default=None, description="Segment obligatoire")
    ville_id: CityId | None = None
    nom: PersonName | None = None
    prenom: PersonName | None = None
    cin: NationalId | None = None
    assigned_to: str | None = None
    commentaire: Comment | None = None


class ProspectUpdate(BaseModel):
    nom: PersonName | None = None
    prenom: PersonName | None = None
    cin: NationalId | None = None
    statut_contact: str | None = Field(default=None, examples=["contacté avec rdv"])
    date_rdv: datetime | None = None
    rdv_centre_ville_id: CityId | None = None
    commentaire: Comment | None = None


class ProspectReinject(BaseModel):
    """Données optionnelles fournies lors d'une réinjection."""

    ville_id: CityId | None = None
    nom: PersonName | None = None
    prenom: PersonName | None = None


class ProspectResponse(BaseModel):
    id: str
    phone_raw: str
    phone_international: str
    country_code: str | None = None
    country: str | None = None
    statut_validation_numero: str
    nom: str | None = None
    prenom: str | None = None
    cin: str | None = None
    segment_id: str
    ville_id: str | None = None
    assigned_to: str | None = None
    statut_contact: str
    date_rdv: datetime | None = None
    rdv_centre_ville_id: str | None = None
    date_injection: datetime | None = None
    decision_nettoyage: str | None = None
    commentaire: str | None = None
    historique_rdv: str | None = None
    historique_villes: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ReinjectionDecision(BaseModel):
    can_reinject: bool
    reason: str


class ProspectResolution(BaseModel):
    """Issue de la résolution doublon / réinjection lors d'une création."""

    action: Literal["created", "reinjected", "duplicate"]
    prospect: ProspectResponse
    reason: str | None = None

    @property
    def reinjected(self) -> bool:
        return self.action == "reinjected"


# =============================================================================
# Nettoyage
# =============================================================================


class CleaningBatchResult(BaseModel):
    laisser: int = 0
    supprimer: int = 0
    a_revoir: int = 0
    total: int = 0


class CleaningDecisionStats(BaseModel):
    total: int = 0
    non_contactes: int = 0
    avec_rdv: int = 0


class CleaningStats(BaseModel):
    laisser: CleaningDecisionStats = Field(default_factory=CleaningDecisionStats)
    supprimer: CleaningDecisionStats = Field(default_factory=CleaningDecisionStats)
    a_revoir_manuelle: CleaningDecisionStats = Field(default_factory=CleaningDecisionStats)


class ProspectsToDelete(BaseModel):
    prospects: list[ProspectResponse]
    total: int
    limit: int
    offset: int


class DeletionResult(BaseModel):
    deleted: int = 0
    message: str


class BatchCleanRequest(BaseModel):
    execute_deletion: bool = Field(
        default=False, description="Ignoré: la suppression automatique est désactivée"
    )


class BatchCleanResult(BaseModel):
    clean_stats: CleaningBatchResult
    delete_stats: DeletionResult


class ProspectCreateResponse(SuccessResponse[ProspectResponse]):
    """Réponse de création: 201 (créé) ou 200 (réinjecté)."""

    reinjected: bool = False


# =============================================================================
# Import en masse
# =============================================================================


class ProspectImportLine(BaseModel):
    """Ligne d'import: la ville est désignée par son nom dans le segment."""

    phone: str = Field(..., max_length=50, examples=["06 12 34 56 78"])
    ville: str | None = Field(default=None, max_length=255, examples=["Casablanca"])
    nom: PersonName | None = None
    prenom: PersonName | None = None


class ProspectImportRequest(BaseModel):
    segment_id: SegmentId | None = Field(default=None, description="Segment obligatoire")
    lines: list[ProspectImportLine] = Field(..., min_length=1, max_length=5000)


class ProspectImportLineResult(BaseModel):
    line: int = Field(..., description="Numéro de ligne (à partir de 1)")
    phone: str
    status: Literal["created", "reinjected", "duplicate", "error"]
    prospect_id: str | None = None
    error: str | None = None


class ProspectImportSummary(BaseModel):
    created: int = 0
    reinjected: int = 0
    errors: int = 0


class ProspectImportResult(BaseModel):
    summary: ProspectImportSummary
    details: list[ProspectImportLineResult]

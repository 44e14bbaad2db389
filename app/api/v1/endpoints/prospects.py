"""Endpoints API des prospects.

Les routes statiques (/country-codes, /cleaning/...) sont déclarées avant
/{prospect_id}.
"""

import logging

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.security import CurrentUser, get_current_user, require_permission
from app.schemas.prospect import (
    BatchCleanRequest,
    BatchCleanResult,
    CleaningStats,
    CountryCode,
    ProspectCreate,
    ProspectCreateResponse,
    ProspectImportRequest,
    ProspectImportResult,
    ProspectReinject,
    ProspectResponse,
    ProspectsToDelete,
    ProspectUpdate,
)
from app.schemas.responses import SuccessResponse, build_responses
from app.services import phone_service, prospect_cleaning, prospect_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/country-codes",
    response_model=SuccessResponse[list[CountryCode]],
    summary="Indicatifs pays supportés",
)
async def list_country_codes(
    db: AsyncSession = Depends(get_session),
    current_user: CurrentUser = Depends(get_current_user),
):
    codes = await phone_service.list_country_codes(db)
    return SuccessResponse(data=codes)


@router.get(
    "/cleaning/stats",
    response_model=SuccessResponse[CleaningStats],
    summary="Statistiques de nettoyage par décision",
    dependencies=[Depends(require_permission("commercialisation.nettoyage_prospects.voir"))],
)
async def get_cleaning_stats(db: AsyncSession = Depends(get_session)):
    stats = await prospect_cleaning.get_cleaning_stats(db)
    return SuccessResponse(data=stats)


@router.get(
    "/cleaning/to-delete",
    response_model=SuccessResponse[ProspectsToDelete],
    summary="Prospects marqués à supprimer",
    dependencies=[Depends(require_permission("commercialisation.nettoyage_prospects.voir"))],
)
async def get_prospects_to_delete(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_session),
):
    prospects = await prospect_cleaning.get_prospects_to_delete(db, limit=limit, offset=offset)
    return SuccessResponse(data=prospects)


@router.post(
    "/batch-clean",
    response_model=SuccessResponse[BatchCleanResult],
    summary="Recalcul des décisions de nettoyage (analyse uniquement)",
    description="La suppression automatique est désactivée: aucun prospect n'est supprimé.",
    dependencies=[Depends(require_permission("commercialisation.nettoyage_prospects.nettoyer"))],
)
async def batch_clean(
    options: BatchCleanRequest | None = None,
    db: AsyncSession = Depends(get_session),
):
    clean_stats = await prospect_cleaning.run_cleaning_batch(db)
    if options is not None and options.execute_deletion:
        logger.warning("execute_deletion demandé sur batch-clean, ignoré")
    delete_stats = await prospect_cleaning.delete_marked_prospects(db)
    return SuccessResponse(
        data=BatchCleanResult(clean_stats=clean_stats, delete_stats=delete_stats),
        message="Analyse terminée (suppression désactivée)",
    )


@router.post(
    "/import",
    response_model=SuccessResponse[ProspectImportResult],
    summary="Importer des prospects en masse",
    description=(
        "Chaque ligne suit les règles de création (normalisation, doublon ou "
        "réinjection); la ville est désignée par son nom dans le segment."
    ),
)
async def import_prospects(
    payload: ProspectImportRequest,
    db: AsyncSession = Depends(get_session),
    current_user: CurrentUser = Depends(
        require_permission("commercialisation.prospects.importer")
    ),
):
    """
    Import en masse dans un segment.

    Permissions requises : commercialisation.prospects.importer
    """
    result = await prospect_service.import_prospects(db, payload, current_user)
    summary = result.summary
    return SuccessResponse(
        data=result,
        message=(
            f"Import terminé : {summary.created} créés, {summary.reinjected} réinjectés, "
            f"{summary.errors} erreurs"
        ),
    )


@router.post(
    "/",
    response_model=ProspectCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Créer un prospect",
    description=(
        "Crée un prospect, ou réinjecte le prospect existant du segment lorsque "
        "les règles de réinjection le permettent (200). Doublon bloquant: 409."
    ),
    responses=build_responses(404, 409),
)
async def create_prospect(
    prospect: ProspectCreate,
    response: Response,
    db: AsyncSession = Depends(get_session),
    current_user: CurrentUser = Depends(require_permission("commercialisation.prospects.creer")),
):
    """
    Crée un prospect.

    Permissions requises : commercialisation.prospects.creer
    """
    resolution = await prospect_service.create_prospect(db, prospect, current_user)

    if resolution.reinjected:
        response.status_code = status.HTTP_200_OK

    return ProspectCreateResponse(
        data=resolution.prospect,
        message=resolution.reason,
        reinjected=resolution.reinjected,
    )


@router.get(
    "/{prospect_id}",
    response_model=SuccessResponse[ProspectResponse],
    summary="Détails d'un prospect",
    responses=build_responses(404),
)
async def get_prospect(
    prospect_id: str,
    db: AsyncSession = Depends(get_session),
    current_user: CurrentUser = Depends(require_permission("commercialisation.prospects.voir")),
):
    prospect = await prospect_service.get_prospect(db, prospect_id, current_user)
    return SuccessResponse(data=prospect)


@router.put(
    "/{prospect_id}",
    response_model=SuccessResponse[ProspectResponse],
    summary="Mettre à jour un prospect",
    responses=build_responses(404),
)
async def update_prospect(
    prospect_id: str,
    prospect: ProspectUpdate,
    db: AsyncSession = Depends(get_session),
    current_user: CurrentUser = Depends(
        require_permission("commercialisation.prospects.modifier")
    ),
):
    updated = await prospect_service.update_prospect(db, prospect_id, prospect, current_user)
    return SuccessResponse(data=updated, message="Prospect mis à jour")


@router.post(
    "/{prospect_id}/reinject",
    response_model=SuccessResponse[ProspectResponse],
    summary="Réinjecter un prospect",
    responses=build_responses(404),
)
async def reinject_prospect(
    prospect_id: str,
    data: ProspectReinject | None = None,
    db: AsyncSession = Depends(get_session),
    current_user: CurrentUser = Depends(
        require_permission("commercialisation.prospects.reinjecter")
    ),
):
    reinjected = await prospect_service.reinject(db, prospect_id, data, current_user)
    return SuccessResponse(data=reinjected, message="Prospect réinjecté avec succès")

"""Endpoints des jours fériés, jours ouvrables et projections d'objectifs."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.exceptions import ValidationError
from app.core.security import require_permission
from app.schemas.holiday import (
    ObjectiveProjection,
    PublicHolidayCreate,
    PublicHolidayResponse,
    WorkingDaysResponse,
)
from app.schemas.responses import SuccessResponse, build_responses
from app.services import working_days
from app.utils.dates import utc_now

router = APIRouter()

_view_schedules = require_permission("ressources_humaines.gestion_horaires.voir")


@router.get(
    "/",
    response_model=SuccessResponse[list[PublicHolidayResponse]],
    summary="Lister les jours fériés",
    dependencies=[Depends(_view_schedules)],
)
async def list_holidays(
    year: int | None = Query(None, ge=1900, le=2100, description="Filtrer par année"),
    db: AsyncSession = Depends(get_session),
):
    holidays = await working_days.list_holidays(db, year)
    return SuccessResponse(data=[PublicHolidayResponse.model_validate(h) for h in holidays])


@router.post(
    "/",
    response_model=SuccessResponse[PublicHolidayResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Créer un jour férié",
    dependencies=[
        Depends(require_permission("ressources_humaines.gestion_horaires.jours_feries.creer"))
    ],
)
async def create_holiday(
    holiday: PublicHolidayCreate,
    db: AsyncSession = Depends(get_session),
):
    """
    Crée un jour férié.

    Une seule entrée par date (400 DUPLICATE_HOLIDAY sinon).
    """
    created = await working_days.create_holiday(db, holiday)
    return SuccessResponse(
        data=PublicHolidayResponse.model_validate(created), message="Jour férié créé"
    )


@router.get(
    "/working-days",
    response_model=SuccessResponse[WorkingDaysResponse],
    summary="Compter les jours ouvrables d'un intervalle",
    dependencies=[Depends(_view_schedules)],
)
async def get_working_days(
    start_date: date = Query(..., description="Premier jour (inclus)"),
    end_date: date = Query(..., description="Dernier jour (inclus)"),
    db: AsyncSession = Depends(get_session),
):
    result = await working_days.count_working_days(db, start_date, end_date)
    return SuccessResponse(data=result)


@router.get(
    "/objective-projection",
    response_model=SuccessResponse[ObjectiveProjection],
    summary="Projeter un objectif sur les jours ouvrables",
    description=(
        "Sans période explicite, la période de paie courante (19 au 18) est utilisée."
    ),
    dependencies=[Depends(_view_schedules)],
    responses=build_responses(400),
)
async def get_objective_projection(
    objective: float = Query(..., ge=0, description="Objectif de la période"),
    achieved: float | None = Query(None, ge=0, description="Réalisé à date"),
    period_start: date | None = Query(None),
    period_end: date | None = Query(None),
    today: date | None = Query(None, description="Date de référence (défaut: aujourd'hui)"),
    db: AsyncSession = Depends(get_session),
):
    if (period_start is None) != (period_end is None):
        raise ValidationError(error="period_start et period_end doivent être fournis ensemble")

    projection = await working_days.project_objective_for_period(
        db,
        objective=objective,
        today=today or utc_now().date(),
        period_start=period_start,
        period_end=period_end,
        achieved=achieved,
    )
    return SuccessResponse(data=projection)

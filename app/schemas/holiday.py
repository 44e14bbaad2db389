"""Schémas des jours fériés, jours ouvrables et projections d'objectifs."""

from datetime import date

from pydantic import BaseModel, Field

from app.schemas.utils import Title


class PublicHolidayCreate(BaseModel):
    holiday_date: date = Field(..., examples=["2026-07-30"])
    name: Title = Field(..., examples=["Fête du Trône"])
    description: str | None = None
    is_recurring: bool = False


class PublicHolidayResponse(BaseModel):
    id: int
    holiday_date: date
    name: str
    description: str | None = None
    is_recurring: bool

    model_config = {"from_attributes": True}


class WorkingDaysResponse(BaseModel):
    start_date: date
    end_date: date
    working_days: int = Field(..., description="Jours ouvrables (hors week-ends et jours fériés)")
    holidays: list[date] = Field(default_factory=list, description="Jours fériés de l'intervalle")


class PayrollPeriod(BaseModel):
    start: date = Field(..., description="19 du mois de début")
    end: date = Field(..., description="18 du mois suivant")


class ObjectiveProjection(BaseModel):
    """Projection d'un objectif sur une période de paie."""

    period_start: date
    period_end: date
    objective: float
    total_working_days: int
    elapsed_working_days: int
    remaining_working_days: int
    daily_objective: float
    expected_to_date: int
    achieved: float | None = None
    gap: float | None = Field(default=None, description="Réalisé - attendu (négatif = retard)")

"""Jours ouvrables, périodes de paie et projection des objectifs.

Un jour ouvrable est un jour du lundi au vendredi qui n'est pas un jour
férié (table hr_public_holidays). La période de paie court du 19 d'un mois
au 18 du mois suivant.
"""

import logging
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from opentelemetry import trace
from sqlalchemy import extract, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.models.holiday import PublicHoliday
from app.schemas.holiday import (
    ObjectiveProjection,
    PayrollPeriod,
    PublicHolidayCreate,
    WorkingDaysResponse,
)
from app.utils.dates import to_date

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

SATURDAY = 5


def calculate_working_days(
    start: date | datetime,
    end: date | datetime,
    holidays: Iterable[date | datetime] = (),
) -> int:
    """
    Compte les jours ouvrables entre deux dates, bornes incluses.

    Args:
        start: Premier jour
        end: Dernier jour
        holidays: Jours fériés à exclure

    Returns:
        Nombre de jours hors samedis, dimanches et jours fériés (0 si start > end)
    """
    start_day = to_date(start)
    end_day = to_date(end)
    if start_day > end_day:
        return 0

    holiday_set = {to_date(h) for h in holidays}
    count = 0
    current = start_day
    while current <= end_day:
        if current.weekday() < SATURDAY and current not in holiday_set:
            count += 1
        current += timedelta(days=1)
    return count


def _add_months(day: date, months: int) -> date:
    month_index = day.year * 12 + day.month - 1 + months
    return day.replace(year=month_index // 12, month=month_index % 12 + 1)


def current_payroll_period(today: date | datetime) -> PayrollPeriod:
    """Période de paie (19 → 18) contenant la date donnée."""
    today = to_date(today)
    start_day = settings.PAYROLL_PERIOD_START_DAY

    if today.day >= start_day:
        start = today.replace(day=start_day)
    else:
        start = _add_months(today.replace(day=start_day), -1)
    end = _add_months(start, 1) - timedelta(days=1)
    return PayrollPeriod(start=start, end=end)


def project_objective(
    objective: float,
    period_start: date,
    period_end: date,
    holidays: Iterable[date],
    today: date | datetime,
    achieved: float | None = None,
) -> ObjectiveProjection:
    """
    Répartit un objectif sur les jours ouvrables d'une période.

    L'attendu à date est l'objectif journalier multiplié par les jours
    ouvrables écoulés (du début de période jusqu'à aujourd'hui inclus).
    """
    today = to_date(today)
    holidays = list(holidays)

    total = calculate_working_days(period_start, period_end, holidays)
    if today < period_start:
        elapsed = 0
    else:
        elapsed = calculate_working_days(period_start, min(today, period_end), holidays)

    daily = objective / total if total else 0.0
    expected = round(elapsed * daily)

    return ObjectiveProjection(
        period_start=period_start,
        period_end=period_end,
        objective=objective,
        total_working_days=total,
        elapsed_working_days=elapsed,
        remaining_working_days=total - elapsed,
        daily_objective=round(daily, 2),
        expected_to_date=expected,
        achieved=achieved,
        gap=achieved - expected if achieved is not None else None,
    )


# =============================================================================
# Jours fériés
# =============================================================================


async def list_holidays(db: AsyncSession, year: int | None = None) -> list[PublicHoliday]:
    query = select(PublicHoliday).order_by(PublicHoliday.holiday_date)
    if year is not None:
        query = query.where(extract("year", PublicHoliday.holiday_date) == year)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_holiday_dates(db: AsyncSession, start: date, end: date) -> list[date]:
    result = await db.execute(
        select(PublicHoliday.holiday_date).where(
            PublicHoliday.holiday_date >= start,
            PublicHoliday.holiday_date <= end,
        )
    )
    return list(result.scalars().all())


async def create_holiday(db: AsyncSession, data: PublicHolidayCreate) -> PublicHoliday:
    """
    Enregistre un jour férié.

    Raises:
        ValidationError: DUPLICATE_HOLIDAY si un jour férié existe déjà à cette date
    """
    existing = await db.scalar(
        select(PublicHoliday.id).where(PublicHoliday.holiday_date == data.holiday_date)
    )
    if existing is not None:
        raise ValidationError(
            error="Un jour férié existe déjà pour cette date", code="DUPLICATE_HOLIDAY"
        )

    holiday = PublicHoliday(**data.model_dump())
    db.add(holiday)
    await db.commit()
    await db.refresh(holiday)

    logger.info(f"Jour férié créé: {holiday.name} ({holiday.holiday_date})")
    return holiday


async def count_working_days(db: AsyncSession, start: date, end: date) -> WorkingDaysResponse:
    with tracer.start_as_current_span("count_working_days") as span:
        holidays = await get_holiday_dates(db, start, end)
        working_days = calculate_working_days(start, end, holidays)
        span.set_attribute("working_days.count", working_days)
        return WorkingDaysResponse(
            start_date=start,
            end_date=end,
            working_days=working_days,
            holidays=sorted(holidays),
        )


async def project_objective_for_period(
    db: AsyncSession,
    objective: float,
    today: date,
    period_start: date | None = None,
    period_end: date | None = None,
    achieved: float | None = None,
) -> ObjectiveProjection:
    """Projection sur la période donnée, ou sur la période de paie courante."""
    if period_start is None or period_end is None:
        period = current_payroll_period(today)
        period_start, period_end = period.start, period.end
    if period_start > period_end:
        raise ValidationError(error="La date de début doit précéder la date de fin")

    holidays = await get_holiday_dates(db, period_start, period_end)
    return project_objective(objective, period_start, period_end, holidays, today, achieved)

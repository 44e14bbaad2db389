"""Moteur de décision de nettoyage des prospects.

Chaque prospect porte une decision_nettoyage recalculée à chaque création,
mise à jour ou réinjection, et par un batch quotidien:

Avec date_rdv:
    - RDV aujourd'hui ou futur                       -> laisser
    - RDV dépassé de plus de 7 jours                 -> supprimer
    - RDV des 7 derniers jours et statut négatif     -> supprimer
    - sinon injection > 3 jours / récente / absente  -> supprimer / laisser / a_revoir_manuelle

Sans date_rdv:
    - statut négatif                                 -> supprimer
    - sinon injection > 3 jours / récente / absente  -> supprimer / laisser / a_revoir_manuelle

La suppression effective est désactivée: les prospects marqués "supprimer"
sont retravaillés par réinjection, jamais effacés automatiquement.
"""

import logging
from datetime import datetime, timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from opentelemetry import trace
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.database import async_session_maker
from app.core.retry import async_retry_with_backoff
from app.models.prospect import (
    DECISION_A_REVOIR,
    DECISION_LAISSER,
    DECISION_SUPPRIMER,
    STATUT_NON_CONTACTE,
    Prospect,
)
from app.schemas.prospect import (
    CleaningBatchResult,
    CleaningDecisionStats,
    CleaningStats,
    DeletionResult,
    ProspectResponse,
    ProspectsToDelete,
)
from app.utils.dates import as_utc, utc_now

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

NEGATIVE_STATUSES = frozenset(
    {
        "contacté sans rdv",
        "contacté sans réponse",
        "contacte sans reponse",
        "boîte vocale",
        "boite vocale",
        "à recontacter",
        "a recontacter",
    }
)

DELETION_DISABLED_MESSAGE = "Suppression automatique désactivée. Utilisez la réinjection."

CLEANUP_JOB_ID = "prospects_cleaning_batch"

scheduler: AsyncIOScheduler | None = None


def is_negative_status(statut_contact: str | None) -> bool:
    return (statut_contact or "").strip().lower() in NEGATIVE_STATUSES


def _decision_from_injection(date_injection: datetime | None, now: datetime) -> str:
    if date_injection is None:
        return DECISION_A_REVOIR
    stale_threshold = now - timedelta(days=settings.CLEANING_STALE_INJECTION_DAYS)
    if as_utc(date_injection) < stale_threshold:
        return DECISION_SUPPRIMER
    return DECISION_LAISSER


def compute_cleaning_decision(
    date_rdv: datetime | None,
    statut_contact: str | None,
    date_injection: datetime | None,
    now: datetime | None = None,
) -> str:
    """
    Calcule la décision de nettoyage d'un prospect.

    Les dates de RDV sont comparées au jour près (date calendaire UTC),
    la date d'injection à l'instant près.

    Returns:
        "laisser", "supprimer" ou "a_revoir_manuelle"
    """
    now = as_utc(now) or utc_now()
    today = now.date()

    if date_rdv is not None:
        rdv_day = as_utc(date_rdv).date()
        if rdv_day >= today:
            return DECISION_LAISSER
        if rdv_day < today - timedelta(days=settings.CLEANING_RDV_GRACE_DAYS):
            return DECISION_SUPPRIMER
        if is_negative_status(statut_contact):
            return DECISION_SUPPRIMER
        return _decision_from_injection(date_injection, now)

    if is_negative_status(statut_contact):
        return DECISION_SUPPRIMER
    return _decision_from_injection(date_injection, now)


def apply_cleaning_decision(prospect: Prospect, now: datetime | None = None) -> str:
    """Recalcule et affecte la décision sur l'instance (sans commit)."""
    prospect.decision_nettoyage = compute_cleaning_decision(
        prospect.date_rdv, prospect.statut_contact, prospect.date_injection, now
    )
    return prospect.decision_nettoyage


async def run_cleaning_batch(
    db: AsyncSession, now: datetime | None = None
) -> CleaningBatchResult:
    """
    Recalcule la décision de nettoyage de tous les prospects.

    Returns:
        CleaningBatchResult avec les effectifs par décision
    """
    with tracer.start_as_current_span("run_cleaning_batch") as span:
        logger.info("Démarrage du nettoyage batch des prospects")
        now = as_utc(now) or utc_now()

        result = await db.execute(select(Prospect))
        stats = CleaningBatchResult()

        for prospect in result.scalars():
            decision = apply_cleaning_decision(prospect, now)
            if decision == DECISION_LAISSER:
                stats.laisser += 1
            elif decision == DECISION_SUPPRIMER:
                stats.supprimer += 1
            else:
                stats.a_revoir += 1
            stats.total += 1

        await db.commit()

        span.set_attribute("cleaning.total", stats.total)
        span.set_attribute("cleaning.supprimer", stats.supprimer)
        logger.info(
            f"Nettoyage batch terminé: {stats.laisser} à garder, "
            f"{stats.supprimer} à supprimer, {stats.a_revoir} à revoir"
        )
        return stats


async def get_cleaning_stats(db: AsyncSession) -> CleaningStats:
    """Effectifs par décision (total, non contactés, avec RDV)."""
    query = select(
        Prospect.decision_nettoyage,
        func.count(Prospect.id),
        func.sum(case((Prospect.statut_contact == STATUT_NON_CONTACTE, 1), else_=0)),
        func.sum(case((Prospect.date_rdv.isnot(None), 1), else_=0)),
    ).group_by(Prospect.decision_nettoyage)

    result = await db.execute(query)
    stats = CleaningStats()

    for decision, count, non_contactes, avec_rdv in result.all():
        # Les prospects sans décision sont à revoir
        bucket: CleaningDecisionStats | None = getattr(
            stats, decision or DECISION_A_REVOIR, None
        )
        if bucket is None:
            logger.warning(f"Décision de nettoyage inconnue ignorée: {decision}")
            continue
        bucket.total += int(count or 0)
        bucket.non_contactes += int(non_contactes or 0)
        bucket.avec_rdv += int(avec_rdv or 0)

    return stats


async def get_prospects_to_delete(
    db: AsyncSession, limit: int = 100, offset: int = 0
) -> ProspectsToDelete:
    """Prospects marqués "supprimer", les plus récemment injectés d'abord."""
    condition = Prospect.decision_nettoyage == DECISION_SUPPRIMER

    total = await db.scalar(select(func.count()).select_from(Prospect).where(condition))
    result = await db.execute(
        select(Prospect)
        .where(condition)
        .order_by(Prospect.date_injection.desc())
        .limit(limit)
        .offset(offset)
    )

    return ProspectsToDelete(
        prospects=[ProspectResponse.model_validate(p) for p in result.scalars().all()],
        total=total or 0,
        limit=limit,
        offset=offset,
    )


async def delete_marked_prospects(db: AsyncSession | None = None) -> DeletionResult:
    """Suppression désactivée: aucun prospect n'est jamais effacé automatiquement."""
    logger.warning("Suppression automatique des prospects désactivée, utiliser la réinjection")
    return DeletionResult(deleted=0, message=DELETION_DISABLED_MESSAGE)


@async_retry_with_backoff(max_attempts=3, min_wait_seconds=2, max_wait_seconds=30)
async def scheduled_cleanup(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> CleaningBatchResult:
    """
    Tâche planifiée: recalcul quotidien des décisions de nettoyage.

    Chaque tentative ouvre sa propre session: une session en échec n'est
    jamais réutilisée par le retry.

    Args:
        session_factory: Fabrique de sessions (async_session_maker par défaut)
    """
    session_factory = session_factory or async_session_maker
    logger.info(f"Nettoyage planifié démarré: {utc_now().isoformat()}")
    async with session_factory() as session:
        return await run_cleaning_batch(session)


def start_cleaning_scheduler() -> AsyncIOScheduler | None:
    """Planifie le batch de nettoyage quotidien (cron)."""
    global scheduler

    if not settings.CLEANING_SCHEDULER_ENABLED:
        logger.info("Scheduler de nettoyage des prospects désactivé")
        return None

    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        scheduled_cleanup,
        "cron",
        hour=settings.CLEANING_SCHEDULE_HOUR,
        minute=settings.CLEANING_SCHEDULE_MINUTE,
        id=CLEANUP_JOB_ID,
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        f"Scheduler de nettoyage démarré (quotidien à "
        f"{settings.CLEANING_SCHEDULE_HOUR:02d}:{settings.CLEANING_SCHEDULE_MINUTE:02d} UTC)"
    )
    return scheduler


def stop_cleaning_scheduler() -> None:
    global scheduler

    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler de nettoyage arrêté")
    scheduler = None


__all__ = [
    "DELETION_DISABLED_MESSAGE",
    "NEGATIVE_STATUSES",
    "apply_cleaning_decision",
    "compute_cleaning_decision",
    "delete_marked_prospects",
    "get_cleaning_stats",
    "get_prospects_to_delete",
    "is_negative_status",
    "run_cleaning_batch",
    "scheduled_cleanup",
    "start_cleaning_scheduler",
    "stop_cleaning_scheduler",
]

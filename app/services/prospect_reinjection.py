"""Réinjection des prospects anciens.

Un doublon est un prospect de même phone_international dans le même segment
(un numéro peut exister dans plusieurs segments). Face à un doublon:

1. injection de moins de 24h (ou sans date)        -> bloqué
2. "contacté avec rdv" et RDV aujourd'hui ou futur  -> bloqué
3. "contacté avec rdv" et RDV passé ou sans date    -> réinjecté
4. tout autre statut                                -> réinjecté

La réinjection remet le prospect en "non contacté" en conservant
l'historique: anciens RDV, anciennes villes, noms et prénoms successifs.
"""

import logging
from datetime import datetime, timedelta
from typing import Literal, NamedTuple

from opentelemetry import trace
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.organization import City
from app.models.prospect import (
    DECISION_LAISSER,
    STATUT_CONTACTE_AVEC_RDV,
    STATUT_NON_CONTACTE,
    Prospect,
    ProspectCallHistory,
)
from app.schemas.prospect import ProspectReinject, ReinjectionDecision
from app.utils.dates import as_utc, format_fr_date, format_fr_datetime, start_of_day, utc_now
from app.utils.fk_validation import integrity_error_to_invalid_reference

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

HISTORY_SEPARATOR = ", "

REINJECTION_STATUS_BEFORE = "réinjection"
REINJECTION_COMMENT = "Prospect réinjecté automatiquement"


class DuplicateResolution(NamedTuple):
    action: Literal["created", "reinjected", "duplicate"]
    prospect: Prospect | None
    message: str


def should_reinject(existing: Prospect | None, now: datetime | None = None) -> ReinjectionDecision:
    """
    Détermine si un prospect existant peut être réinjecté.

    Args:
        existing: Prospect déjà présent dans le segment (ou None)
        now: Instant de référence (UTC par défaut)

    Returns:
        ReinjectionDecision(can_reinject, reason)
    """
    if existing is None:
        return ReinjectionDecision(can_reinject=False, reason="Prospect inexistant")

    now = as_utc(now) or utc_now()
    date_injection = as_utc(existing.date_injection)
    delay = timedelta(hours=settings.PROSPECT_REINJECT_DELAY_HOURS)

    if date_injection is None or now - date_injection <= delay:
        return ReinjectionDecision(
            can_reinject=False,
            reason=(
                f"Prospect injecté il y a moins de "
                f"{settings.PROSPECT_REINJECT_DELAY_HOURS} heures"
            ),
        )

    statut = (existing.statut_contact or "").lower()

    if statut == STATUT_CONTACTE_AVEC_RDV:
        date_rdv = as_utc(existing.date_rdv)
        if date_rdv is None:
            return ReinjectionDecision(
                can_reinject=True, reason="Statut RDV sans date - peut être réinjecté"
            )
        if date_rdv >= start_of_day(now):
            return ReinjectionDecision(
                can_reinject=False,
                reason=f"RDV prévu le {format_fr_date(date_rdv)} - ne peut pas être réinjecté",
            )
        return ReinjectionDecision(
            can_reinject=True,
            reason=f"RDV passé ({format_fr_date(date_rdv)}) - peut être réinjecté",
        )

    return ReinjectionDecision(
        can_reinject=True,
        reason=(
            f'Ancien prospect (> 24h) avec statut "{statut or "non défini"}" '
            "- peut être réinjecté"
        ),
    )


def _split_history(history: str | None) -> list[str]:
    if not history:
        return []
    return [item.strip() for item in history.split(",") if item.strip()]


def append_history(history: str | None, entry: str) -> str:
    """Ajoute une entrée à une liste séparée par des virgules, sans doublon."""
    items = _split_history(history)
    if entry not in items:
        items.append(entry)
    return HISTORY_SEPARATOR.join(items)


def append_name(current: str | None, new_value: str | None) -> str | None:
    """
    Concatène un nom ("Ancien, Nouveau") sauf s'il figure déjà (insensible à la casse).
    """
    if not new_value:
        return current
    if not current:
        return new_value
    known = {name.lower() for name in _split_history(current)}
    if new_value.strip().lower() in known:
        return current
    return f"{current}{HISTORY_SEPARATOR}{new_value}"


async def _city_label(db: AsyncSession, city_id: str) -> str:
    name = await db.scalar(select(City.name).where(City.id == city_id))
    return name or city_id


async def reinject_prospect(
    db: AsyncSession,
    prospect: Prospect,
    user_id: str | None,
    new_data: ProspectReinject | None = None,
    now: datetime | None = None,
) -> Prospect:
    """
    Réinjecte un prospect existant en conservant son historique.

    - statut remis à "non contacté", date_injection = maintenant
    - RDV courant archivé dans historique_rdv puis effacé
    - ancienne ville archivée dans historique_villes si une nouvelle est fournie
    - nom / prénom ajoutés à la suite des valeurs existantes
    - une ligne "réinjection" est tracée dans prospect_call_history

    Returns:
        Le prospect mis à jour (commité)

    Raises:
        InvalidReferenceError: Nouvelle ville inexistante (contrainte au commit)
    """
    now = as_utc(now) or utc_now()
    new_data = new_data or ProspectReinject()

    with tracer.start_as_current_span("reinject_prospect") as span:
        span.set_attribute("prospect.id", prospect.id)

        if prospect.date_rdv is not None:
            prospect.historique_rdv = append_history(
                prospect.historique_rdv, format_fr_datetime(as_utc(prospect.date_rdv))
            )
            logger.debug(f"Historique RDV du prospect {prospect.id}: {prospect.historique_rdv}")
        prospect.date_rdv = None

        if new_data.ville_id and new_data.ville_id != prospect.ville_id:
            if prospect.ville_id:
                old_city = await _city_label(db, prospect.ville_id)
                prospect.historique_villes = append_history(prospect.historique_villes, old_city)
            prospect.ville_id = new_data.ville_id

        prospect.nom = append_name(prospect.nom, new_data.nom)
        prospect.prenom = append_name(prospect.prenom, new_data.prenom)

        prospect.statut_contact = STATUT_NON_CONTACTE
        prospect.date_injection = now
        prospect.decision_nettoyage = DECISION_LAISSER
        prospect.updated_at = now

        db.add(
            ProspectCallHistory(
                prospect_id=prospect.id,
                user_id=user_id,
                call_start=now,
                call_end=now,
                status_before=REINJECTION_STATUS_BEFORE,
                status_after=STATUT_NON_CONTACTE,
                commentaire=REINJECTION_COMMENT,
            )
        )

        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise integrity_error_to_invalid_reference(e) from e
        await db.refresh(prospect)

        logger.info(f"Prospect {prospect.id} réinjecté par {user_id}")
        return prospect


async def find_prospect_in_segment(
    db: AsyncSession, phone_international: str, segment_id: str
) -> Prospect | None:
    result = await db.execute(
        select(Prospect).where(
            Prospect.phone_international == phone_international,
            Prospect.segment_id == segment_id,
        )
    )
    return result.scalars().first()


async def handle_duplicate_or_reinject(
    db: AsyncSession,
    phone_international: str,
    segment_id: str,
    user_id: str | None,
    new_data: ProspectReinject | None = None,
    now: datetime | None = None,
) -> DuplicateResolution:
    """
    Résout un ajout de prospect face aux doublons du segment.

    Returns:
        DuplicateResolution:
            - ("created", None, ...) aucun doublon, le prospect est à créer
            - ("reinjected", prospect, ...) doublon ancien réinjecté
            - ("duplicate", prospect, raison) doublon bloquant
    """
    existing = await find_prospect_in_segment(db, phone_international, segment_id)

    if existing is None:
        return DuplicateResolution("created", None, "Nouveau prospect à créer")

    decision = should_reinject(existing, now)

    if decision.can_reinject:
        reinjected = await reinject_prospect(db, existing, user_id, new_data, now)
        return DuplicateResolution(
            "reinjected", reinjected, f"Prospect réinjecté: {decision.reason}"
        )

    logger.info(f"Doublon bloqué pour {phone_international} ({segment_id}): {decision.reason}")
    return DuplicateResolution("duplicate", existing, decision.reason)

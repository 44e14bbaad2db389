"""Service métier des prospects.

Création avec normalisation du numéro, gestion des doublons par segment
(réinjection ou blocage), contrôle du périmètre segment/ville de
l'utilisateur, import en masse et recalcul de la décision de nettoyage.

Les événements sont publiés après le commit: un échec de publication est
journalisé sans annuler l'opération déjà enregistrée.
"""

import logging
import random
from datetime import datetime

from opentelemetry import trace
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.events import publish
from app.core.exceptions import (
    DuplicateProspectError,
    InvalidReferenceError,
    NotFoundError,
    ValidationError,
)
from app.core.security import CurrentUser
from app.models.organization import City, Segment
from app.models.prospect import STATUT_NON_CONTACTE, Prospect
from app.models.rbac import Profile
from app.schemas.prospect import (
    PhoneNormalization,
    ProspectCreate,
    ProspectImportLine,
    ProspectImportLineResult,
    ProspectImportRequest,
    ProspectImportResult,
    ProspectImportSummary,
    ProspectReinject,
    ProspectResolution,
    ProspectResponse,
    ProspectUpdate,
)
from app.services import phone_service, prospect_cleaning, prospect_reinjection
from app.utils.dates import as_utc, utc_now
from app.utils.fk_validation import integrity_error_to_invalid_reference, validate_foreign_keys
from app.utils.text_standardizer import standardize_data

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

PROSPECT_ID_MAX_ATTEMPTS = 10

SEGMENT_REQUIRED_MESSAGE = "Veuillez sélectionner un segment"
OUT_OF_SCOPE_CREATE_MESSAGE = "Vous ne pouvez pas créer un prospect en dehors de votre scope"
OUT_OF_SCOPE_ACCESS_MESSAGE = "Prospect hors de votre scope"
IMPORT_UNKNOWN_CITY_MESSAGE = "Ville non existante dans le segment"
IMPORT_CITY_OUT_OF_SCOPE_MESSAGE = "Ville hors de votre scope"
IMPORT_DUPLICATE_MESSAGE = "Numéro déjà existant"

_TEXT_FIELDS = ["nom", "prenom", "cin"]


async def generate_unique_prospect_id(db: AsyncSession) -> str:
    """
    Génère un identifiant aléatoire de 8 chiffres non encore utilisé.

    Après 10 collisions, retombe sur les 8 derniers chiffres du timestamp
    en millisecondes.
    """
    for _ in range(PROSPECT_ID_MAX_ATTEMPTS):
        candidate = str(random.randint(10_000_000, 99_999_999))
        existing = await db.scalar(select(Prospect.id).where(Prospect.id == candidate))
        if existing is None:
            return candidate

    logger.warning("Collisions répétées sur l'ID prospect, repli sur le timestamp")
    return str(int(utc_now().timestamp() * 1000))[-8:]


def _event_payload(prospect: Prospect, user_id: str | None) -> dict:
    return {
        "prospect_id": prospect.id,
        "phone_international": prospect.phone_international,
        "segment_id": prospect.segment_id,
        "ville_id": prospect.ville_id,
        "user_id": user_id,
        "timestamp": utc_now().isoformat(),
    }


async def _publish_event(subject: str, prospect: Prospect, user_id: str | None) -> None:
    """Publie un événement prospect; l'échec est journalisé et tracé, jamais propagé."""
    try:
        await publish(subject, _event_payload(prospect, user_id))
    except Exception as e:
        logger.error(f"Événement '{subject}' non publié pour le prospect {prospect.id}: {e}")
        trace.get_current_span().record_exception(e)


async def _insert_prospect(
    db: AsyncSession,
    *,
    phone_raw: str,
    normalization: PhoneNormalization,
    fields: dict,
    segment_id: str,
    ville_id: str | None,
    created_by: str | None,
    now: datetime,
    assigned_to: str | None = None,
    commentaire: str | None = None,
) -> Prospect:
    """
    INSERT d'un nouveau prospect (statut "non contacté", numéro validé).

    Raises:
        InvalidReferenceError: Violation de contrainte résiduelle au commit
    """
    prospect = Prospect(
        id=await generate_unique_prospect_id(db),
        phone_raw=phone_raw,
        phone_international=normalization.phone_international,
        country_code=normalization.country_code,
        country=normalization.country,
        statut_validation_numero="valide",
        nom=fields.get("nom"),
        prenom=fields.get("prenom"),
        cin=fields.get("cin"),
        segment_id=segment_id,
        ville_id=ville_id,
        assigned_to=assigned_to,
        statut_contact=STATUT_NON_CONTACTE,
        date_injection=now,
        commentaire=commentaire,
        created_by=created_by,
    )
    prospect_cleaning.apply_cleaning_decision(prospect, now)

    db.add(prospect)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise integrity_error_to_invalid_reference(e) from e
    await db.refresh(prospect)
    return prospect


async def create_prospect(
    db: AsyncSession,
    data: ProspectCreate,
    current_user: CurrentUser,
    now: datetime | None = None,
) -> ProspectResolution:
    """
    Crée un prospect ou résout le doublon existant dans le segment.

    Pattern:
    1. Segment obligatoire, périmètre de l'utilisateur (ville comprise)
    2. Normalisation internationale du numéro
    3. Pré-validation des références
    4. Doublon du segment: réinjection ou blocage (409)
    5. INSERT puis publication de l'événement

    Returns:
        ProspectResolution avec action "created" ou "reinjected"

    Raises:
        ValidationError: Segment absent ou numéro invalide
        ForbiddenError: Segment/ville hors du périmètre (OUT_OF_SCOPE)
        DuplicateProspectError: Doublon non réinjectable
        InvalidReferenceError: Segment, ville ou utilisateur assigné inexistant
    """
    now = as_utc(now) or utc_now()

    with tracer.start_as_current_span("create_prospect") as span:
        if not data.segment_id:
            raise ValidationError(error=SEGMENT_REQUIRED_MESSAGE)
        span.set_attribute("prospect.segment_id", data.segment_id)

        current_user.ensure_scope(
            data.segment_id, data.ville_id, error=OUT_OF_SCOPE_CREATE_MESSAGE, require_city=True
        )

        normalization = await phone_service.normalize_phone_international(db, data.phone)
        if not normalization.valid:
            raise ValidationError(error=normalization.error, code="INVALID_PHONE")

        await validate_foreign_keys(
            db,
            {
                "segment_id": (Segment, data.segment_id),
                "ville_id": (City, data.ville_id),
                "assigned_to": (Profile, data.assigned_to),
            },
        )

        fields = standardize_data(data.model_dump(include=set(_TEXT_FIELDS)), _TEXT_FIELDS)

        resolution = await prospect_reinjection.handle_duplicate_or_reinject(
            db,
            normalization.phone_international,
            data.segment_id,
            current_user.id,
            ProspectReinject(ville_id=data.ville_id, nom=fields["nom"], prenom=fields["prenom"]),
            now,
        )
        span.set_attribute("prospect.action", resolution.action)

        if resolution.action == "duplicate":
            existing = ProspectResponse.model_validate(resolution.prospect)
            raise DuplicateProspectError(
                existing=existing.model_dump(mode="json"), reason=resolution.message
            )

        if resolution.action == "reinjected":
            prospect = resolution.prospect
            await _publish_event("gestion.prospect.reinjected", prospect, current_user.id)
            return ProspectResolution(
                action="reinjected",
                prospect=ProspectResponse.model_validate(prospect),
                reason=resolution.message,
            )

        prospect = await _insert_prospect(
            db,
            phone_raw=data.phone,
            normalization=normalization,
            fields=fields,
            segment_id=data.segment_id,
            ville_id=data.ville_id,
            assigned_to=data.assigned_to,
            commentaire=data.commentaire,
            created_by=current_user.id,
            now=now,
        )

        span.set_attribute("prospect.id", prospect.id)
        logger.info(f"Prospect {prospect.id} créé dans le segment {prospect.segment_id}")

        await _publish_event("gestion.prospect.created", prospect, current_user.id)

        return ProspectResolution(
            action="created",
            prospect=ProspectResponse.model_validate(prospect),
            reason="Prospect créé avec succès",
        )


async def _import_line(
    db: AsyncSession,
    line: ProspectImportLine,
    segment_id: str,
    city_ids: dict[str, str],
    current_user: CurrentUser,
    now: datetime,
) -> tuple[str, str | None, str | None]:
    """Traite une ligne d'import: (statut, id du prospect, erreur)."""
    normalization = await phone_service.normalize_phone_international(db, line.phone)
    if not normalization.valid:
        return "error", None, normalization.error

    ville_id = city_ids.get((line.ville or "").strip().lower())
    if ville_id is None:
        return "error", None, IMPORT_UNKNOWN_CITY_MESSAGE
    if not current_user.can_access_scope(segment_id, ville_id, require_city=True):
        return "error", None, IMPORT_CITY_OUT_OF_SCOPE_MESSAGE

    fields = standardize_data(line.model_dump(include={"nom", "prenom"}), ["nom", "prenom"])

    try:
        resolution = await prospect_reinjection.handle_duplicate_or_reinject(
            db,
            normalization.phone_international,
            segment_id,
            current_user.id,
            ProspectReinject(ville_id=ville_id, nom=fields["nom"], prenom=fields["prenom"]),
            now,
        )
        if resolution.action == "duplicate":
            return "duplicate", resolution.prospect.id, IMPORT_DUPLICATE_MESSAGE
        if resolution.action == "reinjected":
            await _publish_event(
                "gestion.prospect.reinjected", resolution.prospect, current_user.id
            )
            return "reinjected", resolution.prospect.id, None

        prospect = await _insert_prospect(
            db,
            phone_raw=line.phone,
            normalization=normalization,
            fields=fields,
            segment_id=segment_id,
            ville_id=ville_id,
            created_by=current_user.id,
            now=now,
        )
    except InvalidReferenceError as e:
        return "error", None, e.error

    await _publish_event("gestion.prospect.created", prospect, current_user.id)
    return "created", prospect.id, None


async def import_prospects(
    db: AsyncSession,
    data: ProspectImportRequest,
    current_user: CurrentUser,
    now: datetime | None = None,
) -> ProspectImportResult:
    """
    Import en masse dans un segment, ligne par ligne.

    Chaque ligne suit les règles de la création unitaire (normalisation,
    doublon ou réinjection). Une ligne en échec n'interrompt pas l'import;
    les doublons bloquants sont comptés comme erreurs.

    Raises:
        ValidationError: Segment absent
        ForbiddenError: Segment hors du périmètre
        InvalidReferenceError: Segment inexistant
    """
    now = as_utc(now) or utc_now()

    with tracer.start_as_current_span("import_prospects") as span:
        if not data.segment_id:
            raise ValidationError(error=SEGMENT_REQUIRED_MESSAGE)
        current_user.ensure_scope(data.segment_id, error=OUT_OF_SCOPE_CREATE_MESSAGE)
        await validate_foreign_keys(db, {"segment_id": (Segment, data.segment_id)})

        rows = await db.execute(
            select(City.id, City.name).where(City.segment_id == data.segment_id)
        )
        city_ids = {name.strip().lower(): city_id for city_id, name in rows.all()}

        summary = ProspectImportSummary()
        details = []
        for index, line in enumerate(data.lines, start=1):
            status, prospect_id, error = await _import_line(
                db, line, data.segment_id, city_ids, current_user, now
            )
            if status == "created":
                summary.created += 1
            elif status == "reinjected":
                summary.reinjected += 1
            else:
                summary.errors += 1
            details.append(
                ProspectImportLineResult(
                    line=index,
                    phone=line.phone,
                    status=status,
                    prospect_id=prospect_id,
                    error=error,
                )
            )

        span.set_attribute("import.lines", len(data.lines))
        span.set_attribute("import.created", summary.created)
        logger.info(
            f"Import segment {data.segment_id}: {summary.created} créé(s), "
            f"{summary.reinjected} réinjecté(s), {summary.errors} erreur(s)"
        )
        return ProspectImportResult(summary=summary, details=details)


async def _get_scoped_prospect(
    db: AsyncSession, prospect_id: str, current_user: CurrentUser
) -> Prospect:
    prospect = await db.get(Prospect, prospect_id)
    if prospect is None:
        raise NotFoundError(error="Prospect non trouvé")
    current_user.ensure_scope(
        prospect.segment_id, prospect.ville_id, error=OUT_OF_SCOPE_ACCESS_MESSAGE
    )
    return prospect


async def get_prospect(
    db: AsyncSession, prospect_id: str, current_user: CurrentUser
) -> ProspectResponse:
    prospect = await _get_scoped_prospect(db, prospect_id, current_user)
    return ProspectResponse.model_validate(prospect)


async def update_prospect(
    db: AsyncSession,
    prospect_id: str,
    data: ProspectUpdate,
    current_user: CurrentUser,
    now: datetime | None = None,
) -> ProspectResponse:
    """
    Met à jour partiellement un prospect puis recalcule sa décision de nettoyage.

    Seuls les champs présents dans la requête sont modifiés; date_rdv et
    rdv_centre_ville_id peuvent être explicitement remis à null.
    """
    with tracer.start_as_current_span("update_prospect") as span:
        span.set_attribute("prospect.id", prospect_id)
        prospect = await _get_scoped_prospect(db, prospect_id, current_user)

        changes = data.model_dump(exclude_unset=True)
        for field in ("nom", "prenom", "cin", "statut_contact", "commentaire"):
            if changes.get(field) is None:
                changes.pop(field, None)
        text_fields = [f for f in _TEXT_FIELDS if f in changes]
        if text_fields:
            changes = standardize_data(changes, text_fields)

        await validate_foreign_keys(
            db, {"rdv_centre_ville_id": (City, changes.get("rdv_centre_ville_id"))}
        )

        for field, value in changes.items():
            setattr(prospect, field, value)
        prospect_cleaning.apply_cleaning_decision(prospect, now)

        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise integrity_error_to_invalid_reference(e) from e
        await db.refresh(prospect)

        logger.info(
            f"Prospect {prospect.id} mis à jour ({', '.join(sorted(changes)) or 'aucun champ'}), "
            f"décision: {prospect.decision_nettoyage}"
        )
        return ProspectResponse.model_validate(prospect)


async def reinject(
    db: AsyncSession,
    prospect_id: str,
    data: ProspectReinject | None,
    current_user: CurrentUser,
    now: datetime | None = None,
) -> ProspectResponse:
    """Réinjection manuelle d'un prospect, sans condition de délai."""
    prospect = await _get_scoped_prospect(db, prospect_id, current_user)

    if data is not None:
        names = standardize_data(data.model_dump(include={"nom", "prenom"}), ["nom", "prenom"])
        data = data.model_copy(update=names)
        await validate_foreign_keys(db, {"ville_id": (City, data.ville_id)})

    prospect = await prospect_reinjection.reinject_prospect(
        db, prospect, current_user.id, data, now
    )
    await _publish_event("gestion.prospect.reinjected", prospect, current_user.id)
    return ProspectResponse.model_validate(prospect)

"""Normalisation des numéros de téléphone au format international.

Le numéro saisi est nettoyé, son indicatif pays détecté contre la table
country_phone_config (indicatifs de 3, 2 puis 1 chiffres), puis la longueur
du numéro national est vérifiée.

Exemples:
    "06 12 34 56 78"     -> +212612345678 (numéro national du pays par défaut)
    "+33 6 12 34 56 78"  -> +33612345678
    "0033612345678"      -> +33612345678
"""

import json
import logging
import re

from opentelemetry import trace
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import cache_get, cache_key_country_codes, cache_set
from app.core.config import settings
from app.core.country_codes import COUNTRY_PHONE_CODES
from app.models.prospect import CountryPhoneConfig
from app.schemas.prospect import CountryCode, PhoneNormalization

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

_CLEANUP_RE = re.compile(r"[\s\-().]")

# Indicatif -> (pays, longueur nationale attendue)
CountryTable = dict[str, tuple[str, int]]

FALLBACK_DEFAULT_COUNTRY = ("Morocco", 9)


def _detect_country_code(digits: str, table: CountryTable) -> str | None:
    for length in (3, 2, 1):
        candidate = digits[:length]
        if len(candidate) == length and candidate in table:
            return candidate
    return None


def normalize_phone(
    raw_phone: str | None,
    table: CountryTable,
    default_country_code: str | None = None,
) -> PhoneNormalization:
    """
    Normalise un numéro brut (fonction pure, sans accès base).

    Args:
        raw_phone: Numéro tel que saisi
        table: Indicatifs connus {indicatif: (pays, longueur nationale)}
        default_country_code: Pays des numéros nationaux commençant par 0

    Returns:
        PhoneNormalization (valid=False avec un message d'erreur en cas d'échec)
    """
    default_country_code = default_country_code or settings.DEFAULT_COUNTRY_CODE

    if raw_phone is None or not raw_phone.strip():
        return PhoneNormalization(valid=False, error="Numéro de téléphone vide")

    cleaned = _CLEANUP_RE.sub("", raw_phone)

    explicit_international = False
    if cleaned.startswith("+"):
        cleaned = cleaned[1:]
        explicit_international = True
    elif cleaned.startswith("00"):
        cleaned = cleaned[2:]
        explicit_international = True

    country_code = _detect_country_code(cleaned, table)

    if country_code is None:
        if explicit_international:
            return PhoneNormalization(valid=False, error="Indicatif pays non reconnu")
        if not cleaned.startswith("0"):
            return PhoneNormalization(valid=False, error="Format de numéro non reconnu")
        country_code = default_country_code
        country, expected_length = table.get(country_code, FALLBACK_DEFAULT_COUNTRY)
        national_number = cleaned[1:]
    else:
        country, expected_length = table[country_code]
        national_number = cleaned[len(country_code) :]

    if len(national_number) != expected_length:
        return PhoneNormalization(
            valid=False,
            country_code=country_code,
            country=country,
            error=(
                f"Longueur invalide pour {country}: attendu {expected_length} chiffres, "
                f"reçu {len(national_number)}"
            ),
        )

    if not national_number.isdigit() or not national_number.isascii():
        return PhoneNormalization(
            valid=False,
            country_code=country_code,
            country=country,
            error="Le numéro contient des caractères non numériques",
        )

    return PhoneNormalization(
        valid=True,
        phone_international=f"+{country_code}{national_number}",
        country_code=country_code,
        country=country,
    )


async def list_country_codes(db: AsyncSession) -> list[CountryCode]:
    """Liste des indicatifs configurés (mise en cache)."""
    cache_key = cache_key_country_codes()
    cached = await cache_get(cache_key)
    if cached:
        return [CountryCode.model_validate(item) for item in json.loads(cached)]

    result = await db.execute(
        select(CountryPhoneConfig).order_by(CountryPhoneConfig.region, CountryPhoneConfig.country)
    )
    codes = [CountryCode.model_validate(row) for row in result.scalars().all()]

    await cache_set(
        cache_key,
        json.dumps([code.model_dump() for code in codes]),
        ttl=settings.CACHE_TTL_COUNTRY_CODES,
    )
    return codes


async def load_country_table(db: AsyncSession) -> CountryTable:
    codes = await list_country_codes(db)
    return {code.country_code: (code.country, code.expected_national_length) for code in codes}


async def normalize_phone_international(db: AsyncSession, raw_phone: str) -> PhoneNormalization:
    """Normalise un numéro à partir de la configuration pays en base."""
    with tracer.start_as_current_span("normalize_phone_international") as span:
        table = await load_country_table(db)
        result = normalize_phone(raw_phone, table)
        span.set_attribute("phone.valid", result.valid)
        if result.country_code:
            span.set_attribute("phone.country_code", result.country_code)
        return result


async def seed_country_phone_config(db: AsyncSession) -> int:
    """
    Insère les indicatifs manquants du référentiel.

    Returns:
        Nombre d'indicatifs ajoutés
    """
    result = await db.execute(select(CountryPhoneConfig.country_code))
    existing = set(result.scalars().all())

    added = 0
    for code, country, length, region in COUNTRY_PHONE_CODES:
        if code in existing:
            continue
        db.add(
            CountryPhoneConfig(
                country_code=code,
                country=country,
                expected_national_length=length,
                region=region,
            )
        )
        added += 1

    if added:
        await db.commit()
        logger.info(f"{added} indicatif(s) pays ajouté(s) à country_phone_config")
    return added

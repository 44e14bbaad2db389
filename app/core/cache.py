"""
Cache Redis (cache-aside, invalidation par TTL) pour core-gestion-pl.

Une erreur Redis n'interrompt jamais une requête: lecture en échec = miss,
écriture ou suppression en échec = False.

Clés utilisées:
    gestion:permissions:user:{profile_id}  codes de permission d'un utilisateur
    gestion:country_codes:all              table des indicatifs pays
"""

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from opentelemetry import metrics

from app.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

KEY_NAMESPACE = "gestion"

meter = metrics.get_meter("core-gestion-pl.cache")

cache_hits_counter = meter.create_counter(
    name="cache_hits_total", description="Lectures servies par le cache", unit="1"
)
cache_misses_counter = meter.create_counter(
    name="cache_misses_total", description="Lectures absentes du cache", unit="1"
)
cache_latency_histogram = meter.create_histogram(
    name="cache_latency_seconds", description="Durée des opérations cache", unit="s"
)


def _get_redis_client():
    """Client partagé ouvert par le backend d'événements (None avant démarrage)."""
    from app.core.events_redis import redis_client

    return redis_client


def _key_family(key: str) -> str:
    # gestion:permissions:user:42 -> permissions
    parts = key.split(":")
    return parts[1] if len(parts) >= 2 else "unknown"


async def _run(operation: str, key: str, call: Callable[[Any], Awaitable[T]], fallback: T) -> T:
    """Exécute ``call(client)`` en mesurant la latence; ``fallback`` si indisponible."""
    if not settings.CACHE_ENABLED:
        return fallback

    client = _get_redis_client()
    if client is None:
        logger.warning(f"Cache {operation} ignoré ({key}): client Redis non initialisé")
        return fallback

    family = _key_family(key)
    started = time.perf_counter()
    try:
        result = await call(client)
    except Exception as e:
        cache_latency_histogram.record(
            time.perf_counter() - started, {"operation": operation, "key_prefix": "error"}
        )
        logger.warning(f"Cache {operation} en erreur pour {key}: {e}")
        return fallback

    cache_latency_histogram.record(
        time.perf_counter() - started, {"operation": operation, "key_prefix": family}
    )
    return result


async def cache_get(key: str) -> str | None:
    """Valeur brute (JSON) stockée sous ``key``, None en cas de miss ou d'erreur."""
    value = await _run("get", key, lambda client: client.get(key), None)

    family = _key_family(key) if settings.CACHE_ENABLED else None
    if value:
        cache_hits_counter.add(1, {"key_prefix": family})
        logger.debug(f"Cache HIT: {key}")
        return value

    if family is not None:
        cache_misses_counter.add(1, {"key_prefix": family})
        logger.debug(f"Cache MISS: {key}")
    return None


async def cache_set(key: str, value: str, ttl: int | None = None) -> bool:
    """Stocke ``value`` avec un TTL (CACHE_TTL_DEFAULT par défaut)."""
    ttl = ttl or settings.CACHE_TTL_DEFAULT

    async def _set(client) -> bool:
        await client.set(key, value, ex=ttl)
        logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")
        return True

    return await _run("set", key, _set, False)


async def cache_delete(key: str) -> bool:
    async def _delete(client) -> bool:
        await client.delete(key)
        logger.debug(f"Cache DELETE: {key}")
        return True

    return await _run("delete", key, _delete, False)


def cache_key_user_permissions(profile_id: str) -> str:
    return f"{KEY_NAMESPACE}:permissions:user:{profile_id}"


def cache_key_country_codes() -> str:
    return f"{KEY_NAMESPACE}:country_codes:all"


__all__ = [
    "cache_delete",
    "cache_get",
    "cache_key_country_codes",
    "cache_key_user_permissions",
    "cache_set",
]

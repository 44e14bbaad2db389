"""
Backend Redis Pub/Sub des événements métier - core-gestion-pl.

Chaque message publié est une enveloppe JSON:
    {"id": "<uuid>", "subject": "...", "timestamp": "<ISO 8601 UTC>", "data": {...}}

Livraison best-effort: un message publié sans abonné est perdu. Les
handlers sont enregistrés par @subscribe à l'import de app.events, puis
une tâche de fond unique écoute tous leurs sujets.
"""

import asyncio
import json
import logging
import uuid
from collections import defaultdict
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager, suppress
from typing import Any

import redis.asyncio as redis
from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from pydantic import BaseModel

from app.core.config import settings
from app.utils.dates import utc_now

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

EventHandler = Callable[[dict], Awaitable[None]]

redis_client: redis.Redis | None = None
handlers: defaultdict[str, list[EventHandler]] = defaultdict(list)
consumer_task: asyncio.Task | None = None


def _messaging_attributes(subject: str, message_id: str | None) -> dict[str, Any]:
    return {
        "messaging.system": "redis",
        "messaging.destination": subject,
        "messaging.message.id": message_id or "",
    }


def build_envelope(subject: str, payload: dict | BaseModel) -> dict[str, Any]:
    """Enveloppe un payload (dict ou modèle Pydantic) avec id et horodatage."""
    data = payload.model_dump(mode="json") if isinstance(payload, BaseModel) else payload
    return {
        "id": str(uuid.uuid4()),
        "subject": subject,
        "timestamp": utc_now().isoformat(),
        "data": data,
    }


async def init_redis():
    """Ouvre le client Redis partagé et vérifie la connexion."""
    global redis_client
    redis_client = redis.from_url(
        settings.REDIS_URL,
        db=settings.REDIS_DB,
        decode_responses=True,
        socket_timeout=5.0,
        socket_connect_timeout=5.0,
    )
    await redis_client.ping()
    logger.info(f"Client Redis prêt: {settings.REDIS_URL}")


async def close_redis():
    global redis_client
    if redis_client is not None:
        await redis_client.close()
        redis_client = None
        logger.info("Client Redis fermé")


async def publish(subject: str, payload: dict | BaseModel, max_retries: int = 3):
    """
    Publie un événement sur le canal ``subject``.

    Les échecs sont retentés avec un délai exponentiel (1s, 2s, 4s...).
    La dernière erreur est relevée une fois ``max_retries`` atteint.
    """
    envelope = build_envelope(subject, payload)
    message = json.dumps(envelope)

    with tracer.start_as_current_span(
        f"publish.{subject}",
        kind=trace.SpanKind.PRODUCER,
        attributes=_messaging_attributes(subject, envelope["id"]),
    ) as span:
        for attempt in range(1, max_retries + 1):
            try:
                await redis_client.publish(subject, message)
            except Exception as e:
                if attempt == max_retries:
                    error_msg = (
                        f"Publication '{subject}' abandonnée après {max_retries} essai(s): {e}"
                    )
                    logger.error(error_msg, exc_info=True)
                    span.set_status(Status(StatusCode.ERROR, error_msg))
                    span.record_exception(e)
                    raise

                delay = 2 ** (attempt - 1)
                logger.warning(
                    f"Publication '{subject}' en échec ({attempt}/{max_retries}): {e}, "
                    f"nouvel essai dans {delay}s"
                )
                span.add_event("publish.retry", {"attempt": attempt, "error": str(e)})
                await asyncio.sleep(delay)
            else:
                logger.debug(f"Événement '{subject}' publié ({envelope['id']})")
                span.set_attribute("messaging.attempts", attempt)
                return


def subscribe(subject: str):
    """Décorateur: enregistre la coroutine décorée comme handler de ``subject``."""

    def decorator(func: EventHandler) -> EventHandler:
        handlers[subject].append(func)
        logger.info(f"Handler '{func.__name__}' abonné à '{subject}'")
        return func

    return decorator


async def dispatch(subject: str, raw: str):
    """Décode un message reçu et l'exécute sur chaque handler du sujet.

    L'échec d'un handler est journalisé sans empêcher les suivants.
    """
    try:
        envelope = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error(f"Message illisible sur '{subject}': {e}")
        return

    with tracer.start_as_current_span(
        f"consume.{subject}",
        kind=trace.SpanKind.CONSUMER,
        attributes=_messaging_attributes(subject, envelope.get("id")),
    ) as span:
        failed = 0
        subject_handlers = handlers.get(subject, [])
        for handler in subject_handlers:
            try:
                await handler(envelope.get("data") or {})
            except Exception as e:
                failed += 1
                logger.error(
                    f"Handler '{handler.__name__}' en échec sur '{subject}': {e}", exc_info=True
                )
                span.record_exception(e)

        span.set_attribute("handlers.executed", len(subject_handlers) - failed)
        span.set_attribute("handlers.failed", failed)


async def consume_messages():
    """Écoute les sujets enregistrés jusqu'à annulation de la tâche."""
    pubsub = redis_client.pubsub()
    await pubsub.subscribe(*handlers.keys())
    logger.info(f"Abonné aux sujets Redis: {', '.join(handlers)}")

    try:
        async for message in pubsub.listen():
            if message["type"] != "message":
                continue
            await dispatch(message["channel"], message["data"])
    except asyncio.CancelledError:
        logger.info("Consommation Redis annulée")
    finally:
        await pubsub.unsubscribe()
        await pubsub.close()


async def start_consuming():
    global consumer_task

    if not handlers:
        logger.warning("Aucun handler enregistré, consommation Redis non démarrée")
        return

    consumer_task = asyncio.create_task(consume_messages(), name="redis_consumer")
    logger.info(f"Consommation Redis démarrée ({len(handlers)} sujet(s))")


async def stop_consuming():
    global consumer_task

    if consumer_task is not None and not consumer_task.done():
        consumer_task.cancel()
        with suppress(asyncio.CancelledError):
            await consumer_task
        logger.info("Consommation Redis arrêtée")
    consumer_task = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Ouvre Redis et la consommation au démarrage, les ferme à l'arrêt."""
    await init_redis()
    await start_consuming()
    try:
        yield
    finally:
        await stop_consuming()
        await close_redis()
        logger.info("Messagerie Redis arrêtée")


__all__ = ["build_envelope", "dispatch", "lifespan", "publish", "subscribe"]

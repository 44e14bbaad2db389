"""
Façade du système d'événements - core-gestion-pl.

Point d'import unique pour publier et consommer des événements, quel que
soit le backend. L'implémentation réelle se trouve dans
app/core/events_redis.py (Redis Pub/Sub).

Usage:
    from app.core.events import publish, subscribe, lifespan

    await publish("gestion.prospect.created", {"prospect_id": "12345678"})

    @subscribe("gestion.role.permissions_updated")
    async def handle_role_update(payload: dict):
        ...
"""

from app.core.events_redis import (
    lifespan,
    publish,
    subscribe,
)

__all__ = [
    "lifespan",
    "publish",
    "subscribe",
]

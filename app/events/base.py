"""Socle commun des handlers d'événements consommés depuis Redis."""

import logging
from abc import ABC, abstractmethod
from typing import Any


class BaseEventHandler(ABC):
    """
    Handler d'un sujet Redis.

    ``on_event`` est le point d'entrée branché sur @subscribe: il journalise
    la réception et absorbe les erreurs du traitement métier afin qu'un
    message défaillant n'arrête pas la boucle de consommation.
    """

    def __init__(self, event_name: str):
        self.event_name = event_name
        self.logger = logging.getLogger(f"app.events.{event_name}")

    @abstractmethod
    async def handle_event(self, payload: dict[str, Any]) -> None: ...

    async def handle_error(self, payload: dict[str, Any], error: Exception) -> None:
        self.logger.error(
            f"Échec du traitement de {self.event_name} ({payload}): {error}", exc_info=True
        )

    async def on_event(self, payload: dict[str, Any]) -> None:
        self.logger.debug(f"Reçu {self.event_name}: {payload}")
        try:
            await self.handle_event(payload)
        except Exception as e:
            await self.handle_error(payload, e)

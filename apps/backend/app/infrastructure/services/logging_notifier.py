"""
Name: Notification Senders (Logging adapter + in-memory test double)

Qué es
------
Implementaciones de `domain.services.NotificationSender`:
  - LoggingNotificationSender: canal por defecto, deja la notificación en
    los logs estructurados (sin datos sensibles: el payload nunca lleva PIN).
  - InMemoryNotificationSender: guarda lo enviado para asserts en tests.

Arquitectura
------------
- Capa: Infrastructure (adapter)
- Los casos de uso tratan send() como best-effort: si lanza, se loguea y se
  cuenta en métricas, sin revertir escrituras.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Any, Dict, List, Mapping

from ...crosscutting.logger import logger
from ...domain.services import NotificationSender


class LoggingNotificationSender(NotificationSender):
    def send(
        self, recipient_id: str, template: str, payload: Mapping[str, Any]
    ) -> None:
        logger.info(
            "Notificación enviada",
            extra={
                "recipient_id": recipient_id,
                "template": template,
                "payload_keys": sorted(payload),
            },
        )


@dataclass(frozen=True)
class SentNotification:
    recipient_id: str
    template: str
    payload: Dict[str, Any]


class InMemoryNotificationSender(NotificationSender):
    """Test double: determinista, sin IO. `fail=True` simula un canal caído."""

    def __init__(self, *, fail: bool = False) -> None:
        self._lock = Lock()
        self._sent: List[SentNotification] = []
        self.fail = fail

    def send(
        self, recipient_id: str, template: str, payload: Mapping[str, Any]
    ) -> None:
        if self.fail:
            raise ConnectionError("notification channel unavailable")
        with self._lock:
            self._sent.append(SentNotification(recipient_id, template, dict(payload)))

    @property
    def sent(self) -> List[SentNotification]:
        with self._lock:
            return list(self._sent)

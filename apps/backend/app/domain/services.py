"""
===============================================================================
TARJETA CRC — domain/services.py
===============================================================================

Módulo:
    Puertos de Servicios Externos (Protocols)

Responsabilidades:
    - Definir el contrato de envío de notificaciones.
    - Mantener el dominio independiente del canal (email, push, inbox).

Colaboradores:
    - infrastructure/services/logging_notifier.py: implementación por logs.
    - application/usecases: notifican best-effort (nunca revierten escrituras).
===============================================================================
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol


class NotificationSender(Protocol):
    """Contrato para notificar a una identidad."""

    def send(
        self, recipient_id: str, template: str, payload: Mapping[str, Any]
    ) -> None:
        """Envía una notificación. Puede lanzar: el caller la trata como best-effort."""
        ...

# =============================================================================
# FILE: domain/value_objects.py
# =============================================================================
"""
===============================================================================
DOMAIN: Value Objects (Immutable Domain Primitives)
===============================================================================

Contenido:
    - AttestationContext: metadatos del dispositivo/red al momento de firmar
    - OfflineSignatureItem: tupla (rut, pin, timestamp) capturada sin conexión

Principios:
    - Inmutabilidad (frozen dataclasses)
    - Normalización en constructor
    - Sin side effects
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Final, Optional

UNKNOWN: Final[str] = "unknown"


@dataclass(frozen=True, slots=True)
class AttestationContext:
    """
    Evidencia capturada junto a cada firma.

    No es prueba criptográfica: el valor probatorio descansa en el registro
    server-side de hora, IP y dispositivo.
    """

    ip_address: str = UNKNOWN
    user_agent: str = UNKNOWN

    def __post_init__(self) -> None:
        object.__setattr__(self, "ip_address", (self.ip_address or "").strip() or UNKNOWN)
        object.__setattr__(self, "user_agent", (self.user_agent or "").strip() or UNKNOWN)


@dataclass(frozen=True, slots=True)
class OfflineSignatureItem:
    """Firma recolectada sin conexión, pendiente de reconciliar."""

    rut: str
    pin: str
    client_timestamp: Optional[datetime] = None
    name: Optional[str] = None

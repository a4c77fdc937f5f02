"""
===============================================================================
TARJETA CRC — identity/credentials.py
===============================================================================

Módulo:
    Codec de credenciales de firma (PIN + token)

Responsabilidades:
    - Hashear PINs de 4 dígitos ligados al id de la identidad que guarda el hash.
    - Verificar PINs en tiempo constante sin lanzar nunca.
    - Generar tokens de firma únicos y auditables.
    - Validar la fortaleza de un PIN nuevo.
    - Generar contraseñas temporales para altas y reseteos.

Colaboradores:
    - crosscutting/config.py: provee PIN_SALT (inyectado en PinCodec).
    - application/usecases: enrolamiento, firmas y lotes offline.

Reglas:
    - Un hash NUNCA se copia entre User y Worker: cada lado recalcula con su id.
    - Sin estado global: el salt llega por constructor.
===============================================================================
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import time
from dataclasses import dataclass
from typing import Callable, Final, Optional

PIN_LENGTH: Final[int] = 4

# Secuencias triviales que no se aceptan como PIN nuevo.
WEAK_PINS: Final[frozenset[str]] = frozenset(
    {str(d) * PIN_LENGTH for d in range(10)} | {"1234", "4321"}
)


class PinFormatError(ValueError):
    """El PIN no es exactamente 4 dígitos ASCII."""


def _is_pin_format(pin: object) -> bool:
    return (
        isinstance(pin, str)
        and len(pin) == PIN_LENGTH
        and pin.isascii()
        and pin.isdigit()
    )


@dataclass(frozen=True, slots=True)
class PinCheck:
    valid: bool
    error: Optional[str] = None


def validate_pin_strength(pin: object) -> PinCheck:
    """Reglas para PINs nuevos (no se aplica al verificar uno existente)."""
    if not pin:
        return PinCheck(False, "PIN es requerido")
    if not isinstance(pin, str) or len(pin) != PIN_LENGTH:
        return PinCheck(False, "PIN debe tener 4 dígitos")
    if not (pin.isascii() and pin.isdigit()):
        return PinCheck(False, "PIN debe contener solo números")
    if pin in WEAK_PINS:
        return PinCheck(False, "PIN demasiado simple, elija otro")
    return PinCheck(True)


# Sin caracteres ambiguos (0/O, 1/l/I).
_TEMP_PASSWORD_ALPHABET: Final[str] = (
    "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnpqrstuvwxyz23456789"
)


def generate_temporary_password(length: int = 10) -> str:
    """Contraseña alfanumérica de un solo uso (alta de usuario / reseteo)."""
    return "".join(secrets.choice(_TEMP_PASSWORD_ALPHABET) for _ in range(length))


def _to_base36(value: int) -> str:
    alphabet = "0123456789abcdefghijklmnopqrstuvwxyz"
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(alphabet[rem])
    return "".join(reversed(out))


class PinCodec:
    """
    Hash/verificación de PIN y generación de tokens.

    hash = sha256("{pin}-{identity_id}-{salt}") en hex.
    """

    def __init__(self, salt: str, *, clock_ms: Callable[[], int] | None = None):
        if not salt:
            raise ValueError("PIN salt must not be empty")
        self._salt = salt
        self._clock_ms = clock_ms or (lambda: time.time_ns() // 1_000_000)

    def hash_pin(self, pin: str, identity_id: object) -> str:
        if not _is_pin_format(pin):
            raise PinFormatError("PIN debe ser de 4 dígitos numéricos")
        material = f"{pin}-{identity_id}-{self._salt}"
        return hashlib.sha256(material.encode("utf-8")).hexdigest()

    def verify_pin(
        self, pin: object, stored_hash: object, identity_id: object
    ) -> bool:
        """True sólo si el PIN coincide. Entradas malformadas devuelven False."""
        if not pin or not stored_hash or not identity_id:
            return False
        if not isinstance(stored_hash, str) or not _is_pin_format(pin):
            return False
        candidate = self.hash_pin(pin, identity_id)  # type: ignore[arg-type]
        return hmac.compare_digest(candidate.encode(), stored_hash.encode())

    def generate_token(self) -> str:
        """SIG-<timestamp base36>-<16 hex aleatorios>-<checksum 6 hex>, en mayúsculas."""
        timestamp = _to_base36(self._clock_ms())
        random_part = secrets.token_hex(8)
        checksum = hashlib.sha256(
            f"{timestamp}-{random_part}-{self._salt}".encode("utf-8")
        ).hexdigest()[:6]
        return f"SIG-{timestamp}-{random_part}-{checksum}".upper()

    def token_checksum_ok(self, token: str) -> bool:
        """Verifica que el checksum del token corresponda a este salt."""
        parts = (token or "").split("-")
        if len(parts) != 4 or parts[0] != "SIG":
            return False
        timestamp, random_part, checksum = (p.lower() for p in parts[1:])
        expected = hashlib.sha256(
            f"{timestamp}-{random_part}-{self._salt}".encode("utf-8")
        ).hexdigest()[:6]
        return hmac.compare_digest(expected, checksum)

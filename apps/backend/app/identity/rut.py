"""
===============================================================================
TARJETA CRC — identity/rut.py
===============================================================================

Módulo:
    Normalización y validación de RUT (identificador nacional chileno)

Responsabilidades:
    - Llevar cualquier variante de entrada ("12.345.678-5", "12345678-5",
      " 12345678 5 ") a la forma canónica "123456785".
    - Validar el dígito verificador (módulo 11).
    - Formatear la forma canónica para mostrar ("12.345.678-5").

Colaboradores:
    - application/usecases: toda comparación entre identidades usa la forma canónica.
    - infrastructure/repositories: indexan por la forma canónica.

Reglas:
    - Funciones puras, sin I/O.
    - None representa "RUT inválido".
===============================================================================
"""

from __future__ import annotations

from typing import Final, Optional

_MIN_BODY_DIGITS: Final[int] = 6
_MAX_BODY_DIGITS: Final[int] = 8
_STRIP_CHARS: Final[str] = ".- \t\r\n"


def compute_check_digit(body: str) -> str:
    """Dígito verificador módulo 11 para un cuerpo numérico ("0".."9" | "K")."""
    total = 0
    factor = 2
    for digit in reversed(body):
        total += int(digit) * factor
        factor = 2 if factor == 7 else factor + 1
    remainder = 11 - (total % 11)
    if remainder == 11:
        return "0"
    if remainder == 10:
        return "K"
    return str(remainder)


def normalize_rut(raw: object) -> Optional[str]:
    """
    Devuelve el RUT canónico o None si es inválido.

    Idempotente: normalize_rut(normalize_rut(x)) == normalize_rut(x).
    """
    if not isinstance(raw, str):
        return None

    cleaned = "".join(ch for ch in raw if ch not in _STRIP_CHARS).upper()
    if len(cleaned) < 2:
        return None

    body, dv = cleaned[:-1].lstrip("0"), cleaned[-1]
    if not body.isdigit() or not body.isascii():
        return None
    if not _MIN_BODY_DIGITS <= len(body) <= _MAX_BODY_DIGITS:
        return None
    if compute_check_digit(body) != dv:
        return None

    return f"{body}{dv}"


def format_rut(canonical: str) -> str:
    """'123456785' -> '12.345.678-5'. Si no es válido se devuelve tal cual."""
    normalized = normalize_rut(canonical)
    if normalized is None:
        return canonical

    body, dv = normalized[:-1], normalized[-1]
    groups = []
    while body:
        groups.insert(0, body[-3:])
        body = body[:-3]
    return f"{'.'.join(groups)}-{dv}"


def is_valid_rut(raw: object) -> bool:
    return normalize_rut(raw) is not None

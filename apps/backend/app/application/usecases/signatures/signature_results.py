"""
===============================================================================
SIGNATURE USE CASE RESULTS (Shared Result / Error Models)
===============================================================================

Name:
    Signature Use Case Results

Business Goal:
    Proveer modelos compartidos de resultados y errores para los casos de uso
    de enrolamiento, firmas, solicitudes de firma y reconciliación offline.

Why (Context / Intención):
    - Los use cases devuelven resultados tipados en lugar de lanzar excepciones
      de negocio (PIN incorrecto, transición ilegal), facilitando:
        * mapeo a status HTTP en un único lugar
        * tests unitarios de flujos
        * resultados parciales (lotes offline) sin abortar
    - Las fallas de infraestructura SÍ se propagan como DatabaseError.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Responsibilities:
    - SignatureErrorCode: taxonomía estable.
    - SignatureError: code + message.
    - SignatureResult / SignatureListResult.

Collaborators:
    - domain.entities.Signature
    - interfaces/api/http/error_mapping.py (code -> HTTP)
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List

from ....domain.entities import Signature


class SignatureErrorCode(str, Enum):
    """
    Códigos:
      - VALIDATION_ERROR: inputs inválidos, PIN débil, PIN no configurado.
      - NOT_FOUND: identidad/firma/solicitud inexistente.
      - AUTH_ERROR: PIN incorrecto, identidad no habilitada.
      - CONFLICT: transición ilegal o estado ya alcanzado.
      - INTERNAL_ERROR: falla de store aislada (ítems de un lote offline).
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    AUTH_ERROR = "AUTH_ERROR"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass(frozen=True)
class SignatureError:
    """
    Error de caso de uso.

    Los mensajes de AUTH_ERROR nunca revelan más que "PIN incorrecto",
    "not enrolled" o "not enabled".
    """

    code: SignatureErrorCode
    message: str


def validation_error(message: str) -> SignatureError:
    return SignatureError(SignatureErrorCode.VALIDATION_ERROR, message)


def not_found_error(message: str) -> SignatureError:
    return SignatureError(SignatureErrorCode.NOT_FOUND, message)


def auth_error(message: str) -> SignatureError:
    return SignatureError(SignatureErrorCode.AUTH_ERROR, message)


def conflict_error(message: str) -> SignatureError:
    return SignatureError(SignatureErrorCode.CONFLICT, message)


@dataclass
class SignatureResult:
    """Contrato: error is None => signature presente."""

    signature: Signature | None = None
    error: SignatureError | None = None


@dataclass
class SignatureListResult:
    signatures: List[Signature]
    error: SignatureError | None = None

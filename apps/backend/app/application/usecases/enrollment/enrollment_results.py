"""
===============================================================================
ENROLLMENT USE CASE RESULTS
===============================================================================

Resultados de SetPin y CompleteEnrollment. Reusan la taxonomía
SignatureErrorCode / SignatureError del ledger.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from ....domain.entities import IdentityKind, Signature
from ..signatures.signature_results import SignatureError


@dataclass
class SetPinResult:
    """
    Campos:
      - identity_id / kind: registro que recibió el hash nuevo
      - propagated: True si la identidad vinculada también quedó re-hasheada
    """

    identity_id: UUID | None = None
    kind: IdentityKind | None = None
    propagated: bool = False
    error: SignatureError | None = None


@dataclass
class EnrollmentResult:
    """
    Campos:
      - worker_id: Worker resuelto (None si la sincronización falló)
      - resynced: True si el User ya estaba habilitado y se reparó el par
    """

    user_id: UUID | None = None
    worker_id: UUID | None = None
    enabled: bool = False
    signature: Signature | None = None
    resynced: bool = False
    error: SignatureError | None = None

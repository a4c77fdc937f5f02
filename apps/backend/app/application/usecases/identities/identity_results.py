"""
===============================================================================
IDENTITY PROVISIONING RESULTS
===============================================================================

Resultados del alta/consulta/edición de Users y Workers. Reusan la taxonomía
SignatureErrorCode / SignatureError del ledger.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from ....domain.entities import User, Worker
from ..signatures.signature_results import SignatureError


@dataclass
class UserResult:
    """
    Campos:
      - temporary_password: sólo en alta; se devuelve una única vez
      - linked_worker: True si el alta quedó vinculada a un Worker del mismo RUT
    """

    user: User | None = None
    temporary_password: str | None = None
    linked_worker: bool = False
    error: SignatureError | None = None


@dataclass
class WorkerResult:
    worker: Worker | None = None
    linked_user: bool = False
    error: SignatureError | None = None


@dataclass
class PasswordResetResult:
    user_id: UUID | None = None
    temporary_password: str | None = None
    error: SignatureError | None = None

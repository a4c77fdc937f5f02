"""
===============================================================================
SIGNATURE REQUEST USE CASE RESULTS
===============================================================================

Resultados del tracker de solicitudes y de la reconciliación offline, más la
regla pura de derivación de estado.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List
from uuid import UUID

from ....domain.entities import (
    TERMINAL_REQUEST_STATES,
    Signature,
    SignatureRequest,
    SignatureRequestState,
)
from ..signatures.signature_results import SignatureError, SignatureErrorCode


def derive_request_state(
    current: SignatureRequestState, completed: int, required: int
) -> SignatureRequestState:
    """
    completed iff completed == required; in_progress iff completed > 0;
    si no, se conserva. Nunca retrocede y nunca sale de un estado terminal.
    """
    if current in TERMINAL_REQUEST_STATES:
        return current
    if required > 0 and completed >= required:
        return SignatureRequestState.COMPLETED
    if completed > 0:
        return SignatureRequestState.IN_PROGRESS
    return current


@dataclass
class SignatureRequestResult:
    request: SignatureRequest | None = None
    error: SignatureError | None = None


@dataclass
class SignatureRequestDetailResult:
    request: SignatureRequest | None = None
    signatures: List[Signature] = field(default_factory=list)
    error: SignatureError | None = None


@dataclass
class SignatureRequestListResult:
    requests: List[SignatureRequest]
    error: SignatureError | None = None


@dataclass
class ExpireRequestsResult:
    """skipped: solicitudes que cambiaron entre la lectura y la escritura."""

    expired: List[SignatureRequest] = field(default_factory=list)
    skipped: int = 0


@dataclass
class RecordSignerResult:
    """recorded=False sin error: re-notificación idempotente o solicitud terminal."""

    request: SignatureRequest | None = None
    recorded: bool = False
    error: SignatureError | None = None


@dataclass(frozen=True)
class OfflineItemOutcome:
    rut: str
    success: bool
    signature_id: UUID | None = None
    token: str | None = None
    error_code: SignatureErrorCode | None = None
    error: str | None = None


@dataclass
class OfflineBatchResult:
    accepted: int = 0
    rejected: int = 0
    items: List[OfflineItemOutcome] = field(default_factory=list)
    request_id: UUID | None = None
    error: SignatureError | None = None

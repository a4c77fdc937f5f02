"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/signatures.py
============================================================
Classes: InMemorySignatureRepository, InMemorySignatureRequestRepository

Responsibilities:
  - Ledger de firmas append-only en memoria (índice por token).
  - Única mutación: state/dispute condicionada al estado esperado.
  - Agregados SignatureRequest con versión optimista.
  - Ordering alineado con Postgres: timestamp DESC, id DESC.

Constraints / Notes:
  - Thread-safe (Lock) y copias profundas en ambos sentidos.
  - Un token repetido -> DatabaseError (equivalente a uq_signatures_token).
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from ....crosscutting.exceptions import DatabaseError, StaleRecordError
from ....domain.entities import (
    DisputeInfo,
    Signature,
    SignatureRequest,
    SignatureRequestState,
    SignatureState,
)
from ....domain.repositories import SignatureRepository, SignatureRequestRepository
from ._conditional import snapshot

_OPEN_STATES = frozenset(
    {SignatureRequestState.PENDING, SignatureRequestState.IN_PROGRESS}
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _newest_first(signatures: Iterable[Signature]) -> List[Signature]:
    return sorted(
        signatures, key=lambda s: (s.timestamp, str(s.id)), reverse=True
    )


class InMemorySignatureRepository(SignatureRepository):
    def __init__(self) -> None:
        self._lock = Lock()
        self._signatures: Dict[UUID, Signature] = {}
        self._by_token: Dict[str, UUID] = {}

    def create_signature(self, signature: Signature) -> Signature:
        with self._lock:
            if signature.token in self._by_token:
                raise DatabaseError("Token de firma duplicado")
            stored = snapshot(signature)
            stored.created_at = stored.created_at or _now()
            self._signatures[stored.id] = stored
            self._by_token[stored.token] = stored.id
            return snapshot(stored)

    def get_signature(self, signature_id: UUID) -> Optional[Signature]:
        with self._lock:
            signature = self._signatures.get(signature_id)
            return snapshot(signature) if signature else None

    def get_signature_by_token(self, token: str) -> Optional[Signature]:
        with self._lock:
            signature_id = self._by_token.get(token)
            return snapshot(self._signatures[signature_id]) if signature_id else None

    def list_signatures_for_identities(
        self, identity_ids: List[UUID]
    ) -> List[Signature]:
        wanted = set(identity_ids)
        if not wanted:
            return []
        with self._lock:
            matches = [
                snapshot(s)
                for s in self._signatures.values()
                if s.worker_id in wanted or s.user_id in wanted
            ]
        return _newest_first(matches)

    def list_signatures_by_state(self, state: SignatureState) -> List[Signature]:
        with self._lock:
            matches = [snapshot(s) for s in self._signatures.values() if s.state == state]
        return _newest_first(matches)

    def list_signatures_by_request(self, request_id: UUID) -> List[Signature]:
        with self._lock:
            matches = [
                snapshot(s)
                for s in self._signatures.values()
                if s.request_id == request_id
            ]
        return _newest_first(matches)

    def update_signature_state(
        self,
        signature_id: UUID,
        *,
        state: SignatureState,
        dispute: DisputeInfo,
        expected_state: SignatureState,
    ) -> Optional[Signature]:
        with self._lock:
            current = self._signatures.get(signature_id)
            if current is None:
                return None
            if current.state != expected_state:
                raise StaleRecordError(
                    f"Firma {signature_id} está {current.state.value}, "
                    f"se esperaba {expected_state.value}"
                )
            updated = replace(current, state=state, dispute=dispute)
            self._signatures[signature_id] = updated
            return snapshot(updated)


class InMemorySignatureRequestRepository(SignatureRequestRepository):
    def __init__(self) -> None:
        self._lock = Lock()
        self._requests: Dict[UUID, SignatureRequest] = {}

    def create_request(self, request: SignatureRequest) -> SignatureRequest:
        with self._lock:
            if request.id in self._requests:
                raise DatabaseError(f"Solicitud {request.id} ya existe")
            now = _now()
            stored = snapshot(request)
            stored.version = 1
            stored.created_at = stored.created_at or now
            stored.updated_at = stored.updated_at or now
            self._requests[stored.id] = stored
            return snapshot(stored)

    def get_request(self, request_id: UUID) -> Optional[SignatureRequest]:
        with self._lock:
            request = self._requests.get(request_id)
            return snapshot(request) if request else None

    def replace_request(
        self, request: SignatureRequest, *, expected_version: int
    ) -> SignatureRequest:
        with self._lock:
            current = self._requests.get(request.id)
            if current is None or current.version != expected_version:
                raise StaleRecordError(
                    f"Solicitud {request.id} no está en la versión {expected_version}"
                )
            stored = snapshot(request)
            stored.version = expected_version + 1
            stored.created_at = current.created_at
            self._requests[stored.id] = stored
            return snapshot(stored)

    def list_open_requests_for_worker(
        self, worker_id: UUID
    ) -> List[SignatureRequest]:
        with self._lock:
            matches = [
                snapshot(r)
                for r in self._requests.values()
                if r.state in _OPEN_STATES
                and any(s.worker_id == worker_id and not s.signed for s in r.signers)
            ]
        return sorted(matches, key=lambda r: (r.created_at or _now(), str(r.id)))

    def list_overdue_requests(self, now: datetime) -> List[SignatureRequest]:
        with self._lock:
            matches = [
                snapshot(r)
                for r in self._requests.values()
                if r.state in _OPEN_STATES and r.due_at is not None and r.due_at < now
            ]
        return sorted(matches, key=lambda r: (r.due_at, str(r.id)))

"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/signatures.py
============================================================
Classes: PostgresSignatureRepository, PostgresSignatureRequestRepository

Responsibilities:
  - Ledger append-only en `signatures` (uq_signatures_token).
  - Transición de disputa con UPDATE ... WHERE state = expected.
  - Agregados en `signature_requests` (signers en JSONB) con versión
    optimista: UPDATE ... WHERE version = expected RETURNING.

Constraints / Notes:
  - Ordering estable: signed_at DESC, id DESC.
  - La bandeja del trabajador usa containment JSONB (signers @> ...)
    sobre el índice GIN de la migración.
============================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from ....crosscutting.exceptions import DatabaseError, StaleRecordError
from ....domain.entities import (
    DisputeInfo,
    RequestSigner,
    Signature,
    SignaturePurpose,
    SignatureRequest,
    SignatureRequestState,
    SignatureRequestType,
    SignatureState,
    ValidationMethod,
)
from ._sql import fetchall, fetchone, to_db

_SIGNATURE_COLUMNS = (
    "id, token, worker_id, signer_rut, signer_name, purpose, reference_id, "
    "reference_type, signed_date, signed_time, signed_at, validation_method, "
    "ip_address, user_agent, user_id, request_id, synced_at, state, dispute, "
    "metadata, company_id, created_at"
)
_SIGNATURE_ORDER_BY = "signed_at DESC, id DESC"

_REQUEST_COLUMNS = (
    "id, request_type, title, description, requester_id, requester_name, "
    "signers, required_count, completed_count, state, due_at, completed_at, "
    "location, company_id, offline, synced_at, cancel_reason, version, "
    "created_at, updated_at"
)


def _row_to_signature(row: tuple) -> Signature:
    try:
        purpose = SignaturePurpose(row[5])
        method = ValidationMethod(row[11])
        state = SignatureState(row[17])
    except ValueError as exc:
        raise DatabaseError(f"Invalid signature enum in database: {exc}") from exc

    return Signature(
        id=row[0],
        token=row[1],
        worker_id=row[2],
        signer_rut=row[3],
        signer_name=row[4],
        purpose=purpose,
        reference_id=row[6],
        reference_type=row[7],
        signed_date=row[8],
        signed_time=row[9],
        timestamp=row[10],
        validation_method=method,
        ip_address=row[12],
        user_agent=row[13],
        user_id=row[14],
        request_id=row[15],
        synced_at=row[16],
        state=state,
        dispute=DisputeInfo.from_dict(row[18]) if row[18] else None,
        metadata=dict(row[19] or {}),
        company_id=row[20],
        created_at=row[21],
    )


def _row_to_request(row: tuple) -> SignatureRequest:
    try:
        request_type = SignatureRequestType(row[1])
        state = SignatureRequestState(row[9])
    except ValueError as exc:
        raise DatabaseError(f"Invalid request enum in database: {exc}") from exc

    return SignatureRequest(
        id=row[0],
        request_type=request_type,
        title=row[2],
        description=row[3],
        requester_id=row[4],
        requester_name=row[5],
        signers=[RequestSigner.from_dict(s) for s in (row[6] or [])],
        required_count=row[7],
        completed_count=row[8],
        state=state,
        due_at=row[10],
        completed_at=row[11],
        location=row[12],
        company_id=row[13],
        offline=row[14],
        synced_at=row[15],
        cancel_reason=row[16],
        version=row[17],
        created_at=row[18],
        updated_at=row[19],
    )


def _signers_json(signers: List[RequestSigner]) -> Jsonb:
    return Jsonb([s.to_dict() for s in signers])


class PostgresSignatureRepository:
    def __init__(self, pool: ConnectionPool | None = None) -> None:
        self._pool = pool

    def create_signature(self, signature: Signature) -> Signature:
        row = fetchone(
            self._pool,
            query=f"""
                INSERT INTO signatures (
                    id, token, worker_id, signer_rut, signer_name, purpose,
                    reference_id, reference_type, signed_date, signed_time,
                    signed_at, validation_method, ip_address, user_agent,
                    user_id, request_id, synced_at, state, dispute, metadata,
                    company_id
                )
                VALUES (
                    %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s,
                    %s, %s, %s, %s, %s, %s, %s, %s, %s, %s
                )
                RETURNING {_SIGNATURE_COLUMNS}
            """,
            params=(
                signature.id,
                signature.token,
                signature.worker_id,
                signature.signer_rut,
                signature.signer_name,
                to_db(signature.purpose),
                signature.reference_id,
                signature.reference_type,
                signature.signed_date,
                signature.signed_time,
                signature.timestamp,
                to_db(signature.validation_method),
                signature.ip_address,
                signature.user_agent,
                signature.user_id,
                signature.request_id,
                signature.synced_at,
                to_db(signature.state),
                to_db(signature.dispute),
                Jsonb(signature.metadata or {}),
                signature.company_id,
            ),
            log_msg="PostgresSignatureRepository: create_signature failed",
            log_extra={
                "signature_id": str(signature.id),
                "purpose": signature.purpose.value,
            },
        )
        if not row:
            raise DatabaseError(
                "PostgresSignatureRepository: create_signature returned no row"
            )
        return _row_to_signature(row)

    def get_signature(self, signature_id: UUID) -> Optional[Signature]:
        row = fetchone(
            self._pool,
            query=f"SELECT {_SIGNATURE_COLUMNS} FROM signatures WHERE id = %s",
            params=(signature_id,),
            log_msg="PostgresSignatureRepository: get_signature failed",
            log_extra={"signature_id": str(signature_id)},
        )
        return _row_to_signature(row) if row else None

    def get_signature_by_token(self, token: str) -> Optional[Signature]:
        row = fetchone(
            self._pool,
            query=f"SELECT {_SIGNATURE_COLUMNS} FROM signatures WHERE token = %s",
            params=(token,),
            log_msg="PostgresSignatureRepository: get_signature_by_token failed",
            log_extra={},
        )
        return _row_to_signature(row) if row else None

    def list_signatures_for_identities(
        self, identity_ids: List[UUID]
    ) -> List[Signature]:
        if not identity_ids:
            return []
        ids = list(identity_ids)
        rows = fetchall(
            self._pool,
            query=f"""
                SELECT {_SIGNATURE_COLUMNS}
                FROM signatures
                WHERE worker_id = ANY(%s) OR user_id = ANY(%s)
                ORDER BY {_SIGNATURE_ORDER_BY}
            """,
            params=(ids, ids),
            log_msg="PostgresSignatureRepository: list_signatures_for_identities failed",
            log_extra={"identities": len(ids)},
        )
        return [_row_to_signature(r) for r in rows]

    def list_signatures_by_state(self, state: SignatureState) -> List[Signature]:
        rows = fetchall(
            self._pool,
            query=f"""
                SELECT {_SIGNATURE_COLUMNS}
                FROM signatures
                WHERE state = %s
                ORDER BY {_SIGNATURE_ORDER_BY}
            """,
            params=(state.value,),
            log_msg="PostgresSignatureRepository: list_signatures_by_state failed",
            log_extra={"state": state.value},
        )
        return [_row_to_signature(r) for r in rows]

    def list_signatures_by_request(self, request_id: UUID) -> List[Signature]:
        rows = fetchall(
            self._pool,
            query=f"""
                SELECT {_SIGNATURE_COLUMNS}
                FROM signatures
                WHERE request_id = %s
                ORDER BY {_SIGNATURE_ORDER_BY}
            """,
            params=(request_id,),
            log_msg="PostgresSignatureRepository: list_signatures_by_request failed",
            log_extra={"request_id": str(request_id)},
        )
        return [_row_to_signature(r) for r in rows]

    def update_signature_state(
        self,
        signature_id: UUID,
        *,
        state: SignatureState,
        dispute: DisputeInfo,
        expected_state: SignatureState,
    ) -> Optional[Signature]:
        row = fetchone(
            self._pool,
            query=f"""
                UPDATE signatures
                SET state = %s, dispute = %s
                WHERE id = %s AND state = %s
                RETURNING {_SIGNATURE_COLUMNS}
            """,
            params=(
                state.value,
                to_db(dispute),
                signature_id,
                expected_state.value,
            ),
            log_msg="PostgresSignatureRepository: update_signature_state failed",
            log_extra={"signature_id": str(signature_id), "to_state": state.value},
        )
        if row:
            return _row_to_signature(row)
        if self.get_signature(signature_id) is not None:
            raise StaleRecordError(
                f"Firma {signature_id} no está en estado {expected_state.value}"
            )
        return None


class PostgresSignatureRequestRepository:
    def __init__(self, pool: ConnectionPool | None = None) -> None:
        self._pool = pool

    def create_request(self, request: SignatureRequest) -> SignatureRequest:
        row = fetchone(
            self._pool,
            query=f"""
                INSERT INTO signature_requests (
                    id, request_type, title, description, requester_id,
                    requester_name, signers, required_count, completed_count,
                    state, due_at, completed_at, location, company_id, offline,
                    synced_at, cancel_reason, version, created_at, updated_at
                )
                VALUES (
                    %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s,
                    %s, %s, 1, COALESCE(%s, now()), COALESCE(%s, now())
                )
                RETURNING {_REQUEST_COLUMNS}
            """,
            params=(
                request.id,
                to_db(request.request_type),
                request.title,
                request.description,
                request.requester_id,
                request.requester_name,
                _signers_json(request.signers),
                request.required_count,
                request.completed_count,
                to_db(request.state),
                request.due_at,
                request.completed_at,
                request.location,
                request.company_id,
                request.offline,
                request.synced_at,
                request.cancel_reason,
                request.created_at,
                request.updated_at,
            ),
            log_msg="PostgresSignatureRequestRepository: create_request failed",
            log_extra={"request_id": str(request.id)},
        )
        if not row:
            raise DatabaseError(
                "PostgresSignatureRequestRepository: create_request returned no row"
            )
        return _row_to_request(row)

    def get_request(self, request_id: UUID) -> Optional[SignatureRequest]:
        row = fetchone(
            self._pool,
            query=f"SELECT {_REQUEST_COLUMNS} FROM signature_requests WHERE id = %s",
            params=(request_id,),
            log_msg="PostgresSignatureRequestRepository: get_request failed",
            log_extra={"request_id": str(request_id)},
        )
        return _row_to_request(row) if row else None

    def replace_request(
        self, request: SignatureRequest, *, expected_version: int
    ) -> SignatureRequest:
        row = fetchone(
            self._pool,
            query=f"""
                UPDATE signature_requests
                SET title = %s,
                    description = %s,
                    signers = %s,
                    required_count = %s,
                    completed_count = %s,
                    state = %s,
                    due_at = %s,
                    completed_at = %s,
                    location = %s,
                    synced_at = %s,
                    cancel_reason = %s,
                    version = version + 1,
                    updated_at = COALESCE(%s, now())
                WHERE id = %s AND version = %s
                RETURNING {_REQUEST_COLUMNS}
            """,
            params=(
                request.title,
                request.description,
                _signers_json(request.signers),
                request.required_count,
                request.completed_count,
                to_db(request.state),
                request.due_at,
                request.completed_at,
                request.location,
                request.synced_at,
                request.cancel_reason,
                request.updated_at,
                request.id,
                expected_version,
            ),
            log_msg="PostgresSignatureRequestRepository: replace_request failed",
            log_extra={"request_id": str(request.id), "version": expected_version},
        )
        if not row:
            raise StaleRecordError(
                f"Solicitud {request.id} no está en la versión {expected_version}"
            )
        return _row_to_request(row)

    def list_open_requests_for_worker(
        self, worker_id: UUID
    ) -> List[SignatureRequest]:
        rows = fetchall(
            self._pool,
            query=f"""
                SELECT {_REQUEST_COLUMNS}
                FROM signature_requests
                WHERE state IN ('pending', 'in_progress')
                  AND signers @> %s
                ORDER BY created_at ASC, id ASC
            """,
            params=(Jsonb([{"worker_id": str(worker_id), "signed": False}]),),
            log_msg="PostgresSignatureRequestRepository: list_open_requests_for_worker failed",
            log_extra={"worker_id": str(worker_id)},
        )
        return [_row_to_request(r) for r in rows]

    def list_overdue_requests(self, now: datetime) -> List[SignatureRequest]:
        rows = fetchall(
            self._pool,
            query=f"""
                SELECT {_REQUEST_COLUMNS}
                FROM signature_requests
                WHERE state IN ('pending', 'in_progress')
                  AND due_at < %s
                ORDER BY due_at ASC, id ASC
            """,
            params=(now,),
            log_msg="PostgresSignatureRequestRepository: list_overdue_requests failed",
            log_extra={"now": now.isoformat()},
        )
        return [_row_to_request(r) for r in rows]

"""
===============================================================================
USE CASES: Cancel / Get / List pending signature requests
===============================================================================

- CancelSignatureRequestUseCase: una solicitud completada (o ya terminal) no
  se cancela (CONFLICT). Motivo por defecto "Cancelada por el solicitante".
- GetSignatureRequestUseCase: solicitud + firmas del ledger que la referencian.
- ListPendingRequestsForWorkerUseCase: bandeja del trabajador (pendientes o en
  curso donde aún no firmó), las que vencen antes primero.
- ExpireOverdueRequestsUseCase: pasa a expired las solicitudes abiertas cuyo
  due_at ya pasó (lo invoca un job periódico; ninguna lectura expira sola).
===============================================================================
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from ....crosscutting.exceptions import StaleRecordError
from ....domain.entities import SignatureRequest, SignatureRequestState
from ....domain.repositories import SignatureRepository, SignatureRequestRepository
from ..signatures.ledger import Clock, utc_now
from ..signatures.signature_results import conflict_error, not_found_error
from .request_results import (
    ExpireRequestsResult,
    SignatureRequestDetailResult,
    SignatureRequestListResult,
    SignatureRequestResult,
)

logger = logging.getLogger(__name__)

DEFAULT_CANCEL_REASON = "Cancelada por el solicitante"

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


class CancelSignatureRequestUseCase:
    def __init__(
        self, request_repository: SignatureRequestRepository, clock: Clock = utc_now
    ) -> None:
        self._requests = request_repository
        self._clock = clock

    def execute(
        self, request_id: UUID, reason: Optional[str] = None
    ) -> SignatureRequestResult:
        request = self._requests.get_request(request_id)
        if request is None:
            return SignatureRequestResult(error=not_found_error("Solicitud no encontrada"))
        if request.state == SignatureRequestState.COMPLETED:
            return SignatureRequestResult(
                error=conflict_error("No se puede cancelar una solicitud completada")
            )
        if request.is_terminal:
            return SignatureRequestResult(
                error=conflict_error(f"La solicitud ya está {request.state.value}")
            )

        now = self._clock()
        cancelled = replace(
            request,
            state=SignatureRequestState.CANCELLED,
            cancel_reason=(reason or "").strip() or DEFAULT_CANCEL_REASON,
            updated_at=now,
        )
        try:
            saved = self._requests.replace_request(
                cancelled, expected_version=request.version
            )
        except StaleRecordError:
            return SignatureRequestResult(
                error=conflict_error("La solicitud cambió concurrentemente; reintente")
            )

        logger.info("Solicitud cancelada request_id=%s", request_id)
        return SignatureRequestResult(request=saved)


class GetSignatureRequestUseCase:
    def __init__(
        self,
        request_repository: SignatureRequestRepository,
        signature_repository: SignatureRepository,
    ) -> None:
        self._requests = request_repository
        self._signatures = signature_repository

    def execute(self, request_id: UUID) -> SignatureRequestDetailResult:
        request = self._requests.get_request(request_id)
        if request is None:
            return SignatureRequestDetailResult(
                error=not_found_error("Solicitud no encontrada")
            )
        signatures = self._signatures.list_signatures_by_request(request_id)
        return SignatureRequestDetailResult(request=request, signatures=signatures)


def _due_key(request: SignatureRequest) -> datetime:
    return request.due_at or _FAR_FUTURE


class ListPendingRequestsForWorkerUseCase:
    def __init__(self, request_repository: SignatureRequestRepository) -> None:
        self._requests = request_repository

    def execute(self, worker_id: UUID) -> SignatureRequestListResult:
        requests = self._requests.list_open_requests_for_worker(worker_id)
        requests.sort(key=_due_key)
        return SignatureRequestListResult(requests=requests)


class ExpireOverdueRequestsUseCase:
    def __init__(
        self, request_repository: SignatureRequestRepository, clock: Clock = utc_now
    ) -> None:
        self._requests = request_repository
        self._clock = clock

    def execute(self) -> ExpireRequestsResult:
        now = self._clock()
        result = ExpireRequestsResult()
        for request in self._requests.list_overdue_requests(now):
            expired = replace(
                request, state=SignatureRequestState.EXPIRED, updated_at=now
            )
            try:
                saved = self._requests.replace_request(
                    expired, expected_version=request.version
                )
            except StaleRecordError:
                # Firmada o cancelada entre la lectura y la escritura; la
                # próxima corrida la reevalúa.
                result.skipped += 1
                continue
            result.expired.append(saved)

        logger.info(
            "Solicitudes vencidas expiradas=%d omitidas=%d",
            len(result.expired),
            result.skipped,
        )
        return result

"""
===============================================================================
USE CASE: Record Signer (on signature accepted)
===============================================================================

Mantiene la proyección SignatureRequest consistente con el ledger después de
cada firma aceptada que referencia una solicitud.

-------------------------------------------------------------------------------
BUSINESS RULES
-------------------------------------------------------------------------------
R1) Idempotente por firmante: una re-notificación no cuenta doble.
R2) completed_count se recalcula desde las entradas de firmantes.
R3) Estado monotónico (derive_request_state); una solicitud terminal no se toca.
R4) Escritura con version esperada; ante StaleRecordError se relee y reintenta
    (tenacity, backoff corto con jitter) un número fijo de veces.
===============================================================================
"""

from __future__ import annotations

from dataclasses import replace
from uuid import UUID

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from ....crosscutting.exceptions import StaleRecordError
from ....crosscutting.logger import logger
from ....domain.entities import SignatureRequestState
from ....domain.repositories import SignatureRequestRepository
from ..signatures.ledger import Clock, utc_now
from ..signatures.signature_results import conflict_error, not_found_error
from .request_results import RecordSignerResult, derive_request_state


def _log_stale_retry(retry_state: RetryCallState) -> None:
    request_id = retry_state.args[0] if retry_state.args else None
    logger.info(
        "Solicitud modificada concurrentemente; reintentando",
        extra={
            "request_id": str(request_id),
            "attempt": retry_state.attempt_number,
        },
    )


class RecordSignerUseCase:
    def __init__(
        self,
        request_repository: SignatureRequestRepository,
        clock: Clock = utc_now,
        max_retries: int = 3,
        backoff_seconds: float = 0.01,
    ) -> None:
        self._requests = request_repository
        self._clock = clock
        self._max_retries = max(1, max_retries)
        self._backoff = max(0.0, backoff_seconds)

    def execute(
        self, request_id: UUID, signer_id: UUID, signature_id: UUID
    ) -> RecordSignerResult:
        retrying = Retrying(
            stop=stop_after_attempt(self._max_retries),
            wait=wait_exponential_jitter(
                initial=self._backoff, max=self._backoff * 10, jitter=self._backoff
            ),
            retry=retry_if_exception_type(StaleRecordError),
            before_sleep=_log_stale_retry,
            reraise=True,
        )
        try:
            return retrying(self._attempt, request_id, signer_id, signature_id)
        except StaleRecordError:
            return RecordSignerResult(
                error=conflict_error("La solicitud cambió demasiadas veces; reintente")
            )

    def _attempt(
        self, request_id: UUID, signer_id: UUID, signature_id: UUID
    ) -> RecordSignerResult:
        request = self._requests.get_request(request_id)
        if request is None:
            return RecordSignerResult(error=not_found_error("Solicitud no encontrada"))
        if request.is_terminal:
            return RecordSignerResult(request=request, recorded=False)

        entry = request.signer_for(signer_id)
        if entry is None:
            return RecordSignerResult(
                request=request,
                error=not_found_error("El firmante no pertenece a la solicitud"),
            )
        if entry.signed:
            return RecordSignerResult(request=request, recorded=False)

        now = self._clock()
        signers = [
            replace(s, signed=True, signature_id=signature_id, signed_at=now)
            if s.worker_id == signer_id
            else s
            for s in request.signers
        ]
        completed = sum(1 for s in signers if s.signed)
        state = derive_request_state(request.state, completed, request.required_count)
        updated = replace(
            request,
            signers=signers,
            completed_count=completed,
            state=state,
            completed_at=(
                now if state == SignatureRequestState.COMPLETED else request.completed_at
            ),
            updated_at=now,
        )
        # StaleRecordError sube a tenacity, que relee y reintenta.
        saved = self._requests.replace_request(updated, expected_version=request.version)

        if state != request.state:
            logger.info(
                "Solicitud cambió de estado",
                extra={
                    "request_id": str(request_id),
                    "from_state": request.state.value,
                    "to_state": state.value,
                },
            )
        return RecordSignerResult(request=saved, recorded=True)

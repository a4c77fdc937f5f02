"""
===============================================================================
USE CASE: Create Signature Request
===============================================================================

Business Goal:
    Pedir la firma de varios trabajadores sobre una misma actividad (charla,
    capacitación, entrega de EPP, etc.).

-------------------------------------------------------------------------------
BUSINESS RULES
-------------------------------------------------------------------------------
R1) Título y lista de firmantes obligatorios.
R2) El solicitante debe existir.
R3) Ids de firmantes que no resuelven a un Worker se descartan en silencio
    (deduplicados); si no resuelve ninguno -> VALIDATION_ERROR.
R4) required = resueltos, completed = 0, state = pending.
R5) Notificación best-effort a cada firmante (urgente si vence pronto).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID, uuid4

from ....crosscutting.logger import logger
from ....crosscutting.metrics import record_notification_failure
from ....domain.entities import (
    RequestSigner,
    SignatureRequest,
    SignatureRequestState,
    SignatureRequestType,
    Worker,
)
from ....domain.repositories import (
    SignatureRequestRepository,
    UserRepository,
    WorkerRepository,
)
from ....domain.services import NotificationSender
from ..signatures.ledger import Clock, as_utc, utc_now
from ..signatures.signature_results import not_found_error, validation_error
from .request_results import SignatureRequestResult

SIGNATURE_REQUESTED_TEMPLATE = "signature_requested"


@dataclass
class CreateSignatureRequestInput:
    request_type: SignatureRequestType
    title: str
    requester_id: UUID
    signer_ids: List[UUID] = field(default_factory=list)
    description: Optional[str] = None
    due_at: Optional[datetime] = None
    location: Optional[str] = None


class CreateSignatureRequestUseCase:
    def __init__(
        self,
        request_repository: SignatureRequestRepository,
        worker_repository: WorkerRepository,
        user_repository: UserRepository,
        notifier: NotificationSender | None = None,
        clock: Clock = utc_now,
        urgent_due_hours: int = 48,
    ) -> None:
        self._requests = request_repository
        self._workers = worker_repository
        self._users = user_repository
        self._notifier = notifier
        self._clock = clock
        self._urgent_window = timedelta(hours=urgent_due_hours)

    def execute(self, input_data: CreateSignatureRequestInput) -> SignatureRequestResult:
        title = (input_data.title or "").strip()
        if not title:
            return SignatureRequestResult(error=validation_error("El título es obligatorio"))
        if not input_data.signer_ids:
            return SignatureRequestResult(
                error=validation_error("Debe indicar al menos un firmante")
            )

        requester = self._users.get_user(input_data.requester_id)
        if requester is None:
            return SignatureRequestResult(
                error=not_found_error("Solicitante no encontrado")
            )

        workers = self._resolve_signers(input_data.signer_ids)
        if not workers:
            return SignatureRequestResult(
                error=validation_error("Ningún firmante válido")
            )

        now = self._clock()
        due_at = as_utc(input_data.due_at) if input_data.due_at else None
        request = SignatureRequest(
            id=uuid4(),
            request_type=input_data.request_type,
            title=title,
            description=input_data.description,
            requester_id=requester.id,
            requester_name=requester.full_name,
            signers=[
                RequestSigner(
                    worker_id=w.id, name=w.full_name, rut=w.rut, position=w.position
                )
                for w in workers
            ],
            required_count=len(workers),
            completed_count=0,
            state=SignatureRequestState.PENDING,
            due_at=due_at,
            location=input_data.location,
            company_id=requester.company_id,
            created_at=now,
            updated_at=now,
        )
        request = self._requests.create_request(request)
        logger.info(
            "Solicitud de firma creada",
            extra={
                "request_id": str(request.id),
                "request_type": request.request_type.value,
                "required": request.required_count,
                "dropped_signers": len(set(input_data.signer_ids)) - len(workers),
            },
        )

        urgent = due_at is not None and due_at - now < self._urgent_window
        for worker in workers:
            self._notify(worker, request, urgent)

        return SignatureRequestResult(request=request)

    def _resolve_signers(self, signer_ids: List[UUID]) -> List[Worker]:
        seen: set[UUID] = set()
        workers: List[Worker] = []
        for signer_id in signer_ids:
            if signer_id in seen:
                continue
            seen.add(signer_id)
            worker = self._workers.get_worker(signer_id)
            if worker is not None:
                workers.append(worker)
        return workers

    def _notify(self, worker: Worker, request: SignatureRequest, urgent: bool) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.send(
                str(worker.user_id or worker.id),
                SIGNATURE_REQUESTED_TEMPLATE,
                {
                    "request_id": str(request.id),
                    "title": request.title,
                    "request_type": request.request_type.value,
                    "requester_name": request.requester_name,
                    "due_at": request.due_at.isoformat() if request.due_at else None,
                    "urgent": urgent,
                },
            )
        except Exception:
            record_notification_failure(SIGNATURE_REQUESTED_TEMPLATE)
            logger.exception(
                "No se pudo notificar la solicitud de firma",
                extra={"request_id": str(request.id), "worker_id": str(worker.id)},
            )

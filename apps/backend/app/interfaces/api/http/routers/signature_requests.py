"""
===============================================================================
TARJETA CRC — app/interfaces/api/http/routers/signature_requests.py
===============================================================================

Class/Module:
    Signature Requests Router

Responsibilities:
    - Crear / consultar / cancelar solicitudes de firma.
    - Bandeja de pendientes de un trabajador.
    - Expirar solicitudes vencidas (job periódico o disparo manual).
    - Recibir lotes offline (siempre 200 con resultado parcial estructurado).

Collaborators:
    - app.application.usecases (tracker + offline batch)
    - app.identity.auth_users (require_user, require_permission)
    - error_mapping.raise_signature_error
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from app.application.usecases import (
    CancelSignatureRequestUseCase,
    CreateSignatureRequestInput,
    CreateSignatureRequestUseCase,
    ExpireOverdueRequestsUseCase,
    GetSignatureRequestUseCase,
    ListPendingRequestsForWorkerUseCase,
    OfflineBatchInput,
    ProcessOfflineBatchUseCase,
)
from app.container import (
    get_cancel_signature_request_use_case,
    get_create_signature_request_use_case,
    get_expire_overdue_requests_use_case,
    get_get_signature_request_use_case,
    get_list_pending_requests_use_case,
    get_process_offline_batch_use_case,
)
from app.domain.entities import User
from app.domain.value_objects import AttestationContext, OfflineSignatureItem
from app.identity.auth_users import require_permission, require_user
from app.identity.users import Permission
from fastapi import APIRouter, Depends, status

from ..dependencies import attestation_context, ensure_self_or_permission
from ..error_mapping import raise_signature_error
from ..schemas.signature_requests import (
    CancelSignatureRequestReq,
    CreateSignatureRequestReq,
    ExpireRequestsRes,
    OfflineBatchReq,
    OfflineBatchRes,
    OfflineItemRes,
    SignatureRequestDetailRes,
    SignatureRequestRes,
    SignatureRequestsListRes,
)
from ..schemas.signatures import SignatureRes

router = APIRouter(prefix="/signature-requests", tags=["signature-requests"])


@router.post(
    "", response_model=SignatureRequestRes, status_code=status.HTTP_201_CREATED
)
def create_signature_request(
    req: CreateSignatureRequestReq,
    use_case: CreateSignatureRequestUseCase = Depends(
        get_create_signature_request_use_case
    ),
    actor: User = Depends(require_permission(Permission.CREATE_SIGNATURE_REQUESTS)),
):
    result = use_case.execute(
        CreateSignatureRequestInput(
            request_type=req.request_type,
            title=req.title,
            requester_id=actor.id,
            signer_ids=list(req.signer_ids),
            description=req.description,
            due_at=req.due_at,
            location=req.location,
        )
    )
    if result.error is not None:
        raise_signature_error(result.error)
    return SignatureRequestRes.from_entity(result.request)


@router.post("/offline-batch", response_model=OfflineBatchRes)
def process_offline_batch(
    req: OfflineBatchReq,
    use_case: ProcessOfflineBatchUseCase = Depends(get_process_offline_batch_use_case),
    context: AttestationContext = Depends(attestation_context),
    actor: User = Depends(require_permission(Permission.CREATE_SIGNATURE_REQUESTS)),
):
    result = use_case.execute(
        OfflineBatchInput(
            request_type=req.request_type,
            title=req.title,
            requester_id=actor.id,
            items=[
                OfflineSignatureItem(
                    rut=item.rut,
                    pin=item.pin,
                    client_timestamp=item.timestamp,
                    name=item.name,
                )
                for item in req.items
            ],
            description=req.description,
            location=req.location,
            created_offline_at=req.created_offline_at,
            context=context,
        )
    )
    if result.error is not None:
        raise_signature_error(result.error)

    return OfflineBatchRes(
        accepted=result.accepted,
        rejected=result.rejected,
        request_id=result.request_id,
        items=[
            OfflineItemRes(
                rut=o.rut,
                success=o.success,
                signature_id=o.signature_id,
                token=o.token,
                error_code=o.error_code.value if o.error_code else None,
                error=o.error,
            )
            for o in result.items
        ],
    )


@router.get("/pending/{worker_id}", response_model=SignatureRequestsListRes)
def list_pending_requests(
    worker_id: UUID,
    use_case: ListPendingRequestsForWorkerUseCase = Depends(
        get_list_pending_requests_use_case
    ),
    actor: User = Depends(require_user()),
):
    ensure_self_or_permission(
        actor, identity_id=worker_id, permission=Permission.VIEW_REPORTS
    )
    result = use_case.execute(worker_id)
    if result.error is not None:
        raise_signature_error(result.error)
    return SignatureRequestsListRes(
        requests=[SignatureRequestRes.from_entity(r) for r in result.requests],
        total=len(result.requests),
    )


@router.get("/{request_id}", response_model=SignatureRequestDetailRes)
def get_signature_request(
    request_id: UUID,
    use_case: GetSignatureRequestUseCase = Depends(get_get_signature_request_use_case),
    _actor: User = Depends(require_user()),
):
    result = use_case.execute(request_id)
    if result.error is not None:
        raise_signature_error(result.error)
    base = SignatureRequestRes.from_entity(result.request)
    return SignatureRequestDetailRes(
        **base.model_dump(),
        signatures=[SignatureRes.from_entity(s) for s in result.signatures],
    )


@router.post("/{request_id}/cancel", response_model=SignatureRequestRes)
def cancel_signature_request(
    request_id: UUID,
    req: CancelSignatureRequestReq | None = None,
    use_case: CancelSignatureRequestUseCase = Depends(
        get_cancel_signature_request_use_case
    ),
    _actor: User = Depends(require_permission(Permission.CREATE_SIGNATURE_REQUESTS)),
):
    result = use_case.execute(request_id, req.reason if req else None)
    if result.error is not None:
        raise_signature_error(result.error)
    return SignatureRequestRes.from_entity(result.request)


@router.post("/expire-overdue", response_model=ExpireRequestsRes)
def expire_overdue_requests(
    use_case: ExpireOverdueRequestsUseCase = Depends(
        get_expire_overdue_requests_use_case
    ),
    _actor: User = Depends(require_permission(Permission.CREATE_SIGNATURE_REQUESTS)),
):
    result = use_case.execute()
    return ExpireRequestsRes(
        expired=[SignatureRequestRes.from_entity(r) for r in result.expired],
        skipped=result.skipped,
    )

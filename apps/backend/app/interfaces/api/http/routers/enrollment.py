"""
===============================================================================
TARJETA CRC — app/interfaces/api/http/routers/enrollment.py
===============================================================================

Class/Module:
    Enrollment Router

Responsibilities:
    - Configurar PIN de un User o de un Worker.
    - Completar el enrolamiento (firma de enrolamiento + habilitación) de un
      User, o de un Worker directamente.
    - Enforce: la propia identidad, o permiso reset_pin para terceros.

Collaborators:
    - app.application.usecases (SetPinUseCase, CompleteEnrollmentUseCase,
      CompleteWorkerEnrollmentUseCase)
    - app.identity.auth_users.require_user
    - error_mapping.raise_signature_error
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from app.application.usecases import (
    CompleteEnrollmentUseCase,
    CompleteWorkerEnrollmentUseCase,
    SetPinUseCase,
)
from app.container import (
    get_complete_enrollment_use_case,
    get_complete_worker_enrollment_use_case,
    get_set_pin_use_case,
)
from app.crosscutting.error_responses import forbidden, internal_error
from app.domain.entities import IdentityKind, User
from app.domain.value_objects import AttestationContext
from app.identity.auth_users import require_user
from app.identity.users import Permission
from fastapi import APIRouter, Depends

from ..dependencies import attestation_context, ensure_self_or_permission
from ..error_mapping import raise_signature_error
from ..schemas.enrollment import (
    CompleteEnrollmentReq,
    EnrollmentRes,
    SetPinReq,
    SetPinRes,
    WorkerEnrollmentRes,
)
from ..schemas.signatures import SignatureRes

router = APIRouter(tags=["enrollment"])


def _set_pin(
    use_case: SetPinUseCase, kind: IdentityKind, identity_id: UUID, req: SetPinReq
) -> SetPinRes:
    result = use_case.execute(kind, identity_id, req.new_pin, req.current_pin)
    if result.error is not None:
        raise_signature_error(result.error)
    return SetPinRes(
        identity_id=result.identity_id or identity_id,
        kind=kind,
        propagated=result.propagated,
    )


@router.post("/users/{user_id}/pin", response_model=SetPinRes)
def set_user_pin(
    user_id: UUID,
    req: SetPinReq,
    use_case: SetPinUseCase = Depends(get_set_pin_use_case),
    actor: User = Depends(require_user()),
):
    ensure_self_or_permission(actor, identity_id=user_id, permission=Permission.RESET_PIN)
    return _set_pin(use_case, IdentityKind.USER, user_id, req)


@router.post("/workers/{worker_id}/pin", response_model=SetPinRes)
def set_worker_pin(
    worker_id: UUID,
    req: SetPinReq,
    use_case: SetPinUseCase = Depends(get_set_pin_use_case),
    actor: User = Depends(require_user()),
):
    ensure_self_or_permission(
        actor, identity_id=worker_id, permission=Permission.RESET_PIN
    )
    return _set_pin(use_case, IdentityKind.WORKER, worker_id, req)


@router.post("/users/{user_id}/complete-enrollment", response_model=EnrollmentRes)
def complete_enrollment(
    user_id: UUID,
    req: CompleteEnrollmentReq,
    use_case: CompleteEnrollmentUseCase = Depends(get_complete_enrollment_use_case),
    context: AttestationContext = Depends(attestation_context),
    actor: User = Depends(require_user()),
):
    # El enrolamiento es un acto personal: nadie firma por otro.
    if actor.id != user_id:
        raise forbidden("Solo el propio usuario puede completar su enrolamiento.")

    result = use_case.execute(user_id, req.pin, context)
    if result.error is not None:
        raise_signature_error(result.error)
    if result.signature is None or result.user_id is None:
        raise internal_error("El enrolamiento no devolvió la firma")

    return EnrollmentRes(
        user_id=result.user_id,
        worker_id=result.worker_id,
        enabled=result.enabled,
        resynced=result.resynced,
        signature=SignatureRes.from_entity(result.signature),
    )


@router.post(
    "/workers/{worker_id}/complete-enrollment", response_model=WorkerEnrollmentRes
)
def complete_worker_enrollment(
    worker_id: UUID,
    req: CompleteEnrollmentReq,
    use_case: CompleteWorkerEnrollmentUseCase = Depends(
        get_complete_worker_enrollment_use_case
    ),
    context: AttestationContext = Depends(attestation_context),
    actor: User = Depends(require_user()),
):
    # Terminal de enrolamiento: un manage_users opera, el trabajador digita su PIN.
    ensure_self_or_permission(
        actor, identity_id=worker_id, permission=Permission.MANAGE_USERS
    )

    result = use_case.execute(worker_id, req.pin, context)
    if result.error is not None:
        raise_signature_error(result.error)
    if result.signature is None or result.worker_id is None:
        raise internal_error("El enrolamiento no devolvió la firma")

    return WorkerEnrollmentRes(
        worker_id=result.worker_id,
        user_id=result.user_id,
        enabled=result.enabled,
        signature=SignatureRes.from_entity(result.signature),
    )

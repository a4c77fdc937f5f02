"""
===============================================================================
TARJETA CRC — app/interfaces/api/http/routers/identities.py
===============================================================================

Class/Module:
    Identities Router (Users / Workers)

Responsibilities:
    - Alta, edición y reseteo de contraseña de Users (manage_users).
    - Alta y edición de Workers (manage_users).
    - Consulta por id (la propia identidad o view_users) y por RUT (view_users).

Collaborators:
    - app.application.usecases (Create/Get/Update User y Worker, ResetPassword)
    - app.identity.auth_users (require_user, require_permission)
    - error_mapping.raise_signature_error
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from app.application.usecases import (
    CreateUserInput,
    CreateUserUseCase,
    CreateWorkerInput,
    CreateWorkerUseCase,
    GetUserUseCase,
    GetWorkerUseCase,
    ResetPasswordUseCase,
    UpdateUserInput,
    UpdateUserUseCase,
    UpdateWorkerInput,
    UpdateWorkerUseCase,
)
from app.container import (
    get_create_user_use_case,
    get_create_worker_use_case,
    get_get_user_use_case,
    get_get_worker_use_case,
    get_reset_password_use_case,
    get_update_user_use_case,
    get_update_worker_use_case,
)
from app.domain.entities import User
from app.identity.auth_users import require_permission, require_user
from app.identity.users import Permission
from fastapi import APIRouter, Depends, status

from ..dependencies import ensure_self_or_permission
from ..error_mapping import raise_signature_error
from ..schemas.identities import (
    CreateUserReq,
    CreateUserRes,
    CreateWorkerReq,
    CreateWorkerRes,
    PasswordResetRes,
    UpdateUserReq,
    UpdateWorkerReq,
    UserRes,
    WorkerRes,
)

router = APIRouter(tags=["identities"])


# =============================================================================
# Users
# =============================================================================


@router.post("/users", response_model=CreateUserRes, status_code=status.HTTP_201_CREATED)
def create_user(
    req: CreateUserReq,
    use_case: CreateUserUseCase = Depends(get_create_user_use_case),
    _actor: User = Depends(require_permission(Permission.MANAGE_USERS)),
):
    result = use_case.execute(
        CreateUserInput(
            rut=req.rut,
            first_name=req.first_name,
            last_name=req.last_name,
            role=req.role,
            email=req.email,
            position=req.position,
            company_id=req.company_id,
        )
    )
    if result.error is not None:
        raise_signature_error(result.error)
    return CreateUserRes(
        user=UserRes.from_entity(result.user),
        temporary_password=result.temporary_password,
        linked_worker=result.linked_worker,
    )


@router.get("/users/rut/{rut}", response_model=UserRes)
def get_user_by_rut(
    rut: str,
    use_case: GetUserUseCase = Depends(get_get_user_use_case),
    _actor: User = Depends(require_permission(Permission.VIEW_USERS)),
):
    result = use_case.execute_by_rut(rut)
    if result.error is not None:
        raise_signature_error(result.error)
    return UserRes.from_entity(result.user)


@router.get("/users/{user_id}", response_model=UserRes)
def get_user(
    user_id: UUID,
    use_case: GetUserUseCase = Depends(get_get_user_use_case),
    actor: User = Depends(require_user()),
):
    ensure_self_or_permission(actor, identity_id=user_id, permission=Permission.VIEW_USERS)
    result = use_case.execute(user_id)
    if result.error is not None:
        raise_signature_error(result.error)
    return UserRes.from_entity(result.user)


@router.patch("/users/{user_id}", response_model=UserRes)
def update_user(
    user_id: UUID,
    req: UpdateUserReq,
    use_case: UpdateUserUseCase = Depends(get_update_user_use_case),
    _actor: User = Depends(require_permission(Permission.MANAGE_USERS)),
):
    result = use_case.execute(user_id, UpdateUserInput(**req.model_dump()))
    if result.error is not None:
        raise_signature_error(result.error)
    return UserRes.from_entity(result.user)


@router.post("/users/{user_id}/reset-password", response_model=PasswordResetRes)
def reset_password(
    user_id: UUID,
    use_case: ResetPasswordUseCase = Depends(get_reset_password_use_case),
    _actor: User = Depends(require_permission(Permission.MANAGE_USERS)),
):
    result = use_case.execute(user_id)
    if result.error is not None:
        raise_signature_error(result.error)
    return PasswordResetRes(
        user_id=result.user_id, temporary_password=result.temporary_password
    )


# =============================================================================
# Workers
# =============================================================================


@router.post(
    "/workers", response_model=CreateWorkerRes, status_code=status.HTTP_201_CREATED
)
def create_worker(
    req: CreateWorkerReq,
    use_case: CreateWorkerUseCase = Depends(get_create_worker_use_case),
    _actor: User = Depends(require_permission(Permission.MANAGE_USERS)),
):
    result = use_case.execute(
        CreateWorkerInput(
            rut=req.rut,
            first_name=req.first_name,
            last_name=req.last_name,
            position=req.position,
            company_id=req.company_id,
        )
    )
    if result.error is not None:
        raise_signature_error(result.error)
    return CreateWorkerRes(
        worker=WorkerRes.from_entity(result.worker), linked_user=result.linked_user
    )


@router.get("/workers/rut/{rut}", response_model=WorkerRes)
def get_worker_by_rut(
    rut: str,
    use_case: GetWorkerUseCase = Depends(get_get_worker_use_case),
    _actor: User = Depends(require_permission(Permission.VIEW_USERS)),
):
    result = use_case.execute_by_rut(rut)
    if result.error is not None:
        raise_signature_error(result.error)
    return WorkerRes.from_entity(result.worker)


@router.get("/workers/{worker_id}", response_model=WorkerRes)
def get_worker(
    worker_id: UUID,
    use_case: GetWorkerUseCase = Depends(get_get_worker_use_case),
    actor: User = Depends(require_user()),
):
    ensure_self_or_permission(
        actor, identity_id=worker_id, permission=Permission.VIEW_USERS
    )
    result = use_case.execute(worker_id)
    if result.error is not None:
        raise_signature_error(result.error)
    return WorkerRes.from_entity(result.worker)


@router.patch("/workers/{worker_id}", response_model=WorkerRes)
def update_worker(
    worker_id: UUID,
    req: UpdateWorkerReq,
    use_case: UpdateWorkerUseCase = Depends(get_update_worker_use_case),
    _actor: User = Depends(require_permission(Permission.MANAGE_USERS)),
):
    result = use_case.execute(worker_id, UpdateWorkerInput(**req.model_dump()))
    if result.error is not None:
        raise_signature_error(result.error)
    return WorkerRes.from_entity(result.worker)

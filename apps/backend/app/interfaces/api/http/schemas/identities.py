"""
===============================================================================
TARJETA CRC — schemas/identities.py
===============================================================================

Módulo:
    Schemas HTTP para alta y consulta de Users y Workers

Responsabilidades:
    - DTOs de /users y /workers (alta, edición, consulta, reseteo).
    - Mappers entidad -> DTO (UserRes.from_entity, WorkerRes.from_entity).

Reglas:
    - Nunca se exponen hashes (password / PIN); sólo has_pin.
    - El RUT llega en cualquier formato; el caso de uso lo normaliza.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from app.domain.entities import (
    EnrollmentState,
    User,
    UserRole,
    UserStatus,
    Worker,
    enrollment_state,
)
from app.identity.rut import format_rut
from pydantic import BaseModel, Field


class CreateUserReq(BaseModel):
    rut: str = Field(..., max_length=16, examples=["12.345.678-5"])
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(default="", max_length=100)
    role: UserRole
    email: str | None = Field(default=None, max_length=254)
    position: str | None = Field(default=None, max_length=100)
    company_id: str = Field(default="default", max_length=100)


class UpdateUserReq(BaseModel):
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    email: str | None = Field(default=None, max_length=254)
    position: str | None = Field(default=None, max_length=100)
    status: UserStatus | None = None


class UserRes(BaseModel):
    id: UUID
    rut: str = Field(description="RUT con formato 12.345.678-5")
    first_name: str
    last_name: str
    email: str | None = None
    position: str | None = None
    company_id: str
    role: UserRole
    status: UserStatus
    enabled: bool
    has_pin: bool
    enrollment_state: EnrollmentState
    worker_id: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, user: User) -> "UserRes":
        return cls(
            id=user.id,
            rut=format_rut(user.rut),
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            position=user.position,
            company_id=user.company_id,
            role=user.role,
            status=user.status,
            enabled=user.enabled,
            has_pin=user.has_pin,
            enrollment_state=enrollment_state(user),
            worker_id=user.worker_id,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class CreateUserRes(BaseModel):
    user: UserRes
    temporary_password: str = Field(
        description="Sólo visible en esta respuesta; debe cambiarse al primer acceso"
    )
    linked_worker: bool


class PasswordResetRes(BaseModel):
    user_id: UUID
    temporary_password: str


class CreateWorkerReq(BaseModel):
    rut: str = Field(..., max_length=16, examples=["12.345.678-5"])
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(default="", max_length=100)
    position: str = Field(..., min_length=1, max_length=100)
    company_id: str = Field(default="default", max_length=100)


class UpdateWorkerReq(BaseModel):
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    position: str | None = Field(default=None, max_length=100)


class WorkerRes(BaseModel):
    id: UUID
    rut: str = Field(description="RUT con formato 12.345.678-5")
    first_name: str
    last_name: str
    position: str | None = None
    company_id: str
    enabled: bool
    has_pin: bool
    enrollment_state: EnrollmentState
    user_id: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, worker: Worker) -> "WorkerRes":
        return cls(
            id=worker.id,
            rut=format_rut(worker.rut),
            first_name=worker.first_name,
            last_name=worker.last_name,
            position=worker.position,
            company_id=worker.company_id,
            enabled=worker.enabled,
            has_pin=worker.has_pin,
            enrollment_state=enrollment_state(worker),
            user_id=worker.user_id,
            created_at=worker.created_at,
            updated_at=worker.updated_at,
        )


class CreateWorkerRes(BaseModel):
    worker: WorkerRes
    linked_user: bool

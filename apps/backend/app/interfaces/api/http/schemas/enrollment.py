"""
===============================================================================
TARJETA CRC — schemas/enrollment.py
===============================================================================

Módulo:
    Schemas HTTP para configuración de PIN y enrolamiento

Responsabilidades:
    - DTOs de request/response de /users/{id}/pin, /workers/{id}/pin y
      /{users,workers}/{id}/complete-enrollment.
    - El formato del PIN (4 dígitos) lo valida el caso de uso para que los
      mensajes de PIN débil sean uniformes; acá sólo se acota el largo.
===============================================================================
"""

from __future__ import annotations

from uuid import UUID

from app.domain.entities import IdentityKind
from pydantic import BaseModel, Field

from .signatures import SignatureRes


class SetPinReq(BaseModel):
    new_pin: str = Field(..., max_length=16, description="PIN nuevo (4 dígitos)")
    current_pin: str | None = Field(
        default=None,
        max_length=16,
        description="PIN actual (obligatorio si la identidad ya está habilitada)",
    )


class SetPinRes(BaseModel):
    identity_id: UUID
    kind: IdentityKind
    propagated: bool = Field(
        description="Si el PIN se replicó a la identidad vinculada"
    )


class CompleteEnrollmentReq(BaseModel):
    pin: str = Field(..., max_length=16)


class EnrollmentRes(BaseModel):
    user_id: UUID
    worker_id: UUID | None
    enabled: bool
    resynced: bool
    signature: SignatureRes


class WorkerEnrollmentRes(BaseModel):
    worker_id: UUID
    user_id: UUID | None = None
    enabled: bool
    signature: SignatureRes

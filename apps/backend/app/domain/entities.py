"""
===============================================================================
TARJETA CRC — domain/entities.py
===============================================================================

Módulo:
    Entidades del Dominio (User, Worker, Signature, SignatureRequest)

Responsabilidades:
    - Definir las dos identidades de una persona: User (autenticación) y
      Worker (identidad operativa que firma).
    - Definir la firma (registro inmutable de consentimiento) y su disputa.
    - Definir la solicitud de firma (agregado de firmantes requeridos).
    - Catálogos cerrados como Enums str (estados, propósitos, tipos).

Colaboradores:
    - domain.repositories: persisten/recuperan estas entidades.
    - application/usecases: construyen/consumen estas entidades.
    - interfaces/api: serializan DTOs basados en estas entidades.

Principios:
    - Sin dependencias a DB/FastAPI.
    - Datos + comportamiento mínimo (helpers de lectura, no reglas de negocio).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID


def attestation_date_time(moment: datetime) -> tuple[str, str]:
    """Devuelve (fecha YYYY-MM-DD, horario HH:MM:SS) de un instante atestiguado."""
    return moment.strftime("%Y-%m-%d"), moment.strftime("%H:%M:%S")


# ---------------------------------------------------------------------------
# Catálogos
# ---------------------------------------------------------------------------


class UserRole(str, Enum):
    """Roles de la identidad de autenticación."""

    ADMIN = "admin"
    PREVENTIONIST = "preventionist"
    WORKER = "worker"


class UserStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"


class IdentityKind(str, Enum):
    """Qué registro guarda un hash de PIN."""

    USER = "user"
    WORKER = "worker"


class EnrollmentState(str, Enum):
    """Estado derivado del par PIN/habilitación de una identidad."""

    UNENROLLED = "unenrolled"
    PIN_SET = "pin_set"
    ENABLED = "enabled"


class SignaturePurpose(str, Enum):
    ENROLLMENT = "enrollment"
    DOCUMENT = "document"
    ACTIVITY = "activity"
    TRAINING = "training"


class ValidationMethod(str, Enum):
    PIN = "PIN"
    PIN_OFFLINE = "PIN-OFFLINE"


class SignatureState(str, Enum):
    VALID = "valid"
    DISPUTED = "disputed"
    REVOKED = "revoked"


class SignatureRequestType(str, Enum):
    """Tipos de actividad que pueden requerir firmas."""

    CHARLA_5MIN = "CHARLA_5MIN"
    CAPACITACION = "CAPACITACION"
    INDUCCION = "INDUCCION"
    ENTREGA_EPP = "ENTREGA_EPP"
    ART = "ART"
    PROCEDIMIENTO = "PROCEDIMIENTO"
    INSPECCION = "INSPECCION"
    REGLAMENTO = "REGLAMENTO"
    OTRO = "OTRO"


class SignatureRequestState(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


TERMINAL_REQUEST_STATES = frozenset(
    {
        SignatureRequestState.COMPLETED,
        SignatureRequestState.CANCELLED,
        SignatureRequestState.EXPIRED,
    }
)


# ---------------------------------------------------------------------------
# Enrolamiento
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EnrollmentSnapshot:
    """Copia de los datos de la firma de enrolamiento guardada en la identidad."""

    token: str
    signed_date: str
    signed_time: str
    timestamp: datetime
    validation_method: ValidationMethod
    ip_address: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "signed_date": self.signed_date,
            "signed_time": self.signed_time,
            "timestamp": self.timestamp.isoformat(),
            "validation_method": self.validation_method.value,
            "ip_address": self.ip_address,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EnrollmentSnapshot":
        return cls(
            token=data["token"],
            signed_date=data["signed_date"],
            signed_time=data["signed_time"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            validation_method=ValidationMethod(data["validation_method"]),
            ip_address=data.get("ip_address") or "unknown",
        )


# ---------------------------------------------------------------------------
# Identidades
# ---------------------------------------------------------------------------


@dataclass
class User:
    """
    Identidad de autenticación (login, rol, permisos).

    Puede estar vinculada a un Worker vía worker_id. El vínculo puede faltar o
    quedar desactualizado; el enrolamiento lo repara.
    """

    id: UUID
    rut: str
    first_name: str
    last_name: str = ""
    email: Optional[str] = None
    position: Optional[str] = None
    company_id: str = "default"
    role: UserRole = UserRole.WORKER
    password_hash: Optional[str] = None
    pin_hash: Optional[str] = None
    pin_created_at: Optional[datetime] = None
    enabled: bool = False
    worker_id: Optional[UUID] = None
    status: UserStatus = UserStatus.PENDING
    enrollment: Optional[EnrollmentSnapshot] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def has_pin(self) -> bool:
        return bool(self.pin_hash)


@dataclass
class Worker:
    """Identidad operativa: la persona que firma documentos y actividades."""

    id: UUID
    rut: str
    first_name: str
    last_name: str = ""
    position: Optional[str] = None
    company_id: str = "default"
    pin_hash: Optional[str] = None
    pin_created_at: Optional[datetime] = None
    enabled: bool = False
    user_id: Optional[UUID] = None
    enrollment: Optional[EnrollmentSnapshot] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def has_pin(self) -> bool:
        return bool(self.pin_hash)


def enrollment_state(identity: User | Worker) -> EnrollmentState:
    """UNENROLLED (sin PIN) -> PIN_SET -> ENABLED."""
    if not identity.pin_hash:
        return EnrollmentState.UNENROLLED
    if identity.enabled:
        return EnrollmentState.ENABLED
    return EnrollmentState.PIN_SET


# ---------------------------------------------------------------------------
# Firmas
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DisputeInfo:
    reason: str
    reported_by: str
    reported_at: datetime
    resolution: Optional[str] = None
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reason": self.reason,
            "reported_by": self.reported_by,
            "reported_at": self.reported_at.isoformat(),
            "resolution": self.resolution,
            "resolved_by": self.resolved_by,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DisputeInfo":
        resolved_at = data.get("resolved_at")
        return cls(
            reason=data["reason"],
            reported_by=data["reported_by"],
            reported_at=datetime.fromisoformat(data["reported_at"]),
            resolution=data.get("resolution"),
            resolved_by=data.get("resolved_by"),
            resolved_at=datetime.fromisoformat(resolved_at) if resolved_at else None,
        )


@dataclass
class Signature:
    """
    Firma: registro de consentimiento producido por una verificación de PIN.

    Nunca se borra. Lo único mutable es state/dispute (vía repositorio, con
    escritura condicional sobre el estado esperado).

    worker_id es el id de la identidad que firmó; cuando firma un User sin
    Worker vinculado, es el id del User.
    """

    id: UUID
    token: str
    worker_id: UUID
    signer_rut: str
    signer_name: str
    purpose: SignaturePurpose
    reference_id: Optional[str]
    reference_type: Optional[str]
    signed_date: str
    signed_time: str
    timestamp: datetime
    validation_method: ValidationMethod
    ip_address: str = "unknown"
    user_agent: str = "unknown"
    user_id: Optional[UUID] = None
    request_id: Optional[UUID] = None
    synced_at: Optional[datetime] = None
    state: SignatureState = SignatureState.VALID
    dispute: Optional[DisputeInfo] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    company_id: str = "default"
    created_at: Optional[datetime] = None

    @property
    def is_offline(self) -> bool:
        return self.validation_method == ValidationMethod.PIN_OFFLINE


# ---------------------------------------------------------------------------
# Solicitudes de firma
# ---------------------------------------------------------------------------


@dataclass
class RequestSigner:
    worker_id: UUID
    name: str
    rut: str
    position: Optional[str] = None
    signed: bool = False
    signature_id: Optional[UUID] = None
    signed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "worker_id": str(self.worker_id),
            "name": self.name,
            "rut": self.rut,
            "position": self.position,
            "signed": self.signed,
            "signature_id": str(self.signature_id) if self.signature_id else None,
            "signed_at": self.signed_at.isoformat() if self.signed_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RequestSigner":
        signature_id = data.get("signature_id")
        signed_at = data.get("signed_at")
        return cls(
            worker_id=UUID(str(data["worker_id"])),
            name=data.get("name") or "",
            rut=data.get("rut") or "",
            position=data.get("position"),
            signed=bool(data.get("signed")),
            signature_id=UUID(str(signature_id)) if signature_id else None,
            signed_at=datetime.fromisoformat(signed_at) if signed_at else None,
        )


@dataclass
class SignatureRequest:
    """
    Agregado de firmantes requeridos con estado derivado.

    Es una proyección: la fuente de verdad de "X firmó" es Signature.
    version se incrementa en cada escritura (concurrencia optimista).
    """

    id: UUID
    request_type: SignatureRequestType
    title: str
    requester_id: UUID
    requester_name: str
    signers: List[RequestSigner] = field(default_factory=list)
    description: Optional[str] = None
    required_count: int = 0
    completed_count: int = 0
    state: SignatureRequestState = SignatureRequestState.PENDING
    due_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    location: Optional[str] = None
    company_id: str = "default"
    offline: bool = False
    synced_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_REQUEST_STATES

    def signer_for(self, worker_id: UUID) -> Optional[RequestSigner]:
        for signer in self.signers:
            if signer.worker_id == worker_id:
                return signer
        return None

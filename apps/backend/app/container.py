"""
===============================================================================
TARJETA CRC — app/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer dependencias (repositorios, codec, notificador) siguiendo DIP.
  - Exponer factories para FastAPI (Depends) y para scripts.
  - Mantener singletons con caching (lru_cache) para recursos compartidos.
  - Centralizar decisiones runtime basadas en Settings (config).

Colaboradores:
  - app.crosscutting.config.get_settings
  - app.domain.repositories.* (puertos)
  - app.infrastructure.* (implementaciones)
  - app.application.usecases.* (casos de uso)

Patrones aplicados:
  - Composition Root
  - Dependency Inversion (use cases dependen de puertos)
  - Lazy singletons con lru_cache

Notas:
  - Este archivo NO contiene lógica de negocio.
  - Este archivo NO debe depender de FastAPI (solo expone factories).
  - APP_ENV test/testing/ci => repositorios in-memory (sin DB).
===============================================================================
"""

from __future__ import annotations

from functools import lru_cache

from .application.usecases import (
    CancelSignatureRequestUseCase,
    CompleteEnrollmentUseCase,
    CompleteWorkerEnrollmentUseCase,
    CreateSignatureRequestUseCase,
    CreateSignatureUseCase,
    CreateUserUseCase,
    CreateWorkerUseCase,
    DisputeSignatureUseCase,
    ExpireOverdueRequestsUseCase,
    GetSignatureRequestUseCase,
    GetSignerHistoryUseCase,
    GetUserUseCase,
    GetWorkerUseCase,
    ListDisputedSignaturesUseCase,
    ListPendingRequestsForWorkerUseCase,
    ProcessOfflineBatchUseCase,
    RecordSignerUseCase,
    ResetPasswordUseCase,
    ResolveDisputeUseCase,
    SetPinUseCase,
    UpdateUserUseCase,
    UpdateWorkerUseCase,
    VerifySignatureUseCase,
)
from .crosscutting.config import get_settings
from .domain.repositories import (
    SignatureRepository,
    SignatureRequestRepository,
    UserRepository,
    WorkerRepository,
)
from .domain.services import NotificationSender
from .identity.passwords import hash_password
from .identity.credentials import PinCodec
from .infrastructure.repositories import (
    InMemorySignatureRepository,
    InMemorySignatureRequestRepository,
    InMemoryUserRepository,
    InMemoryWorkerRepository,
    PostgresSignatureRepository,
    PostgresSignatureRequestRepository,
    PostgresUserRepository,
    PostgresWorkerRepository,
)
from .infrastructure.services import LoggingNotificationSender

# =============================================================================
# Helpers internos
# =============================================================================


def _is_test_env() -> bool:
    """app_env ∈ {"test", "testing", "ci"} => se favorecen in-memory adapters."""
    return get_settings().is_test()


# =============================================================================
# Repositorios (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_user_repository() -> UserRepository:
    """Identidades de autenticación (in-memory en test; Postgres en runtime)."""
    if _is_test_env():
        return InMemoryUserRepository()
    return PostgresUserRepository()


@lru_cache(maxsize=1)
def get_worker_repository() -> WorkerRepository:
    if _is_test_env():
        return InMemoryWorkerRepository()
    return PostgresWorkerRepository()


@lru_cache(maxsize=1)
def get_signature_repository() -> SignatureRepository:
    """Ledger append-only de firmas."""
    if _is_test_env():
        return InMemorySignatureRepository()
    return PostgresSignatureRepository()


@lru_cache(maxsize=1)
def get_signature_request_repository() -> SignatureRequestRepository:
    if _is_test_env():
        return InMemorySignatureRequestRepository()
    return PostgresSignatureRequestRepository()


# =============================================================================
# Servicios (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_pin_codec() -> PinCodec:
    """Codec de PIN/token con la sal del proceso (PIN_SALT)."""
    return PinCodec(get_settings().pin_salt)


@lru_cache(maxsize=1)
def get_notification_sender() -> NotificationSender:
    return LoggingNotificationSender()


# =============================================================================
# Casos de uso (factory por request)
# =============================================================================


def get_set_pin_use_case() -> SetPinUseCase:
    return SetPinUseCase(
        user_repository=get_user_repository(),
        worker_repository=get_worker_repository(),
        codec=get_pin_codec(),
    )


def get_complete_enrollment_use_case() -> CompleteEnrollmentUseCase:
    """Caso de uso: enrolamiento + firma de enrolamiento + resincronización."""
    return CompleteEnrollmentUseCase(
        user_repository=get_user_repository(),
        worker_repository=get_worker_repository(),
        signature_repository=get_signature_repository(),
        codec=get_pin_codec(),
        notifier=get_notification_sender(),
    )


def get_complete_worker_enrollment_use_case() -> CompleteWorkerEnrollmentUseCase:
    return CompleteWorkerEnrollmentUseCase(
        worker_repository=get_worker_repository(),
        user_repository=get_user_repository(),
        signature_repository=get_signature_repository(),
        codec=get_pin_codec(),
    )


def get_create_user_use_case() -> CreateUserUseCase:
    """Alta de User con contraseña temporal (Argon2)."""
    return CreateUserUseCase(
        user_repository=get_user_repository(),
        worker_repository=get_worker_repository(),
        password_hasher=hash_password,
    )


def get_get_user_use_case() -> GetUserUseCase:
    return GetUserUseCase(user_repository=get_user_repository())


def get_update_user_use_case() -> UpdateUserUseCase:
    return UpdateUserUseCase(user_repository=get_user_repository())


def get_reset_password_use_case() -> ResetPasswordUseCase:
    return ResetPasswordUseCase(
        user_repository=get_user_repository(), password_hasher=hash_password
    )


def get_create_worker_use_case() -> CreateWorkerUseCase:
    return CreateWorkerUseCase(
        worker_repository=get_worker_repository(),
        user_repository=get_user_repository(),
    )


def get_get_worker_use_case() -> GetWorkerUseCase:
    return GetWorkerUseCase(worker_repository=get_worker_repository())


def get_update_worker_use_case() -> UpdateWorkerUseCase:
    return UpdateWorkerUseCase(worker_repository=get_worker_repository())


def get_record_signer_use_case() -> RecordSignerUseCase:
    return RecordSignerUseCase(
        request_repository=get_signature_request_repository(),
        max_retries=get_settings().request_update_max_retries,
    )


def get_create_signature_use_case() -> CreateSignatureUseCase:
    """Caso de uso: firma interactiva (+ actualización de la solicitud)."""
    return CreateSignatureUseCase(
        worker_repository=get_worker_repository(),
        user_repository=get_user_repository(),
        signature_repository=get_signature_repository(),
        request_repository=get_signature_request_repository(),
        codec=get_pin_codec(),
        record_signer=get_record_signer_use_case(),
    )


def get_dispute_signature_use_case() -> DisputeSignatureUseCase:
    return DisputeSignatureUseCase(signature_repository=get_signature_repository())


def get_resolve_dispute_use_case() -> ResolveDisputeUseCase:
    return ResolveDisputeUseCase(signature_repository=get_signature_repository())


def get_verify_signature_use_case() -> VerifySignatureUseCase:
    return VerifySignatureUseCase(signature_repository=get_signature_repository())


def get_list_disputed_signatures_use_case() -> ListDisputedSignaturesUseCase:
    return ListDisputedSignaturesUseCase(
        signature_repository=get_signature_repository()
    )


def get_signer_history_use_case() -> GetSignerHistoryUseCase:
    return GetSignerHistoryUseCase(
        user_repository=get_user_repository(),
        worker_repository=get_worker_repository(),
        signature_repository=get_signature_repository(),
    )


def get_create_signature_request_use_case() -> CreateSignatureRequestUseCase:
    return CreateSignatureRequestUseCase(
        request_repository=get_signature_request_repository(),
        worker_repository=get_worker_repository(),
        user_repository=get_user_repository(),
        notifier=get_notification_sender(),
        urgent_due_hours=get_settings().urgent_due_hours,
    )


def get_get_signature_request_use_case() -> GetSignatureRequestUseCase:
    return GetSignatureRequestUseCase(
        request_repository=get_signature_request_repository(),
        signature_repository=get_signature_repository(),
    )


def get_list_pending_requests_use_case() -> ListPendingRequestsForWorkerUseCase:
    return ListPendingRequestsForWorkerUseCase(
        request_repository=get_signature_request_repository()
    )


def get_cancel_signature_request_use_case() -> CancelSignatureRequestUseCase:
    return CancelSignatureRequestUseCase(
        request_repository=get_signature_request_repository()
    )


def get_expire_overdue_requests_use_case() -> ExpireOverdueRequestsUseCase:
    return ExpireOverdueRequestsUseCase(
        request_repository=get_signature_request_repository()
    )


def get_process_offline_batch_use_case() -> ProcessOfflineBatchUseCase:
    """Caso de uso: reconciliación de firmas recolectadas sin conexión."""
    return ProcessOfflineBatchUseCase(
        worker_repository=get_worker_repository(),
        user_repository=get_user_repository(),
        signature_repository=get_signature_repository(),
        request_repository=get_signature_request_repository(),
        codec=get_pin_codec(),
        max_items=get_settings().offline_batch_max_items,
    )


# =============================================================================
# Tests
# =============================================================================


def reset_container() -> None:
    """Limpia los singletons (tests: estado in-memory fresco por test)."""
    for factory in (
        get_user_repository,
        get_worker_repository,
        get_signature_repository,
        get_signature_request_repository,
        get_pin_codec,
        get_notification_sender,
    ):
        factory.cache_clear()

"""
Use Cases Layer (Business Operations)

This package exposes entry points for business logic, organized by feature.

Structure
---------
usecases/
├── enrollment/           # PIN setup + enrollment (User/Worker reconciliation)
├── identities/           # User/Worker provisioning (create, get, update)
├── signatures/           # Signature ledger: sign, dispute, verify, history
└── signature_requests/   # Request tracker + offline batch reconciliation

Usage
-----
Import from subpackages for clarity:

    from app.application.usecases.enrollment import CompleteEnrollmentUseCase

Or use the barrel exports from this module:

    from app.application.usecases import CreateSignatureUseCase
"""

# Enrollment
from .enrollment import (
    CompleteEnrollmentUseCase,
    CompleteWorkerEnrollmentUseCase,
    EnrollmentResult,
    SetPinResult,
    SetPinUseCase,
)

# Identity provisioning
from .identities import (
    CreateUserInput,
    CreateUserUseCase,
    CreateWorkerInput,
    CreateWorkerUseCase,
    GetUserUseCase,
    GetWorkerUseCase,
    PasswordResetResult,
    ResetPasswordUseCase,
    UpdateUserInput,
    UpdateUserUseCase,
    UpdateWorkerInput,
    UpdateWorkerUseCase,
    UserResult,
    WorkerResult,
)

# Signature requests
from .signature_requests import (
    DEFAULT_CANCEL_REASON,
    CancelSignatureRequestUseCase,
    CreateSignatureRequestInput,
    CreateSignatureRequestUseCase,
    ExpireOverdueRequestsUseCase,
    ExpireRequestsResult,
    GetSignatureRequestUseCase,
    ListPendingRequestsForWorkerUseCase,
    OfflineBatchInput,
    OfflineBatchResult,
    OfflineItemOutcome,
    ProcessOfflineBatchUseCase,
    RecordSignerResult,
    RecordSignerUseCase,
    SignatureRequestDetailResult,
    SignatureRequestListResult,
    SignatureRequestResult,
    derive_request_state,
)

# Signatures
from .signatures import (
    CreateSignatureInput,
    CreateSignatureUseCase,
    DisputeSignatureUseCase,
    GetSignerHistoryUseCase,
    ListDisputedSignaturesUseCase,
    ResolveDisputeUseCase,
    SignatureError,
    SignatureErrorCode,
    SignatureListResult,
    SignatureResult,
    VerifySignatureUseCase,
)

__all__ = [
    # Enrollment
    "SetPinUseCase",
    "CompleteEnrollmentUseCase",
    "CompleteWorkerEnrollmentUseCase",
    "SetPinResult",
    "EnrollmentResult",
    # Identity provisioning
    "CreateUserUseCase",
    "CreateUserInput",
    "GetUserUseCase",
    "UpdateUserUseCase",
    "UpdateUserInput",
    "ResetPasswordUseCase",
    "CreateWorkerUseCase",
    "CreateWorkerInput",
    "GetWorkerUseCase",
    "UpdateWorkerUseCase",
    "UpdateWorkerInput",
    "UserResult",
    "WorkerResult",
    "PasswordResetResult",
    # Signatures
    "CreateSignatureUseCase",
    "CreateSignatureInput",
    "DisputeSignatureUseCase",
    "ResolveDisputeUseCase",
    "VerifySignatureUseCase",
    "ListDisputedSignaturesUseCase",
    "GetSignerHistoryUseCase",
    "SignatureError",
    "SignatureErrorCode",
    "SignatureResult",
    "SignatureListResult",
    # Signature requests
    "CreateSignatureRequestUseCase",
    "CreateSignatureRequestInput",
    "RecordSignerUseCase",
    "CancelSignatureRequestUseCase",
    "GetSignatureRequestUseCase",
    "ListPendingRequestsForWorkerUseCase",
    "ExpireOverdueRequestsUseCase",
    "ExpireRequestsResult",
    "ProcessOfflineBatchUseCase",
    "OfflineBatchInput",
    "DEFAULT_CANCEL_REASON",
    "SignatureRequestResult",
    "SignatureRequestDetailResult",
    "SignatureRequestListResult",
    "RecordSignerResult",
    "OfflineBatchResult",
    "OfflineItemOutcome",
    "derive_request_state",
]

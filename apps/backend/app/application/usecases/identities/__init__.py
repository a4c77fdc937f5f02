"""
===============================================================================
IDENTITY PROVISIONING USE CASES (Public API / Exports)
===============================================================================

Alta, consulta y edición de Users y Workers (RUT normalizado en la entrada).
===============================================================================
"""

from __future__ import annotations

from .identity_results import PasswordResetResult, UserResult, WorkerResult
from .manage_users import (
    CreateUserInput,
    CreateUserUseCase,
    GetUserUseCase,
    ResetPasswordUseCase,
    UpdateUserInput,
    UpdateUserUseCase,
)
from .manage_workers import (
    CreateWorkerInput,
    CreateWorkerUseCase,
    GetWorkerUseCase,
    UpdateWorkerInput,
    UpdateWorkerUseCase,
)

__all__ = [
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
]

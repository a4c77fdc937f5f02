"""
===============================================================================
TARJETA CRC — app/api/auth_routes.py (Autenticación de Usuarios)
===============================================================================

Responsabilidades:
  - Exponer endpoints de autenticación de usuario (login/logout/me) con JWT.
  - Gestionar cookie httpOnly de forma consistente.
  - Login por RUT (cualquier formato: "12.345.678-5", "12345678-5", ...).

Patrones aplicados:
  - Adapter / Presentation Layer: traduce HTTP ↔ borde de identidad.
  - Fail-safe security: si la autenticación falla, se deniega por defecto.

Colaboradores:
  - identity.auth_users: authenticate_user, create_access_token, require_user
  - identity.rut.format_rut: RUT legible en respuestas
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from ..crosscutting.error_responses import OPENAPI_ERROR_RESPONSES, unauthorized
from ..crosscutting.logger import logger
from ..domain.entities import User, UserRole, UserStatus
from ..identity.auth_users import DEFAULT_ACCESS_TOKEN_COOKIE as ACCESS_TOKEN_COOKIE
from ..identity.auth_users import (
    authenticate_user,
    create_access_token,
    get_auth_settings,
    require_user,
)
from ..identity.rut import format_rut

router = APIRouter(responses=OPENAPI_ERROR_RESPONSES)


# -----------------------------------------------------------------------------
# Modelos HTTP (DTOs)
# -----------------------------------------------------------------------------


class LoginRequest(BaseModel):
    rut: str = Field(..., min_length=3, max_length=20)
    password: str = Field(..., min_length=1, max_length=512)


class UserResponse(BaseModel):
    id: UUID
    rut: str
    full_name: str
    email: str | None
    role: UserRole
    status: UserStatus
    enabled: bool
    worker_id: UUID | None
    created_at: datetime | None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _to_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        rut=format_rut(user.rut),
        full_name=user.full_name,
        email=user.email,
        role=user.role,
        status=user.status,
        enabled=user.enabled,
        worker_id=user.worker_id,
        created_at=user.created_at,
    )


def _set_auth_cookie(response: Response, token: str, expires_in: int) -> None:
    """Setea cookie httpOnly de acceso."""
    settings = get_auth_settings()
    cookie_name = settings.jwt_cookie_name or ACCESS_TOKEN_COOKIE
    response.set_cookie(
        key=cookie_name,
        value=token,
        httponly=True,
        secure=settings.jwt_cookie_secure,
        samesite="lax",
        max_age=expires_in,
        path="/",
    )


def _clear_auth_cookie(response: Response) -> None:
    settings = get_auth_settings()
    cookie_name = settings.jwt_cookie_name or ACCESS_TOKEN_COOKIE
    response.delete_cookie(
        key=cookie_name,
        path="/",
        samesite="lax",
        secure=settings.jwt_cookie_secure,
    )


# -----------------------------------------------------------------------------
# Endpoints
# -----------------------------------------------------------------------------


@router.post("/auth/login", response_model=LoginResponse, tags=["auth"])
def login(req: LoginRequest, response: Response):
    """
    Inicia sesión con RUT + password y devuelve JWT.

    - También setea cookie httpOnly (clientes web).
    """
    user = authenticate_user(req.rut, req.password)
    if not user:
        raise unauthorized("Credenciales inválidas.")

    token, expires_in = create_access_token(user)
    _set_auth_cookie(response, token, expires_in)

    logger.info(
        "Login exitoso",
        extra={"user_id": str(user.id), "role": user.role.value},
    )

    return LoginResponse(
        access_token=token,
        expires_in=expires_in,
        user=_to_user_response(user),
    )


@router.post("/auth/logout", tags=["auth"])
def logout(response: Response):
    """
    Cierra sesión.

    - Siempre borra la cookie (si estaba presente).
    - No requiere autenticación: es idempotente.
    """
    _clear_auth_cookie(response)
    return {"ok": True}


@router.get("/auth/me", response_model=UserResponse, tags=["auth"])
def me(user: User = Depends(require_user())):
    """Devuelve el usuario autenticado (JWT o cookie)."""
    return _to_user_response(user)


__all__ = ["router"]

"""
===============================================================================
TARJETA CRC — identity/auth_users.py
===============================================================================

Módulo:
    Autenticación de Usuarios (JWT)

Responsabilidades:
    - Verificar passwords en el login (Argon2, vía identity.passwords).
    - Emitir JWT de acceso con expiración (access token).
    - Decodificar y validar JWT (firma, exp, claims mínimos).
    - Resolver usuario actual (token -> user_id -> repo).
    - Exponer dependencias FastAPI (require_user, require_permission).
    - Extraer token desde Authorization: Bearer o cookie.

Colaboradores:
    - crosscutting.config.get_settings: secretos, TTL, cookie settings.
    - crosscutting.error_responses: unauthorized/forbidden estándar.
    - container.get_user_repository: lookup por id / RUT canónico.
    - identity.rut: normalización del RUT de login.
    - identity.users: Permission / has_permission.

Decisiones de diseño:
    - La lógica criptográfica vive acá (borde de identidad), NO en dominio.
    - Claims mínimos: sub, rut, role, exp, iat.
    - No loguear secretos ni tokens; solo info mínima y segura.
    - El PIN NO sirve para login: sólo para firmar.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable
from uuid import UUID

import jwt
from fastapi import Header, Request

from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import forbidden, unauthorized
from ..crosscutting.logger import logger
from ..domain.entities import User, UserRole, UserStatus
from .passwords import hash_password, verify_password  # noqa: F401 (re-export)
from .rut import normalize_rut
from .users import Permission, has_permission

# ---------------------------------------------------------------------------
# Constantes (evitan strings mágicos)
# ---------------------------------------------------------------------------

JWT_ALGORITHM: str = "HS256"

DEFAULT_ACCESS_TOKEN_COOKIE: str = "access_token"

CLAIM_SUB: str = "sub"
CLAIM_RUT: str = "rut"
CLAIM_ROLE: str = "role"
CLAIM_IAT: str = "iat"
CLAIM_EXP: str = "exp"
CLAIM_TYP: str = "typ"

TOKEN_TYPE_ACCESS: str = "access"


# ---------------------------------------------------------------------------
# Contratos internos
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AuthSettings:
    """Settings de auth (snapshot)."""

    jwt_secret: str
    jwt_access_ttl_minutes: int
    jwt_cookie_name: str
    jwt_cookie_secure: bool


@dataclass(frozen=True, slots=True)
class TokenPayload:
    """Payload mínimo que esperamos de un access token."""

    user_id: str
    rut: str
    role: UserRole


def get_auth_settings() -> AuthSettings:
    s = get_settings()
    return AuthSettings(
        jwt_secret=s.jwt_secret,
        jwt_access_ttl_minutes=s.jwt_access_ttl_minutes,
        jwt_cookie_name=s.jwt_cookie_name,
        jwt_cookie_secure=s.jwt_cookie_secure,
    )


def _user_repository():
    from ..container import get_user_repository

    return get_user_repository()


def authenticate_user(rut: str, password: str) -> User | None:
    """Valida credenciales y retorna el usuario o None.

    Seguridad:
        - El RUT se normaliza en el borde de identidad.
        - No diferenciamos “usuario no existe” vs “password incorrecto”.
        - Un usuario suspendido recibe 403 explícito.
    """
    canonical = normalize_rut(rut)
    if not canonical or not password:
        return None

    user = _user_repository().get_user_by_rut(canonical)
    if not user or not user.password_hash:
        return None

    if user.status == UserStatus.SUSPENDED:
        logger.warning("Auth falló: usuario suspendido", extra={"user_id": str(user.id)})
        raise forbidden("El usuario está suspendido.")

    if not verify_password(password, user.password_hash):
        return None

    return user


# ---------------------------------------------------------------------------
# Tokens JWT (emitir / decodificar)
# ---------------------------------------------------------------------------


def create_access_token(
    user: User, settings: AuthSettings | None = None
) -> tuple[str, int]:
    """Crea un JWT de acceso firmado. Retorna (token, expires_in_seconds)."""
    auth_settings = settings or get_auth_settings()

    now = datetime.now(timezone.utc)
    expires_in = int(auth_settings.jwt_access_ttl_minutes * 60)

    payload: dict[str, object] = {
        CLAIM_SUB: str(user.id),
        CLAIM_RUT: user.rut,
        CLAIM_ROLE: user.role.value,
        CLAIM_IAT: int(now.timestamp()),
        CLAIM_EXP: int((now + timedelta(seconds=expires_in)).timestamp()),
        CLAIM_TYP: TOKEN_TYPE_ACCESS,
    }

    token = jwt.encode(payload, auth_settings.jwt_secret, algorithm=JWT_ALGORITHM)
    return token, expires_in


def decode_access_token(
    token: str, settings: AuthSettings | None = None
) -> TokenPayload:
    """Decodifica y valida un JWT de acceso (401 si expiró, firma o claims inválidos)."""
    auth_settings = settings or get_auth_settings()

    try:
        payload = jwt.decode(
            token,
            auth_settings.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": [CLAIM_SUB, CLAIM_RUT, CLAIM_ROLE, CLAIM_EXP]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise unauthorized("Token expirado.") from exc
    except jwt.InvalidTokenError as exc:
        raise unauthorized("Token inválido.") from exc

    if payload.get(CLAIM_TYP) not in (None, TOKEN_TYPE_ACCESS):
        raise unauthorized("Tipo de token inválido.")

    try:
        role = UserRole(str(payload[CLAIM_ROLE]))
    except ValueError as exc:
        raise unauthorized("Token inválido.") from exc

    return TokenPayload(
        user_id=str(payload[CLAIM_SUB]), rut=str(payload[CLAIM_RUT]), role=role
    )


def get_current_user(token: str) -> User:
    """Resuelve el usuario actual a partir del access token."""
    payload = decode_access_token(token)

    try:
        user_id = UUID(payload.user_id)
    except ValueError as exc:
        raise unauthorized("Token inválido.") from exc

    user = _user_repository().get_user(user_id)
    if not user:
        raise unauthorized("Token inválido.")
    if user.status == UserStatus.SUSPENDED:
        raise forbidden("El usuario está suspendido.")
    return user


# ---------------------------------------------------------------------------
# Extracción de token (header/cookie)
# ---------------------------------------------------------------------------


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip() or None


def extract_access_token(request: Request, authorization: str | None) -> str | None:
    """Resuelve token desde Authorization o cookie."""
    token = _extract_bearer_token(authorization)
    if token:
        return token

    cookie_name = (
        get_auth_settings().jwt_cookie_name or ""
    ).strip() or DEFAULT_ACCESS_TOKEN_COOKIE
    return request.cookies.get(cookie_name)


# ---------------------------------------------------------------------------
# Dependencias FastAPI
# ---------------------------------------------------------------------------


def require_user() -> Callable:
    """Dependency FastAPI: requiere usuario autenticado por JWT."""

    async def dependency(
        request: Request,
        authorization: str | None = Header(None, alias="Authorization"),
    ) -> User:
        token = extract_access_token(request, authorization)
        if not token:
            raise unauthorized("Falta token Bearer.")

        user = get_current_user(token)
        request.state.user = user
        return user

    return dependency


def require_permission(permission: Permission | str) -> Callable:
    """Dependency FastAPI: requiere que el rol del usuario otorgue un permiso."""
    required = Permission(permission)

    async def dependency(
        request: Request,
        authorization: str | None = Header(None, alias="Authorization"),
    ) -> User:
        user = await require_user()(request, authorization)
        if not has_permission(user, required):
            raise forbidden("Permiso insuficiente.")
        return user

    return dependency

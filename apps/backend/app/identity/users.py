"""
===============================================================================
TARJETA CRC — identity/users.py
===============================================================================

Módulo:
    Roles y permisos de la identidad de autenticación

Responsabilidades:
    - Definir el catálogo de permisos (Permission).
    - Mapear cada rol a su conjunto fijo de permisos (ROLE_PERMISSIONS).
    - Mantener el contrato de autorización centralizado y estable.

Colaboradores:
    - domain/entities.py: User, UserRole, UserStatus.
    - identity/auth_users.py: require_permission usa has_permission.

Notas:
    - Este módulo NO contiene lógica de negocio: solo catálogos.
    - Si agregás roles, revisá ROLE_PERMISSIONS.
===============================================================================
"""

from __future__ import annotations

from enum import Enum

from ..domain.entities import User, UserRole, UserStatus


class Permission(str, Enum):
    """Permisos disponibles en el sistema."""

    MANAGE_USERS = "manage_users"
    VIEW_USERS = "view_users"
    RESET_PIN = "reset_pin"
    VIEW_REPORTS = "view_reports"
    RESOLVE_DISPUTES = "resolve_disputes"
    CREATE_SIGNATURE_REQUESTS = "create_signature_requests"
    SIGN = "sign"


ROLE_PERMISSIONS: dict[UserRole, frozenset[Permission]] = {
    UserRole.ADMIN: frozenset(Permission),
    UserRole.PREVENTIONIST: frozenset(
        {
            Permission.VIEW_USERS,
            Permission.VIEW_REPORTS,
            Permission.RESOLVE_DISPUTES,
            Permission.CREATE_SIGNATURE_REQUESTS,
            Permission.SIGN,
        }
    ),
    UserRole.WORKER: frozenset({Permission.SIGN}),
}


def permissions_for(role: UserRole) -> frozenset[Permission]:
    return ROLE_PERMISSIONS.get(role, frozenset())


def has_permission(user: User, permission: Permission) -> bool:
    return permission in permissions_for(user.role)


__all__ = [
    "Permission",
    "ROLE_PERMISSIONS",
    "User",
    "UserRole",
    "UserStatus",
    "has_permission",
    "permissions_for",
]

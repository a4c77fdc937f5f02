"""
===============================================================================
TARJETA CRC — identity/passwords.py
===============================================================================

Módulo:
    Hash de contraseñas de login (Argon2)

Responsabilidades:
    - Hashear/verificar passwords sin depender de FastAPI, para que el
      container y los casos de uso de alta puedan inyectarlo.

Colaboradores:
    - identity/auth_users.py: login.
    - application/usecases/identities: alta y reseteo de contraseña.
===============================================================================
"""

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

_password_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    """Hashea un password usando Argon2."""
    return _password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verifica password vs hash almacenado."""
    try:
        return _password_hasher.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False

"""
===============================================================================
CRC CARD — infrastructure/db/errors.py
===============================================================================

Errores tipados del pool. Heredan de DatabaseError: /readyz los traduce a
"db: disconnected" y el handler global a 503.
===============================================================================
"""

from ...crosscutting.exceptions import DatabaseError


class DatabasePoolError(DatabaseError):
    """Base de errores del pool."""


class PoolAlreadyInitializedError(DatabasePoolError):
    pass


class PoolNotInitializedError(DatabasePoolError):
    """Se usó el pool antes de init_pool() (p.ej. APP_ENV=test sin DATABASE_URL)."""


class DatabaseConnectionError(DatabasePoolError):
    """No se pudo adquirir o validar una conexión."""

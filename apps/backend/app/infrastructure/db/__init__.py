"""Infra DB: pool + errores tipados + instrumentación."""

from .errors import (
    DatabaseConnectionError,
    DatabasePoolError,
    PoolAlreadyInitializedError,
    PoolNotInitializedError,
)
from .pool import close_pool, get_pool, init_pool, is_pool_initialized

__all__ = [
    "init_pool",
    "get_pool",
    "close_pool",
    "is_pool_initialized",
    "DatabasePoolError",
    "PoolAlreadyInitializedError",
    "PoolNotInitializedError",
    "DatabaseConnectionError",
]

"""
PostgreSQL Repository Implementations.

Raw SQL over psycopg 3 + psycopg_pool; nested fields stored as JSONB.
"""

from .identities import PostgresUserRepository, PostgresWorkerRepository
from .signatures import PostgresSignatureRepository, PostgresSignatureRequestRepository

__all__ = [
    "PostgresUserRepository",
    "PostgresWorkerRepository",
    "PostgresSignatureRepository",
    "PostgresSignatureRequestRepository",
]

"""
CRC — domain/repositories.py

Name
- Domain Repository Interfaces (Protocols)

Responsibilities
- Define persistence contracts for identities, signatures and signature requests.
- Keep the application/domain independent from infrastructure (PostgreSQL, in-memory).
- Expose normalized-RUT lookups so callers never scan whole tables.

Collaborators
- domain.entities: User, Worker, Signature, SignatureRequest
- infrastructure.repositories: postgres/*, in_memory/* implementations

Constraints
- Pure interfaces only: no side effects, no infrastructure imports, no SQL.
- Conditional writes raise StaleRecordError (crosscutting.exceptions) when the
  expected values do not match the stored record.
- Store failures raise DatabaseError.

Notes
- RUT arguments are always canonical (see identity.rut.normalize_rut).
- `changes` mappings only accept the keys listed in each repository's
  UPDATABLE_FIELDS; unknown keys raise ValueError.
"""

from datetime import datetime
from typing import Any, List, Mapping, Optional, Protocol
from uuid import UUID

from .entities import (
    DisputeInfo,
    Signature,
    SignatureRequest,
    SignatureState,
    User,
    Worker,
)

USER_UPDATABLE_FIELDS = frozenset(
    {
        "pin_hash",
        "pin_created_at",
        "enabled",
        "worker_id",
        "status",
        "enrollment",
        "password_hash",
        "first_name",
        "last_name",
        "position",
        "email",
    }
)

WORKER_UPDATABLE_FIELDS = frozenset(
    {
        "pin_hash",
        "pin_created_at",
        "enabled",
        "user_id",
        "enrollment",
        "first_name",
        "last_name",
        "position",
    }
)


class UserRepository(Protocol):
    """R: Authentication identities."""

    def get_user(self, user_id: UUID) -> Optional[User]:
        ...

    def get_user_by_rut(self, rut: str) -> Optional[User]:
        """R: Lookup by canonical RUT (index, not a scan)."""
        ...

    def create_user(self, user: User) -> User:
        ...

    def update_user(
        self,
        user_id: UUID,
        *,
        changes: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> Optional[User]:
        """
        R: Partial update.

        Args:
            changes: field -> new value
            expected: field -> value that must currently be stored
                      (e.g. {"worker_id": None} to link only when unlinked)

        Returns:
            Updated User, or None if it does not exist.

        Raises:
            StaleRecordError: if `expected` does not match.
        """
        ...


class WorkerRepository(Protocol):
    """R: Operational identities."""

    def get_worker(self, worker_id: UUID) -> Optional[Worker]:
        ...

    def get_worker_by_rut(self, rut: str) -> Optional[Worker]:
        ...

    def create_worker(self, worker: Worker) -> Worker:
        ...

    def update_worker(
        self,
        worker_id: UUID,
        *,
        changes: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> Optional[Worker]:
        """R: Same semantics as UserRepository.update_user."""
        ...


class SignatureRepository(Protocol):
    """R: Append-only signature ledger."""

    def create_signature(self, signature: Signature) -> Signature:
        ...

    def get_signature(self, signature_id: UUID) -> Optional[Signature]:
        ...

    def get_signature_by_token(self, token: str) -> Optional[Signature]:
        ...

    def list_signatures_for_identities(
        self, identity_ids: List[UUID]
    ) -> List[Signature]:
        """R: Signatures whose worker_id or user_id is in identity_ids, newest first."""
        ...

    def list_signatures_by_state(self, state: SignatureState) -> List[Signature]:
        ...

    def list_signatures_by_request(self, request_id: UUID) -> List[Signature]:
        ...

    def update_signature_state(
        self,
        signature_id: UUID,
        *,
        state: SignatureState,
        dispute: DisputeInfo,
        expected_state: SignatureState,
    ) -> Optional[Signature]:
        """
        R: The only mutation allowed on a signature (dispute sub-machine).

        Returns None if the signature does not exist.

        Raises:
            StaleRecordError: if the stored state is not expected_state.
        """
        ...


class SignatureRequestRepository(Protocol):
    """R: Signature request aggregates (optimistic versioning)."""

    def create_request(self, request: SignatureRequest) -> SignatureRequest:
        ...

    def get_request(self, request_id: UUID) -> Optional[SignatureRequest]:
        ...

    def replace_request(
        self, request: SignatureRequest, *, expected_version: int
    ) -> SignatureRequest:
        """
        R: Overwrite the aggregate if the stored version matches.

        The stored copy gets version = expected_version + 1.

        Raises:
            StaleRecordError: on version mismatch or missing request.
        """
        ...

    def list_open_requests_for_worker(
        self, worker_id: UUID
    ) -> List[SignatureRequest]:
        """R: pending/in_progress requests where worker_id is a signer that has not signed."""
        ...

    def list_overdue_requests(self, now: datetime) -> List[SignatureRequest]:
        """R: pending/in_progress requests with due_at < now, soonest due first."""
        ...

"""
============================================================
TARJETA CRC (Class / Responsibilities / Collaborators)
============================================================
Class: 001_signatures_foundation (Alembic Migration)

Responsibilities:
  - Crear el esquema completo desde cero (migración fundacional).
  - Identidades duales (users / workers) con RUT canónico único.
  - Ledger de firmas (token único, estado, disputa JSONB).
  - Solicitudes de firma con firmantes JSONB + versión optimista.

Collaborators:
  - PostgreSQL 16+
  - Alembic (framework de migraciones)
  - infrastructure/repositories/postgres/* (usa este esquema como contrato)

Policy:
  - Esta es una migración BASELINE. Downgrade NO soportado.
  - Toda evolución futura del esquema debe hacerse con migraciones aditivas (002+).
  - Convención de nombres (constraints / indexes):
      pk_<tabla>                         - Primary keys
      uq_<tabla>_<col>                   - Unique constraints
      ix_<tabla>_<col>                   - Indexes
      fk_<tabla>_<col>__<ref_tabla>      - Foreign keys
============================================================
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_signatures_foundation"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """
    Crea el esquema fundacional completo.

    Orden:
      1) Identity (users, workers + vínculo cruzado)
      2) Ledger (signatures)
      3) Solicitudes (signature_requests)
    """

    # =========================================================
    # 1) IDENTITY
    # =========================================================
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        # RUT canónico: dígitos + DV en mayúscula, sin puntos ni guión.
        sa.Column("rut", sa.String(12), nullable=False),
        sa.Column("first_name", sa.String(120), nullable=False),
        sa.Column("last_name", sa.String(120), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("position", sa.String(120), nullable=True),
        sa.Column(
            "company_id",
            sa.String(64),
            nullable=False,
            server_default=sa.text("'default'"),
        ),
        sa.Column(
            "role", sa.String(50), nullable=False, server_default=sa.text("'worker'")
        ),
        sa.Column("password_hash", sa.Text, nullable=True),
        sa.Column("pin_hash", sa.String(64), nullable=True),
        sa.Column("pin_created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "enabled", sa.Boolean, nullable=False, server_default=sa.text("false")
        ),
        sa.Column("worker_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column(
            "status",
            sa.String(50),
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        sa.Column("enrollment", postgresql.JSONB, nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("rut", name="uq_users_rut"),
    )
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "workers",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("rut", sa.String(12), nullable=False),
        sa.Column("first_name", sa.String(120), nullable=False),
        sa.Column("last_name", sa.String(120), nullable=True),
        sa.Column("position", sa.String(120), nullable=True),
        sa.Column(
            "company_id",
            sa.String(64),
            nullable=False,
            server_default=sa.text("'default'"),
        ),
        sa.Column("pin_hash", sa.String(64), nullable=True),
        sa.Column("pin_created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "enabled", sa.Boolean, nullable=False, server_default=sa.text("false")
        ),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("enrollment", postgresql.JSONB, nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_workers"),
        sa.UniqueConstraint("rut", name="uq_workers_rut"),
    )

    # Vínculo cruzado: ambas FKs se crean cuando las dos tablas existen.
    op.create_foreign_key(
        "fk_users_worker_id__workers",
        "users",
        "workers",
        ["worker_id"],
        ["id"],
        ondelete="SET NULL",
    )
    op.create_foreign_key(
        "fk_workers_user_id__users",
        "workers",
        "users",
        ["user_id"],
        ["id"],
        ondelete="SET NULL",
    )

    # =========================================================
    # 2) LEDGER (signatures)
    # =========================================================
    # Sin FK en worker_id: el firmante puede ser un User sin Worker resuelto.
    op.create_table(
        "signatures",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("token", sa.String(64), nullable=False),
        sa.Column("worker_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("signer_rut", sa.String(12), nullable=False),
        sa.Column("signer_name", sa.String(255), nullable=False),
        sa.Column("purpose", sa.String(50), nullable=False),
        sa.Column("reference_id", sa.String(200), nullable=True),
        sa.Column("reference_type", sa.String(100), nullable=True),
        sa.Column("signed_date", sa.String(10), nullable=False),
        sa.Column("signed_time", sa.String(8), nullable=False),
        sa.Column("signed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("validation_method", sa.String(20), nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=False),
        sa.Column("user_agent", sa.Text, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("request_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "state", sa.String(20), nullable=False, server_default=sa.text("'valid'")
        ),
        sa.Column("dispute", postgresql.JSONB, nullable=True),
        sa.Column(
            "metadata",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "company_id",
            sa.String(64),
            nullable=False,
            server_default=sa.text("'default'"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_signatures"),
        sa.UniqueConstraint("token", name="uq_signatures_token"),
    )
    # Historial: WHERE worker_id = ANY(...) OR user_id = ANY(...) ORDER BY signed_at
    op.create_index(
        "ix_signatures_worker_id_signed_at", "signatures", ["worker_id", "signed_at"]
    )
    op.create_index("ix_signatures_user_id", "signatures", ["user_id"])
    op.create_index("ix_signatures_state", "signatures", ["state"])
    op.create_index("ix_signatures_request_id", "signatures", ["request_id"])

    # =========================================================
    # 3) SIGNATURE REQUESTS
    # =========================================================
    op.create_table(
        "signature_requests",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("request_type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("requester_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("requester_name", sa.String(255), nullable=False),
        # Lista de firmantes: [{worker_id, name, rut, position, signed, ...}]
        sa.Column(
            "signers",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("required_count", sa.Integer, nullable=False),
        sa.Column(
            "completed_count", sa.Integer, nullable=False, server_default=sa.text("0")
        ),
        sa.Column(
            "state",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column(
            "company_id",
            sa.String(64),
            nullable=False,
            server_default=sa.text("'default'"),
        ),
        sa.Column(
            "offline", sa.Boolean, nullable=False, server_default=sa.text("false")
        ),
        sa.Column("synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancel_reason", sa.Text, nullable=True),
        # Concurrencia optimista: cada replace incrementa la versión.
        sa.Column("version", sa.Integer, nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_signature_requests"),
        sa.CheckConstraint(
            "completed_count >= 0 AND completed_count <= required_count",
            name="ck_signature_requests_counts",
        ),
    )
    op.create_index("ix_signature_requests_state", "signature_requests", ["state"])
    op.create_index(
        "ix_signature_requests_requester_id", "signature_requests", ["requester_id"]
    )
    # Bandeja de pendientes: signers @> '[{"worker_id": ..., "signed": false}]'
    op.execute(
        "CREATE INDEX ix_signature_requests_signers "
        "ON signature_requests USING gin (signers jsonb_path_ops)"
    )


def downgrade() -> None:
    """Baseline: no soportamos downgrade."""
    raise RuntimeError("Downgrade not supported for baseline migration")

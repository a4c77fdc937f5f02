"""
Name: Admin Bootstrap Script

Responsibilities:
  - Create the first admin user (idempotent, keyed by canonical RUT)
  - Hash passwords with Argon2
  - Store user in PostgreSQL
"""

from __future__ import annotations

import argparse
import getpass
import os
import sys
from uuid import uuid4

import psycopg

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from app.domain.entities import UserRole, UserStatus  # noqa: E402
from app.identity.passwords import hash_password  # noqa: E402
from app.identity.rut import format_rut, normalize_rut  # noqa: E402


def _require_database_url() -> str:
    db_url = os.getenv("DATABASE_URL")
    if not db_url:
        raise SystemExit("DATABASE_URL is required to create a user.")
    return db_url


def _prompt_rut() -> str:
    return input("RUT: ").strip()


def _prompt_password() -> str:
    password = getpass.getpass("Password: ")
    if not password:
        raise SystemExit("Password is required.")
    confirm = getpass.getpass("Confirm password: ")
    if password != confirm:
        raise SystemExit("Passwords do not match.")
    return password


def _parse_args() -> argparse.Namespace:
    argv = sys.argv[1:]
    if argv and argv[0] == "--":
        argv = argv[1:]
    parser = argparse.ArgumentParser(
        description="Create the first admin user (idempotent)."
    )
    parser.add_argument("--rut", help="User RUT (any format, e.g. 12.345.678-5)")
    parser.add_argument("--first-name", default="Admin", help="First name")
    parser.add_argument("--last-name", default="", help="Last name")
    parser.add_argument("--email", default=None, help="Optional contact email")
    parser.add_argument(
        "--password",
        help="User password (omit to be prompted securely)",
    )
    parser.add_argument(
        "--role",
        default=UserRole.ADMIN.value,
        choices=[role.value for role in UserRole],
        help="User role (default: admin)",
    )
    return parser.parse_args(argv)


def _canonical_rut(raw: str) -> str:
    canonical = normalize_rut(raw)
    if not canonical:
        raise SystemExit(f"Invalid RUT: {raw!r}")
    return canonical


def _maybe_create_user(
    db_url: str,
    *,
    rut: str,
    first_name: str,
    last_name: str,
    email: str | None,
    password: str,
    role: str,
) -> None:
    with psycopg.connect(db_url) as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT id, role, status FROM users WHERE rut = %s", (rut,))
            row = cur.fetchone()
            if row:
                print(
                    "User already exists: "
                    f"id={row[0]} rut={format_rut(rut)} role={row[1]} status={row[2]}"
                )
                return

            user_id = uuid4()
            cur.execute(
                """
                INSERT INTO users (
                    id, rut, first_name, last_name, email, role, password_hash,
                    status
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    user_id,
                    rut,
                    first_name,
                    last_name,
                    email,
                    role,
                    hash_password(password),
                    UserStatus.ACTIVE.value,
                ),
            )
            conn.commit()
            print(f"Created user: id={user_id} rut={format_rut(rut)} role={role}")


def main() -> None:
    args = _parse_args()
    db_url = _require_database_url()
    rut = _canonical_rut(args.rut or _prompt_rut())
    password = args.password or _prompt_password()
    _maybe_create_user(
        db_url,
        rut=rut,
        first_name=args.first_name,
        last_name=args.last_name,
        email=args.email,
        password=password,
        role=args.role,
    )


if __name__ == "__main__":
    main()

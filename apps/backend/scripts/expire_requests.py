"""
Name: Expire Overdue Signature Requests

Responsibilities:
  - Periodic job (cron / scheduler) that moves open requests past due_at
    to expired
  - Uses the same use case as POST /v1/signature-requests/expire-overdue
"""

from __future__ import annotations

import os
import sys

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from app.container import get_expire_overdue_requests_use_case  # noqa: E402
from app.crosscutting.config import get_settings  # noqa: E402
from app.infrastructure.db.pool import close_pool, init_pool  # noqa: E402


def main() -> None:
    settings = get_settings()
    if not settings.database_url:
        raise SystemExit("DATABASE_URL is required to expire requests.")

    init_pool(settings.database_url, min_size=1, max_size=2)
    try:
        result = get_expire_overdue_requests_use_case().execute()
    finally:
        close_pool()

    print(f"Expired: {len(result.expired)} skipped: {result.skipped}")


if __name__ == "__main__":
    main()

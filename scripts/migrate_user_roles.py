"""
One-off deploy step: give user documents without a role the client role.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio_api.config import get_settings
from portfolio_api.db import build_store
from portfolio_api.migrations import migrate_user_roles

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Backfill missing user roles")
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="SQLAlchemy URL (defaults to DATABASE_URL from settings)",
    )
    args = parser.parse_args()

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.database_url:
        settings = settings.model_copy(update={"database_url": args.database_url})
    if not settings.database_url:
        logger.error("No database configured; nothing to migrate")
        return 1

    updated = migrate_user_roles(build_store(settings))
    print(f"Updated {updated} user(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

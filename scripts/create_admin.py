"""
Create an admin account directly in the configured document store.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio_api.auth import admin_signup
from portfolio_api.config import get_settings
from portfolio_api.db import build_store
from portfolio_api.errors import PortfolioError
from portfolio_api.schemas import AdminSignupRequest

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed an admin account")
    parser.add_argument("--name", type=str, required=True, help="Display name")
    parser.add_argument("--email", type=str, required=True, help="Login email")
    parser.add_argument(
        "--password",
        type=str,
        default=None,
        help="Password (prompted when omitted)",
    )
    parser.add_argument("--contact", type=str, default="", help="Contact number")
    args = parser.parse_args()

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    password = args.password or getpass.getpass("Admin password: ")
    payload = AdminSignupRequest(
        name=args.name,
        email=args.email,
        password=password,
        contact=args.contact,
        admin_secret=settings.admin_secret,
    )
    try:
        result = admin_signup(build_store(settings), payload, settings)
    except PortfolioError as exc:
        logger.error("Could not create admin: %s", exc.message)
        return 1

    print(f"Admin created: {result['user']['email']} ({result['user']['id']})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

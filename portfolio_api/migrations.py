"""
Explicit data migrations, run once at deploy time via ``scripts/``.
"""

from __future__ import annotations

import logging

from portfolio_api.db import USERS, DocumentStore

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "client"


def migrate_user_roles(store: DocumentStore) -> int:
    """
    Give every user without a role the default client role.

    Idempotent: a second run finds nothing to change and returns 0.
    """
    updated = store.update_many(USERS, {"role": None}, {"role": DEFAULT_ROLE})
    logger.info("Role migration set role=%s on %d users", DEFAULT_ROLE, updated)
    return updated

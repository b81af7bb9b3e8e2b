"""
Site update notices shown on the public pages.
"""

from __future__ import annotations

import logging

from portfolio_api.db import ANNOUNCEMENTS, DocumentStore
from portfolio_api.errors import NotFound
from portfolio_api.schemas import AnnouncementPayload, AnnouncementUpdate

logger = logging.getLogger(__name__)


def active_announcements(store: DocumentStore) -> list[dict]:
    return store.find(
        ANNOUNCEMENTS, {"is_active": True}, sort_by="created_at", descending=True
    )


def all_announcements(store: DocumentStore) -> list[dict]:
    return store.find(ANNOUNCEMENTS, sort_by="created_at", descending=True)


def create_announcement(store: DocumentStore, payload: AnnouncementPayload) -> dict:
    announcement = store.insert(ANNOUNCEMENTS, payload.model_dump())
    logger.info("Announcement %s created", announcement["id"])
    return announcement


def update_announcement(
    store: DocumentStore, announcement_id: str, payload: AnnouncementUpdate
) -> dict:
    announcement = store.get(ANNOUNCEMENTS, announcement_id)
    if not announcement:
        raise NotFound("Update not found")
    announcement.update(payload.model_dump(exclude_unset=True, exclude_none=True))
    return store.replace(
        ANNOUNCEMENTS, announcement, expected_version=announcement["version"]
    )


def delete_announcement(store: DocumentStore, announcement_id: str) -> None:
    if not store.delete(ANNOUNCEMENTS, announcement_id):
        raise NotFound("Update not found")

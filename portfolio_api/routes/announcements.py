"""
Site update notice routes under ``/updates``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from portfolio_api import announcements
from portfolio_api.db import DocumentStore
from portfolio_api.dependencies import get_store, require_admin
from portfolio_api.schemas import AnnouncementPayload, AnnouncementUpdate

router = APIRouter(prefix="/updates", tags=["updates"])


@router.get("")
def active_announcements(store: DocumentStore = Depends(get_store)):
    return announcements.active_announcements(store)


@router.get("/all", dependencies=[Depends(require_admin)])
def all_announcements(store: DocumentStore = Depends(get_store)):
    return announcements.all_announcements(store)


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def create_announcement(
    payload: AnnouncementPayload, store: DocumentStore = Depends(get_store)
):
    update = announcements.create_announcement(store, payload)
    return {"message": "Update created", "update": update}


@router.put("/{announcement_id}", dependencies=[Depends(require_admin)])
def update_announcement(
    announcement_id: str,
    payload: AnnouncementUpdate,
    store: DocumentStore = Depends(get_store),
):
    return announcements.update_announcement(store, announcement_id, payload)


@router.delete("/{announcement_id}", dependencies=[Depends(require_admin)])
def delete_announcement(announcement_id: str, store: DocumentStore = Depends(get_store)):
    announcements.delete_announcement(store, announcement_id)
    return {"message": "Update deleted"}

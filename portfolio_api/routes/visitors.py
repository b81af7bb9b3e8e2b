"""
Visitor counter routes under ``/resume/visitor``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from portfolio_api import visitors
from portfolio_api.db import DocumentStore
from portfolio_api.dependencies import get_device_info, get_store
from portfolio_api.schemas import UniqueVisitorsResponse, VisitorCountResponse

router = APIRouter(prefix="/resume/visitor", tags=["visitors"])


@router.post("")
def track_visit(
    device: dict = Depends(get_device_info),
    store: DocumentStore = Depends(get_store),
):
    count = visitors.track_visit(store, device["ip"], device["user_agent"])
    return {"success": True, "count": count, "message": "Visitor tracked successfully"}


@router.get("", response_model=VisitorCountResponse)
def visitor_count(store: DocumentStore = Depends(get_store)):
    return visitors.visitor_count(store)


@router.get("/unique", response_model=UniqueVisitorsResponse)
def unique_visitors(store: DocumentStore = Depends(get_store)):
    return visitors.unique_visitors(store)

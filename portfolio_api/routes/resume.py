"""
Resume routes under ``/resume``.

Sections with generated entry ids share one set of routes; skills are
addressed by list position.
"""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends

from portfolio_api import resume
from portfolio_api.db import DocumentStore
from portfolio_api.dependencies import get_store, require_admin
from portfolio_api.schemas import ResumeUpdate, SkillGroup

router = APIRouter(prefix="/resume", tags=["resume"])
admin = [Depends(require_admin)]


@router.get("/public")
def public_resume(store: DocumentStore = Depends(get_store)):
    return {"success": True, "data": resume.public_resume(store)}


@router.get("/admin", dependencies=admin)
def admin_resume(store: DocumentStore = Depends(get_store)):
    return {"success": True, "data": resume.admin_resume(store)}


@router.put("", dependencies=admin)
def update_resume(payload: ResumeUpdate, store: DocumentStore = Depends(get_store)):
    data = resume.update_resume(store, payload)
    return {"success": True, "message": "Resume updated", "data": data}


@router.post("/skills", status_code=201, dependencies=admin)
def add_skill(payload: SkillGroup, store: DocumentStore = Depends(get_store)):
    return {"success": True, "message": "Added", "data": resume.add_skill(store, payload)}


@router.put("/skills/{index}", dependencies=admin)
def update_skill(
    index: int, payload: SkillGroup, store: DocumentStore = Depends(get_store)
):
    data = resume.update_skill(store, index, payload)
    return {"success": True, "message": "Updated", "data": data}


@router.delete("/skills/{index}", dependencies=admin)
def delete_skill(index: int, store: DocumentStore = Depends(get_store)):
    resume.delete_skill(store, index)
    return {"success": True, "message": "Deleted"}


@router.post("/{section}", status_code=201, dependencies=admin)
def add_entry(
    section: str,
    payload: dict = Body(...),
    store: DocumentStore = Depends(get_store),
):
    data = resume.add_entry(store, section, payload)
    return {"success": True, "message": "Added", "data": data}


@router.put("/{section}/{entry_id}", dependencies=admin)
def update_entry(
    section: str,
    entry_id: str,
    payload: dict = Body(...),
    store: DocumentStore = Depends(get_store),
):
    data = resume.update_entry(store, section, entry_id, payload)
    return {"success": True, "message": "Updated", "data": data}


@router.delete("/{section}/{entry_id}", dependencies=admin)
def delete_entry(
    section: str, entry_id: str, store: DocumentStore = Depends(get_store)
):
    resume.delete_entry(store, section, entry_id)
    return {"success": True, "message": "Deleted"}

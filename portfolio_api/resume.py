"""
The resume singleton and its repeated sections.
"""

from __future__ import annotations

import logging

import pydantic

from portfolio_api.db import RESUMES, DocumentStore, new_id, utcnow_iso
from portfolio_api.errors import DuplicateKeyError, NotFound, ValidationError
from portfolio_api.schemas import (
    CertificationEntry,
    CustomSectionEntry,
    EducationEntry,
    ExtracurricularEntry,
    ResumeProjectEntry,
    ResumeUpdate,
    SkillGroup,
)

logger = logging.getLogger(__name__)

# There is one resume; a fixed id keeps concurrent first requests from
# creating a second document.
RESUME_ID = "resume"

# URL segment -> (document key, entry schema)
SECTIONS = {
    "education": ("education", EducationEntry),
    "certifications": ("certifications", CertificationEntry),
    "projects": ("projects", ResumeProjectEntry),
    "extracurricular": ("extracurricular", ExtracurricularEntry),
    "custom-sections": ("custom_sections", CustomSectionEntry),
}

HEADER_FIELDS = (
    "full_name",
    "title",
    "email",
    "phone",
    "location",
    "portfolio",
    "linkedin",
    "github",
    "summary",
)
LIST_FIELDS = (
    "skills",
    "education",
    "certifications",
    "projects",
    "extracurricular",
    "custom_sections",
)


def _blank_resume() -> dict:
    resume = {field: "" for field in HEADER_FIELDS}
    resume.update({field: [] for field in LIST_FIELDS})
    resume["is_published"] = False
    resume["last_updated"] = utcnow_iso()
    return resume


def ensure_resume(store: DocumentStore) -> dict:
    resume = store.get(RESUMES, RESUME_ID)
    if resume is None:
        try:
            resume = store.insert(RESUMES, {"id": RESUME_ID, **_blank_resume()})
            logger.info("Created resume document %s", RESUME_ID)
        except DuplicateKeyError:
            resume = store.get(RESUMES, RESUME_ID)
    for field in LIST_FIELDS:
        resume.setdefault(field, [])
    return resume


def _save(store: DocumentStore, resume: dict) -> dict:
    resume["last_updated"] = utcnow_iso()
    return store.replace(RESUMES, resume, expected_version=resume["version"])


def public_resume(store: DocumentStore) -> dict:
    resume = store.get(RESUMES, RESUME_ID)
    if not resume or not resume.get("is_published"):
        raise NotFound("Resume not found")
    return resume


def admin_resume(store: DocumentStore) -> dict:
    return ensure_resume(store)


def update_resume(store: DocumentStore, payload: ResumeUpdate) -> dict:
    resume = ensure_resume(store)
    resume.update(payload.model_dump(exclude_unset=True, exclude_none=True))
    return _save(store, resume)


def _validated(schema: type, data: dict) -> dict:
    try:
        return schema.model_validate(data).model_dump()
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid entry: {exc.errors()[0]['msg']}")


def _section(section: str) -> tuple[str, type]:
    if section not in SECTIONS:
        raise NotFound(f"Unknown resume section {section}")
    return SECTIONS[section]


def add_entry(store: DocumentStore, section: str, data: dict) -> list[dict]:
    key, schema = _section(section)
    resume = ensure_resume(store)
    entry = _validated(schema, data)
    entry["id"] = new_id()
    resume[key].append(entry)
    return _save(store, resume)[key]


def update_entry(store: DocumentStore, section: str, entry_id: str, data: dict) -> dict:
    key, schema = _section(section)
    resume = ensure_resume(store)
    for index, entry in enumerate(resume[key]):
        if entry.get("id") == entry_id:
            fields = _validated(schema, {**entry, **data})
            resume[key][index] = {**fields, "id": entry_id}
            return _save(store, resume)[key][index]
    raise NotFound("Not found")


def delete_entry(store: DocumentStore, section: str, entry_id: str) -> None:
    key, _ = _section(section)
    resume = ensure_resume(store)
    remaining = [entry for entry in resume[key] if entry.get("id") != entry_id]
    if len(remaining) == len(resume[key]):
        raise NotFound("Not found")
    resume[key] = remaining
    _save(store, resume)


# Skills are plain groups addressed by position.


def add_skill(store: DocumentStore, group: SkillGroup) -> list[dict]:
    resume = ensure_resume(store)
    resume["skills"].append(group.model_dump())
    return _save(store, resume)["skills"]


def _check_index(resume: dict, index: int) -> None:
    if index < 0 or index >= len(resume["skills"]):
        raise NotFound("Not found")


def update_skill(store: DocumentStore, index: int, group: SkillGroup) -> list[dict]:
    resume = ensure_resume(store)
    _check_index(resume, index)
    resume["skills"][index] = group.model_dump()
    return _save(store, resume)["skills"]


def delete_skill(store: DocumentStore, index: int) -> None:
    resume = ensure_resume(store)
    _check_index(resume, index)
    resume["skills"].pop(index)
    _save(store, resume)

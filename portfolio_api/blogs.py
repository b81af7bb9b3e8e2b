"""
Blog posts with anonymous engagement (likes, comments) keyed by device.
"""

from __future__ import annotations

import logging
import re
import secrets
from typing import Optional

from portfolio_api.db import BLOGS, DocumentStore, new_id, utcnow_iso
from portfolio_api.errors import NotFound, ValidationError
from portfolio_api.schemas import BlogCreate, BlogUpdate

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 120


def slugify(value: str) -> str:
    value = re.sub(r"[^a-z0-9\s-]", "", (value or "").strip().lower())
    return re.sub(r"[\s-]+", "-", value).strip("-")


def make_slug(title: str) -> str:
    base = slugify(title)
    suffix = secrets.token_hex(3)
    return f"{base}-{suffix}" if base else suffix


def _modify(store: DocumentStore, blog_id: str, change) -> dict:
    blog = store.modify(BLOGS, blog_id, change)
    if blog is None:
        raise NotFound("Blog not found")
    return blog


def create_blog(store: DocumentStore, payload: BlogCreate, author_id: str) -> dict:
    blog = store.insert(
        BLOGS,
        {
            "title": payload.title.strip(),
            "slug": make_slug(payload.title),
            "content": payload.content,
            "tags": payload.tags,
            "cover_image": payload.cover_image,
            "author_id": author_id,
            "is_published": payload.is_published,
            "likes": [],
            "comments": [],
            "views": 0,
        },
    )
    logger.info("Blog %s created with slug %s", blog["id"], blog["slug"])
    return blog


def list_published(store: DocumentStore) -> list[dict]:
    blogs = store.find(
        BLOGS, {"is_published": True}, sort_by="created_at", descending=True
    )
    return [
        {
            "id": blog["id"],
            "title": blog["title"],
            "slug": blog["slug"],
            "tags": blog.get("tags") or [],
            "cover_image": blog.get("cover_image", ""),
            "views": blog.get("views", 0),
            "created_at": blog["created_at"],
            "like_count": len(blog.get("likes") or []),
            "preview": (blog.get("content") or "")[:PREVIEW_LENGTH]
            or "No preview available.",
        }
        for blog in blogs
    ]


def list_all_admin(store: DocumentStore) -> list[dict]:
    return store.find(BLOGS, sort_by="created_at", descending=True)


def get_by_slug(store: DocumentStore, slug: str) -> dict:
    blog = store.find_one(BLOGS, {"slug": slug})
    if not blog:
        raise NotFound("Blog not found")

    def count_view(doc: dict) -> None:
        doc["views"] = doc.get("views", 0) + 1

    return _modify(store, blog["id"], count_view)


def update_blog(store: DocumentStore, blog_id: str, payload: BlogUpdate) -> dict:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    return _modify(store, blog_id, lambda blog: blog.update(changes))


def delete_blog(store: DocumentStore, blog_id: str) -> None:
    if not store.delete(BLOGS, blog_id):
        raise NotFound("Blog not found")
    logger.info("Blog %s deleted", blog_id)


def toggle_like(store: DocumentStore, blog_id: str, device: dict) -> dict:
    """
    Like the post for this device, or remove the like when one exists.

    Likes are matched by device id. The client IP identifies the visitor only
    when the request carries no device id.
    """
    device_id = device.get("device_id")
    outcome = {}

    def toggle(blog: dict) -> None:
        likes = blog.get("likes") or []
        if device_id:
            mine = [like for like in likes if like.get("device_id") == device_id]
        elif device.get("ip"):
            # Anonymous likes from this address
            mine = [
                like
                for like in likes
                if not like.get("device_id") and like.get("ip") == device["ip"]
            ]
        else:
            mine = []
        existing = mine[0] if mine else None

        if existing is not None:
            likes.remove(existing)
        else:
            likes.append(
                {
                    "device_id": device_id,
                    "ip": device.get("ip"),
                    "user_agent": device.get("user_agent"),
                    "created_at": utcnow_iso(),
                }
            )
        blog["likes"] = likes
        outcome["liked"] = existing is None

    blog = _modify(store, blog_id, toggle)
    return {"success": True, "liked": outcome["liked"], "like_count": len(blog["likes"])}


def add_comment(
    store: DocumentStore, blog_id: str, text: Optional[str], device: dict
) -> list[dict]:
    text = (text or "").strip()
    if not text:
        raise ValidationError("Text required")
    comment = {
        "comment_id": secrets.token_hex(6),
        "text": text,
        "device_id": device.get("device_id"),
        "ip": device.get("ip"),
        "user_agent": device.get("user_agent"),
        "replies": [],
        "timestamp": utcnow_iso(),
    }
    blog = _modify(store, blog_id, lambda doc: doc.setdefault("comments", []).append(comment))
    return blog["comments"]


def reply_to_comment(
    store: DocumentStore, blog_id: str, comment_id: str, text: Optional[str]
) -> dict:
    text = (text or "").strip()
    if not text:
        raise ValidationError("Reply text required")
    reply = {"reply_id": new_id()[:12], "text": text, "timestamp": utcnow_iso()}
    position = {}

    def append_reply(blog: dict) -> None:
        for index, comment in enumerate(blog.get("comments") or []):
            if comment["comment_id"] == comment_id:
                comment.setdefault("replies", []).append(reply)
                position["index"] = index
                return
        raise NotFound("Comment not found")

    blog = _modify(store, blog_id, append_reply)
    return blog["comments"][position["index"]]

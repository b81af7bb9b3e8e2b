"""
Blog routes under ``/blogs``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from portfolio_api import blogs
from portfolio_api.db import DocumentStore
from portfolio_api.dependencies import get_device_info, get_store, require_admin
from portfolio_api.schemas import BlogCreate, BlogUpdate, CommentPayload, LikeResponse

router = APIRouter(prefix="/blogs", tags=["blogs"])


# Admin


@router.get("/admin/all", dependencies=[Depends(require_admin)])
def list_all_blogs(store: DocumentStore = Depends(get_store)):
    return {"success": True, "blogs": blogs.list_all_admin(store)}


@router.post("", status_code=201)
def create_blog(
    payload: BlogCreate,
    user: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
):
    return {"success": True, "blog": blogs.create_blog(store, payload, user["id"])}


@router.put("/admin/update/{blog_id}", dependencies=[Depends(require_admin)])
def update_blog(
    blog_id: str, payload: BlogUpdate, store: DocumentStore = Depends(get_store)
):
    return {"success": True, "blog": blogs.update_blog(store, blog_id, payload)}


@router.delete("/{blog_id}", dependencies=[Depends(require_admin)])
def delete_blog(blog_id: str, store: DocumentStore = Depends(get_store)):
    blogs.delete_blog(store, blog_id)
    return {"success": True, "message": "Deleted"}


@router.post("/{blog_id}/comment/{comment_id}/reply", dependencies=[Depends(require_admin)])
def reply_to_comment(
    blog_id: str,
    comment_id: str,
    payload: CommentPayload,
    store: DocumentStore = Depends(get_store),
):
    comment = blogs.reply_to_comment(store, blog_id, comment_id, payload.text)
    return {"success": True, "comment": comment}


# Public


@router.get("")
def list_blogs(store: DocumentStore = Depends(get_store)):
    return {"success": True, "blogs": blogs.list_published(store)}


@router.get("/{slug}")
def get_blog(slug: str, store: DocumentStore = Depends(get_store)):
    return {"success": True, "blog": blogs.get_by_slug(store, slug)}


@router.post("/{blog_id}/like", response_model=LikeResponse)
def toggle_like(
    blog_id: str,
    device: dict = Depends(get_device_info),
    store: DocumentStore = Depends(get_store),
):
    return blogs.toggle_like(store, blog_id, device)


@router.post("/{blog_id}/comment")
def add_comment(
    blog_id: str,
    payload: CommentPayload,
    device: dict = Depends(get_device_info),
    store: DocumentStore = Depends(get_store),
):
    comments = blogs.add_comment(store, blog_id, payload.text, device)
    return {"success": True, "comments": comments}

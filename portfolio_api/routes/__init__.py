"""
HTTP routes for the portfolio API.
"""

from fastapi import APIRouter

from portfolio_api.routes import (
    admin,
    announcements,
    auth,
    blogs,
    invoices,
    projects,
    resume,
    visitors,
)

router = APIRouter()
router.include_router(auth.router)
router.include_router(projects.router)
router.include_router(admin.router)
router.include_router(invoices.router)
router.include_router(blogs.router)
# The visitor routes must win over the resume section routes.
router.include_router(visitors.router)
router.include_router(resume.router)
router.include_router(announcements.router)

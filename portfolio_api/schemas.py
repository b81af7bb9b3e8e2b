"""
Pydantic schemas for the portfolio backend.

Fields whose absence is reported as a domain ``ValidationError`` (400 with a
specific message) are declared optional here and checked in the services.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field

Role = Literal["client", "admin"]
ProjectStatus = Literal["requested", "accepted", "negotiable", "rejected"]
InvoiceType = Literal["initial", "milestone", "final", "standard"]
InvoiceStatus = Literal["pending", "paid", "overdue", "cancelled", "partial"]
ContactMethod = Literal["email", "phone", "whatsapp"]
Importance = Literal["low", "medium", "high"]


# Auth


class SignupRequest(BaseModel):
    name: str = ""
    email: EmailStr
    password: str = ""
    contact: str = ""


class AdminSignupRequest(SignupRequest):
    admin_secret: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class AuthResponse(BaseModel):
    message: str
    token: str
    user: dict


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    contact: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    project_experience: Optional[str] = None
    contact_method: Optional[ContactMethod] = None
    budget_preference: Optional[str] = None


class TokenStatusResponse(BaseModel):
    message: str = "Token is valid"
    user_id: str
    role: Role
    valid: bool = True


# Projects


class ProjectRequestPayload(BaseModel):
    project_name: Optional[str] = None
    duration: Optional[str] = None
    budget: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    tools: Optional[str] = None
    project_type: Optional[str] = None
    description: Optional[str] = None
    attachment_link: Optional[str] = None


class AcceptPayload(BaseModel):
    final_budget: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    start_date: Optional[datetime] = None
    deadline: Optional[datetime] = None
    initial_payment: bool = False
    create_invoice: bool = False


class NegotiatePayload(BaseModel):
    proposed_budget: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    proposed_duration: Optional[str] = None
    admin_notes: Optional[str] = None


class RejectPayload(BaseModel):
    reason: Optional[str] = None


class PaymentPayload(BaseModel):
    amount: Optional[float] = Field(default=None, allow_inf_nan=False)
    note: Optional[str] = None
    payment_method: Optional[str] = None


class CommitPayload(BaseModel):
    week_number: Optional[int] = None
    description: Optional[str] = None
    completed_tasks: list[str] = Field(default_factory=list)


class CommitUpdatePayload(BaseModel):
    description: Optional[str] = None
    completed_tasks: Optional[list[str]] = None


class NotificationCounts(BaseModel):
    new_work_projects: int
    negotiable_projects: int
    rejected_projects: int


class DashboardStats(BaseModel):
    total_clients: int
    total_projects: int
    requested_projects: int
    accepted_projects: int
    negotiable_projects: int
    rejected_projects: int
    total_revenue: float
    total_paid: float
    total_due: float


# Invoices


class InvoiceItem(BaseModel):
    description: str = Field(..., min_length=1)
    quantity: float = Field(default=1, gt=0, allow_inf_nan=False)
    unit_price: float = Field(..., ge=0, allow_inf_nan=False)


class CreateInvoicePayload(BaseModel):
    project_id: str
    items: list[InvoiceItem] = Field(default_factory=list)
    due_date: Optional[datetime] = None
    tax_rate: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    payment_method: str = "Bank Transfer"
    notes: Optional[str] = None
    invoice_type: InvoiceType = "standard"


class MarkPaidPayload(BaseModel):
    amount: Optional[float] = Field(default=None, allow_inf_nan=False)
    payment_method: str = "Bank Transfer"
    note: Optional[str] = None
    is_initial_payment: bool = False


# Blogs


class BlogCreate(BaseModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    tags: list[str] = Field(default_factory=list)
    cover_image: str = ""
    is_published: bool = True


class BlogUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    content: Optional[str] = Field(default=None, min_length=1)
    tags: Optional[list[str]] = None
    cover_image: Optional[str] = None
    is_published: Optional[bool] = None


class CommentPayload(BaseModel):
    text: Optional[str] = None


class LikeResponse(BaseModel):
    success: bool = True
    liked: bool
    like_count: int


# Resume


class EducationEntry(BaseModel):
    institution: str = ""
    course: str = ""
    location: str = ""
    start_year: str = ""
    end_year: str = ""
    cgpa: str = ""


class CertificationEntry(BaseModel):
    title: str = ""
    issuer: str = ""
    year: str = ""
    description: str = ""
    certificate_link: str = ""


class ResumeProjectEntry(BaseModel):
    name: str = ""
    description: str = ""
    technologies: str = ""
    github_link: str = ""
    live_link: str = ""
    start_date: str = ""
    end_date: str = ""


class ExtracurricularEntry(BaseModel):
    title: str = ""
    organization: str = ""
    year: str = ""
    description: str = ""
    role: str = ""


class CustomSectionItem(BaseModel):
    title: str = ""
    description: str = ""
    date: str = ""
    additional_info: str = ""


class CustomSectionEntry(BaseModel):
    heading: str = ""
    items: list[CustomSectionItem] = Field(default_factory=list)


class SkillGroup(BaseModel):
    category: str = ""
    items: list[str] = Field(default_factory=list)


class ResumeUpdate(BaseModel):
    full_name: Optional[str] = None
    title: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    portfolio: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    summary: Optional[str] = None
    is_published: Optional[bool] = None
    skills: Optional[list[SkillGroup]] = None


# Visitors


class VisitorCountResponse(BaseModel):
    success: bool = True
    count: int
    last_visited: Optional[str] = None


class UniqueVisitorsResponse(BaseModel):
    success: bool = True
    total_visits: int
    unique_count: int


# Announcements


class AnnouncementPayload(BaseModel):
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    importance: Importance = "medium"
    is_active: bool = True


class AnnouncementUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    message: Optional[str] = Field(default=None, min_length=1)
    importance: Optional[Importance] = None
    is_active: Optional[bool] = None

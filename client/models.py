"""
Pydantic models for PlanHaus API payloads.

Wire format is camelCase JSON; Python attributes are snake_case. Every model
accepts either spelling on input (``populate_by_name``) and dumps camelCase
with ``by_alias=True``.

Response models are lenient: money columns arrive as decimal strings from the
database ("5000.00") or as numbers, so they are typed ``float | str | None``
and coerced at display time with ``utils.strings.safe_float``. Unknown fields
are kept so newer servers do not break older clients.

Input models mirror the form schemas and are strict: they run before any
network call and their errors become field-level messages.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from utils.patterns import EMAIL, HTTP_URL, PHONE

Money = Optional[float | str]

Priority = Literal["low", "medium", "high"]


class ApiModel(BaseModel):
    """Base for all wire models: camelCase aliases, extra fields kept."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_wire(self) -> dict[str, Any]:
        """Dump as a camelCase JSON-ready dict."""
        return self.model_dump(by_alias=True, mode="json")


# ── Auth ──────────────────────────────────────────────────────────────────────

class User(ApiModel):
    """The signed-in user as stored alongside the session token."""
    id: str
    username: Optional[str] = None
    email: Optional[str] = None
    has_completed_intake: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_string(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class SessionPayload(ApiModel):
    """Body returned by the login endpoints."""
    session_id: str = Field(..., min_length=1)
    user: User


# ── Domain records ────────────────────────────────────────────────────────────

class Project(ApiModel):
    id: int
    name: str
    date: Optional[str] = None
    venue: Optional[str] = None
    theme: Optional[str] = None
    budget: Money = None
    guest_count: Optional[int] = None
    style: Optional[str] = None
    description: Optional[str] = None
    created_by: Optional[int] = None


class BudgetItem(ApiModel):
    id: int
    project_id: Optional[int] = None
    category: Optional[str] = None
    item: Optional[str] = None
    estimated_cost: Money = None
    actual_cost: Money = None
    vendor: Optional[str] = None
    vendor_id: Optional[int] = None
    is_paid: bool = False
    payment_due: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[str] = None


class Vendor(ApiModel):
    id: int
    project_id: Optional[int] = None
    name: str
    category: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    contact_person: Optional[str] = None
    status: Optional[str] = None
    is_booked: bool = False
    rating: Optional[float] = None
    estimated_cost: Money = None
    actual_cost: Money = None
    contract_signed: bool = False
    deposit_paid: bool = False
    final_payment_due: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None


class Guest(ApiModel):
    id: int
    project_id: Optional[int] = None
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    group: Optional[str] = None
    rsvp_status: Optional[str] = None
    party_size: int = 1
    meal_choice: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    plus_one_allowed: bool = False
    invite_sent: bool = False
    notes: Optional[str] = None


class Task(ApiModel):
    id: int
    project_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    status: str = "not_started"
    due_date: Optional[str] = None
    assigned_to: Optional[str] = None
    created_at: Optional[str] = None
    completed_at: Optional[str] = None


class DashboardStats(ApiModel):
    total_tasks: int = 0
    completed_tasks: int = 0
    total_guests: int = 0
    confirmed_guests: int = 0
    total_budget: float = 0.0
    spent_budget: float = 0.0
    total_vendors: int = 0
    booked_vendors: int = 0
    days_until_wedding: int = 0


class AnalysisResult(ApiModel):
    analysis: str


class MessageResponse(ApiModel):
    message: str


# ── Form input models ─────────────────────────────────────────────────────────

def _optional_pattern(value: Optional[str], pattern, message: str) -> Optional[str]:
    if value in (None, ""):
        return value
    if not pattern.match(value):
        raise ValueError(message)
    return value


class InputModel(ApiModel):
    """Base for form inputs: unknown fields are rejected."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid",
                              str_strip_whitespace=True)


class BudgetItemInput(InputModel):
    category: str = Field(..., min_length=1)
    item: str = Field(..., min_length=1)
    estimated_cost: Optional[float] = Field(None, gt=0)
    actual_cost: Optional[float] = Field(None, ge=0)
    vendor: Optional[str] = None
    notes: Optional[str] = None
    is_paid: bool = False
    payment_due: Optional[str] = None
    priority: Priority = "medium"
    status: Literal["planned", "quoted", "booked", "paid", "cancelled"] = "planned"


class BudgetItemUpdate(InputModel):
    category: Optional[str] = Field(None, min_length=1)
    item: Optional[str] = Field(None, min_length=1)
    estimated_cost: Optional[float] = Field(None, gt=0)
    actual_cost: Optional[float] = Field(None, ge=0)
    vendor: Optional[str] = None
    notes: Optional[str] = None
    is_paid: Optional[bool] = None
    payment_due: Optional[str] = None
    priority: Optional[Priority] = None
    status: Optional[Literal["planned", "quoted", "booked", "paid", "cancelled"]] = None


VendorCategory = Literal[
    "venue", "catering", "photography", "videography", "music",
    "flowers", "cake", "transportation", "attire", "beauty",
    "officiant", "planning", "other",
]
VendorStatus = Literal[
    "researching", "contacted", "quoted", "meeting_scheduled",
    "proposal_received", "booked", "paid", "cancelled",
]


class _ContactChecks:
    @field_validator("email", check_fields=False)
    @classmethod
    def _email(cls, value):
        return _optional_pattern(value, EMAIL, "Please enter a valid email address")

    @field_validator("phone", check_fields=False)
    @classmethod
    def _phone(cls, value):
        return _optional_pattern(value, PHONE, "Please enter a valid phone number")


class VendorInput(_ContactChecks, InputModel):
    name: str = Field(..., min_length=1)
    category: VendorCategory = "other"
    email: Optional[str] = ""
    phone: Optional[str] = ""
    website: Optional[str] = ""
    address: Optional[str] = None
    contact_person: Optional[str] = None
    status: VendorStatus = "researching"
    rating: float = Field(0, ge=0, le=5)
    estimated_cost: Optional[float] = Field(None, ge=0)
    actual_cost: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None
    is_booked: bool = False
    contract_signed: bool = False
    deposit_paid: bool = False
    final_payment_due: Optional[str] = None

    @field_validator("website")
    @classmethod
    def _website(cls, value):
        return _optional_pattern(value, HTTP_URL, "Please enter a valid URL")


class VendorUpdate(_ContactChecks, InputModel):
    name: Optional[str] = Field(None, min_length=1)
    category: Optional[VendorCategory] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    contact_person: Optional[str] = None
    status: Optional[VendorStatus] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    estimated_cost: Optional[float] = Field(None, ge=0)
    actual_cost: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None
    is_booked: Optional[bool] = None
    contract_signed: Optional[bool] = None
    deposit_paid: Optional[bool] = None
    final_payment_due: Optional[str] = None

    @field_validator("website")
    @classmethod
    def _website(cls, value):
        return _optional_pattern(value, HTTP_URL, "Please enter a valid URL")


GuestGroup = Literal[
    "bride_family", "groom_family", "bride_friends", "groom_friends",
    "work_colleagues", "other",
]
RsvpStatus = Literal["pending", "attending", "not_attending", "maybe"]


class GuestInput(_ContactChecks, InputModel):
    name: str = Field(..., min_length=1)
    email: Optional[str] = ""
    phone: Optional[str] = ""
    group: GuestGroup = "other"
    rsvp_status: RsvpStatus = "pending"
    party_size: int = Field(1, ge=1)
    meal_choice: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    plus_one_allowed: bool = True
    invite_sent: bool = False
    notes: Optional[str] = None


class GuestUpdate(_ContactChecks, InputModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    group: Optional[GuestGroup] = None
    rsvp_status: Optional[RsvpStatus] = None
    party_size: Optional[int] = Field(None, ge=1)
    meal_choice: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    plus_one_allowed: Optional[bool] = None
    invite_sent: Optional[bool] = None
    notes: Optional[str] = None


class GuestBulkUpdate(InputModel):
    ids: list[int] = Field(..., min_length=1)
    data: GuestUpdate


TaskStatus = Literal["not_started", "in_progress", "completed", "cancelled"]


class TaskInput(InputModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    due_date: Optional[str] = None
    priority: Priority = "medium"
    category: Literal[
        "planning", "venue", "catering", "photography", "flowers",
        "music", "attire", "invitations", "decorations", "other",
    ] = "planning"
    assigned_to: Optional[str] = None
    status: TaskStatus = "not_started"
    notes: Optional[str] = None


class TaskUpdate(InputModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    due_date: Optional[str] = None
    priority: Optional[Priority] = None
    category: Optional[str] = None
    assigned_to: Optional[str] = None
    status: Optional[TaskStatus] = None
    notes: Optional[str] = None

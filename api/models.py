"""
Pydantic request/response models for the development backend.

Create bodies reuse the client's form schemas, extended with the
``projectId`` the client adds when posting under a project. Records are
returned as the store's camelCase dicts, which match ``client.models``.
"""

from typing import Optional

from pydantic import Field

from client.models import (
    ApiModel,
    BudgetItemInput,
    BudgetItemUpdate,
    GuestBulkUpdate,
    GuestInput,
    GuestUpdate,
    TaskInput,
    TaskUpdate,
    User,
    VendorInput,
    VendorUpdate,
)


class BudgetItemCreate(BudgetItemInput):
    project_id: Optional[int] = None


class VendorCreate(VendorInput):
    project_id: Optional[int] = None


class GuestCreate(GuestInput):
    project_id: Optional[int] = None


class TaskCreate(TaskInput):
    project_id: Optional[int] = None


class SessionResponse(ApiModel):
    """Body of a successful login."""
    session_id: str = Field(..., description="Opaque bearer token")
    user: User


class StatsResponse(ApiModel):
    total_tasks: int
    completed_tasks: int
    total_guests: int
    confirmed_guests: int
    total_budget: float
    spent_budget: float
    total_vendors: int
    booked_vendors: int
    days_until_wedding: int


class AnalysisResponse(ApiModel):
    analysis: str


class MessageResponse(ApiModel):
    message: str


__all__ = [
    "BudgetItemCreate",
    "BudgetItemUpdate",
    "VendorCreate",
    "VendorUpdate",
    "GuestCreate",
    "GuestUpdate",
    "GuestBulkUpdate",
    "TaskCreate",
    "TaskUpdate",
    "SessionResponse",
    "StatsResponse",
    "AnalysisResponse",
    "MessageResponse",
]

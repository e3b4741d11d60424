"""Dashboard summary endpoint for the overview page."""

from datetime import date

from fastapi import APIRouter, Depends

from api.auth import current_user
from api.models import StatsResponse
from api.store import DemoStore, get_store
from utils.strings import safe_float

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

_BOOKED_STATUSES = ("booked", "paid")


def _days_until(wedding_date: str | None, today: date) -> int:
    if not wedding_date:
        return 0
    try:
        return max((date.fromisoformat(wedding_date[:10]) - today).days, 0)
    except ValueError:
        return 0


@router.get("/stats", response_model=StatsResponse, summary="Dashboard summary statistics")
def dashboard_stats(user: dict = Depends(current_user),
                    store: DemoStore = Depends(get_store)) -> dict:
    """Return headline counts for the user's first project.

    Includes task completion, confirmed guests (``attending``), budget
    total vs. actual spend, booked vendors and days until the wedding.
    """
    projects = store.projects_for(user["id"])
    if not projects:
        return StatsResponse(
            total_tasks=0, completed_tasks=0, total_guests=0, confirmed_guests=0,
            total_budget=0.0, spent_budget=0.0, total_vendors=0, booked_vendors=0,
            days_until_wedding=0,
        ).to_wire()
    project = projects[0]
    ids = [project["id"]]

    tasks = store.list_records("tasks", ids)
    guests = store.list_records("guests", ids)
    budget = store.list_records("budget", ids)
    vendors = store.list_records("vendors", ids)

    return {
        "totalTasks": len(tasks),
        "completedTasks": sum(1 for t in tasks if t.get("status") == "completed"),
        "totalGuests": len(guests),
        "confirmedGuests": sum(1 for g in guests if g.get("rsvpStatus") == "attending"),
        "totalBudget": safe_float(project.get("budget")),
        "spentBudget": sum(safe_float(b.get("actualCost")) for b in budget),
        "totalVendors": len(vendors),
        "bookedVendors": sum(
            1 for v in vendors
            if v.get("isBooked") or v.get("status") in _BOOKED_STATUSES
        ),
        "daysUntilWedding": _days_until(project.get("date"), store.today),
    }

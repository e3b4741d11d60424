"""Task and timeline statistics for the dashboard.

A task is open unless its status is "completed" or "cancelled". Due dates
are ISO strings (date or datetime); comparisons are by calendar day against
``today``, which callers may pin for reproducible output.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional

from views.records import get_field

CLOSED_STATUSES = frozenset({"completed", "cancelled"})
DUE_SOON_DAYS = 7


def _parse_day(value: Any) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None


def is_open(task: Any) -> bool:
    return get_field(task, "status") not in CLOSED_STATUSES


def is_completed(task: Any) -> bool:
    return get_field(task, "status") == "completed"


def days_until_due(task: Any, today: Optional[date] = None) -> Optional[int]:
    due = _parse_day(get_field(task, "due_date"))
    if due is None:
        return None
    return (due - (today or date.today())).days


@dataclass(frozen=True)
class StatusSegment:
    label: str
    value: int
    color: str


def to_status(tasks: Iterable[Any], today: Optional[date] = None) -> list[StatusSegment]:
    """Split open tasks into overdue, due within a week, and on track.

    Open tasks without a due date count as on track.
    """
    overdue = due_soon = on_track = 0
    for task in tasks or []:
        if not is_open(task):
            continue
        days = days_until_due(task, today)
        if days is None or days > DUE_SOON_DAYS:
            on_track += 1
        elif days < 0:
            overdue += 1
        else:
            due_soon += 1
    return [
        StatusSegment("Overdue", overdue, "#EF4444"),
        StatusSegment("Due Soon", due_soon, "#F59E0B"),
        StatusSegment("On Track", on_track, "#10B981"),
    ]


def priority_breakdown(tasks: Iterable[Any]) -> dict[str, int]:
    """Open task counts by priority; tasks without one are "unassigned"."""
    counts = {"high": 0, "medium": 0, "low": 0, "unassigned": 0}
    for task in tasks or []:
        if not is_open(task):
            continue
        priority = get_field(task, "priority")
        counts[priority if priority in counts else "unassigned"] += 1
    return counts


def tasks_due_this_week(tasks: Iterable[Any], today: Optional[date] = None) -> list:
    """Open tasks due between today and seven days from now, inclusive."""
    result = []
    for task in tasks or []:
        if not is_open(task):
            continue
        days = days_until_due(task, today)
        if days is not None and 0 <= days <= DUE_SOON_DAYS:
            result.append(task)
    return result


@dataclass(frozen=True)
class BurndownPoint:
    date: str
    open: int
    closed: int


@dataclass(frozen=True)
class Burndown:
    points: list[BurndownPoint]
    today: str


def to_burndown(tasks: Iterable[Any], from_date: Any = None, to_date: Any = None,
                today: Optional[date] = None) -> Burndown:
    """Daily open/closed counts of tasks by creation day.

    The window defaults to 30 days either side of ``today``. Tasks created
    outside the window are ignored.
    """
    today = today or date.today()
    start = _parse_day(from_date) or today - timedelta(days=30)
    end = _parse_day(to_date) or today + timedelta(days=30)

    days: dict[str, list[int]] = {}
    current = start
    while current <= end:
        days[current.isoformat()] = [0, 0]
        current += timedelta(days=1)

    for task in tasks or []:
        created = _parse_day(get_field(task, "created_at"))
        if created is None:
            continue
        bucket = days.get(created.isoformat())
        if bucket is None:
            continue
        bucket[1 if is_completed(task) else 0] += 1

    points = [BurndownPoint(day, counts[0], counts[1]) for day, counts in sorted(days.items())]
    return Burndown(points=points, today=today.isoformat())


def task_progress(tasks: Iterable[Any], today: Optional[date] = None) -> dict[str, Any]:
    """Completion percentage plus overdue and due-soon counts."""
    tasks = list(tasks or [])
    total = len(tasks)
    completed = sum(1 for t in tasks if is_completed(t))
    segments = {s.label: s.value for s in to_status(tasks, today)}
    return {
        "total": total,
        "completed": completed,
        "percentage": (completed / total) * 100 if total else 0.0,
        "overdue": segments["Overdue"],
        "due_soon": segments["Due Soon"],
    }

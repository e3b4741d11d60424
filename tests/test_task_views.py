"""Tests for views/tasks.py"""

from datetime import date

from views.tasks import (
    days_until_due,
    is_open,
    priority_breakdown,
    task_progress,
    tasks_due_this_week,
    to_burndown,
    to_status,
)

TODAY = date(2026, 6, 1)

TASKS = [
    {"title": "a", "status": "pending", "dueDate": "2026-05-30", "priority": "high",
     "createdAt": "2026-05-20T10:00:00Z"},
    {"title": "b", "status": "in_progress", "dueDate": "2026-06-05", "priority": "low",
     "createdAt": "2026-05-20"},
    {"title": "c", "status": "completed", "dueDate": "2026-05-01", "priority": "high",
     "createdAt": "2026-05-21"},
    {"title": "d", "status": "cancelled", "dueDate": "2026-06-02"},
    {"title": "e", "status": "pending", "dueDate": None, "priority": "urgent"},
    {"title": "f", "status": "pending", "dueDate": "2026-06-08T09:00:00"},
]


class TestDueDates:
    def test_closed_statuses(self):
        assert [is_open(t) for t in TASKS] == [True, True, False, False, True, True]

    def test_days_until_due(self):
        assert days_until_due(TASKS[0], TODAY) == -2
        assert days_until_due(TASKS[5], TODAY) == 7
        assert days_until_due({"dueDate": "not a date"}, TODAY) is None

    def test_status_segments(self):
        segments = {s.label: s.value for s in to_status(TASKS, TODAY)}
        assert segments == {"Overdue": 1, "Due Soon": 2, "On Track": 1}

    def test_due_this_week(self):
        assert [t["title"] for t in tasks_due_this_week(TASKS, TODAY)] == ["b", "f"]


class TestBreakdowns:
    def test_priority_counts_open_tasks(self):
        assert priority_breakdown(TASKS) == {"high": 1, "medium": 0, "low": 1, "unassigned": 2}

    def test_progress(self):
        progress = task_progress(TASKS, TODAY)
        assert progress["total"] == 6
        assert progress["completed"] == 1
        assert round(progress["percentage"], 2) == 16.67
        assert (progress["overdue"], progress["due_soon"]) == (1, 2)

    def test_progress_empty(self):
        assert task_progress([], TODAY)["percentage"] == 0.0


class TestBurndown:
    def test_default_window(self):
        burndown = to_burndown(TASKS, today=TODAY)
        assert len(burndown.points) == 61
        assert burndown.today == "2026-06-01"
        by_day = {p.date: (p.open, p.closed) for p in burndown.points}
        assert by_day["2026-05-20"] == (2, 0)
        assert by_day["2026-05-21"] == (0, 1)

    def test_explicit_window_drops_outside_tasks(self):
        burndown = to_burndown(TASKS, "2026-05-21", "2026-05-23", today=TODAY)
        assert [p.date for p in burndown.points] == ["2026-05-21", "2026-05-22", "2026-05-23"]
        assert sum(p.open + p.closed for p in burndown.points) == 1

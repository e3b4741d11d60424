"""
In-memory data store for the development backend.

Holds users, sessions, projects and the four per-project resource tables
(budget items, vendors, guests, tasks) as camelCase dicts, exactly as the
REST contract returns them. A single lock serializes all access; the dev
server handles one user at a time in practice.

The store is created once by ``create_app`` and handed to routes through the
``get_store`` dependency; tests pass their own instance.
"""

from __future__ import annotations

import copy
import secrets
import threading
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from fastapi import HTTPException, Request

RESOURCES = ("budget", "vendors", "guests", "tasks")

DEMO_USERNAME = "demo"
DEMO_PROJECT_NAME = "Emma & Jake's Wedding"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class DemoStore:
    """Thread-safe in-memory tables keyed by integer id."""

    def __init__(self, seed: bool = True, today: Optional[date] = None) -> None:
        self._lock = threading.Lock()
        self._ids: dict[str, int] = {}
        self.users: dict[int, dict] = {}
        self.sessions: dict[str, int] = {}
        self.projects: dict[int, dict] = {}
        self.tables: dict[str, dict[int, dict]] = {name: {} for name in RESOURCES}
        self.activities: list[dict] = []
        self._today = today
        if seed:
            self.seed()

    def _next_id(self, table: str) -> int:
        self._ids[table] = self._ids.get(table, 0) + 1
        return self._ids[table]

    @property
    def today(self) -> date:
        return self._today or date.today()

    # ── Seed data ─────────────────────────────────────────────────────────────

    def seed(self) -> None:
        """Create the demo user with one fully populated wedding project."""
        with self._lock:
            user_id = self._next_id("users")
            self.users[user_id] = {
                "id": user_id,
                "username": DEMO_USERNAME,
                "email": "demo@planhaus.app",
                "hasCompletedIntake": True,
            }
            wedding_day = self.today + timedelta(days=180)
            project_id = self._next_id("projects")
            self.projects[project_id] = {
                "id": project_id,
                "name": DEMO_PROJECT_NAME,
                "date": wedding_day.isoformat(),
                "venue": "Sunset Gardens",
                "theme": "Garden romance",
                "budget": "35000.00",
                "guestCount": 120,
                "style": "classic",
                "description": "Outdoor ceremony followed by a garden reception",
                "createdBy": user_id,
            }

        budget = [
            ("Venue", "Sunset Gardens rental", "12000.00", "6000.00", True),
            ("Catering", "Dinner for 120", "9000.00", "0.00", False),
            ("Photography", "Full-day coverage", "3500.00", "1000.00", True),
            ("Flowers", "Centerpieces and bouquets", "2000.00", None, False),
            ("venue", "Ceremony chairs", "800.00", "800.00", True),
        ]
        for category, item, estimated, actual, paid in budget:
            self.insert("budget", project_id, {
                "category": category, "item": item, "estimatedCost": estimated,
                "actualCost": actual, "isPaid": paid, "priority": "medium",
                "status": "paid" if paid else "planned",
            })

        vendors = [
            ("Sunset Gardens", "venue", "booked", True, "12000.00"),
            ("Bloom & Co", "flowers", "quoted", False, "2000.00"),
            ("Lens & Light", "photography", "booked", True, "3500.00"),
            ("Harmony Strings", "music", "contacted", False, "1500.00"),
            ("Taste Catering", "catering", "meeting_scheduled", False, "9000.00"),
        ]
        for name, category, status, booked, cost in vendors:
            self.insert("vendors", project_id, {
                "name": name, "category": category, "status": status,
                "isBooked": booked, "estimatedCost": cost, "rating": 4,
            })

        guests = [
            ("Olivia Carter", "bride_family", "attending", 2),
            ("Liam Brooks", "groom_friends", "pending", 1),
            ("Ava Morgan", "bride_friends", "attending", 1),
            ("Noah Hayes", "groom_family", "not_attending", 1),
        ]
        for name, group, rsvp, party in guests:
            self.insert("guests", project_id, {
                "name": name, "group": group, "rsvpStatus": rsvp, "partySize": party,
            })

        tasks = [
            ("Book venue", "venue", "high", "completed", -60),
            ("Send save-the-dates", "invitations", "high", "in_progress", 3),
            ("Choose florist", "flowers", "medium", "not_started", 20),
            ("Order cake tasting", "catering", "low", "not_started", -2),
        ]
        for title, category, priority, status, due_in in tasks:
            self.insert("tasks", project_id, {
                "title": title, "category": category, "priority": priority,
                "status": status,
                "dueDate": (self.today + timedelta(days=due_in)).isoformat(),
            })
        self.activities.clear()

    # ── Users & sessions ──────────────────────────────────────────────────────

    def demo_user(self) -> dict:
        with self._lock:
            for user in self.users.values():
                if user["username"] == DEMO_USERNAME:
                    return dict(user)
        raise HTTPException(status_code=503, detail="Demo user is not available")

    def create_session(self, user_id: int) -> str:
        token = secrets.token_urlsafe(24)
        with self._lock:
            self.sessions[token] = user_id
        return token

    def user_for_token(self, token: Optional[str]) -> Optional[dict]:
        if not token:
            return None
        with self._lock:
            user_id = self.sessions.get(token)
            user = self.users.get(user_id) if user_id is not None else None
            return dict(user) if user else None

    def end_session(self, token: Optional[str]) -> None:
        with self._lock:
            self.sessions.pop(token or "", None)

    def revoke_all_sessions(self) -> None:
        with self._lock:
            self.sessions.clear()

    # ── Projects ──────────────────────────────────────────────────────────────

    def projects_for(self, user_id: int) -> list[dict]:
        with self._lock:
            return [copy.deepcopy(p) for p in self.projects.values() if p["createdBy"] == user_id]

    def project_for(self, user_id: int, project_id: int) -> dict:
        with self._lock:
            project = self.projects.get(project_id)
            if project is None or project["createdBy"] != user_id:
                raise HTTPException(status_code=404, detail="Project not found")
            return copy.deepcopy(project)

    # ── Resource tables ───────────────────────────────────────────────────────

    def list_records(self, table: str, project_ids: Iterable[int]) -> list[dict]:
        wanted = set(project_ids)
        with self._lock:
            return [copy.deepcopy(r) for r in self.tables[table].values()
                    if r["projectId"] in wanted]

    def get(self, table: str, record_id: int, project_ids: Iterable[int]) -> dict:
        with self._lock:
            record = self.tables[table].get(record_id)
            if record is None or record["projectId"] not in set(project_ids):
                raise HTTPException(status_code=404, detail=f"{table.rstrip('s').title()} not found")
            return copy.deepcopy(record)

    def insert(self, table: str, project_id: int, values: dict[str, Any]) -> dict:
        with self._lock:
            record_id = self._next_id(table)
            record = {**values, "id": record_id, "projectId": project_id, "createdAt": _now()}
            self.tables[table][record_id] = record
            self._log(project_id, "created", table, record_id)
            return copy.deepcopy(record)

    def update(self, table: str, record_id: int, project_ids: Iterable[int],
               values: dict[str, Any]) -> dict:
        self.get(table, record_id, project_ids)
        with self._lock:
            record = self.tables[table][record_id]
            record.update(values)
            if table == "tasks" and values.get("status") == "completed":
                record["completedAt"] = _now()
            self._log(record["projectId"], "updated", table, record_id)
            return copy.deepcopy(record)

    def delete(self, table: str, record_id: int, project_ids: Iterable[int]) -> None:
        self.get(table, record_id, project_ids)
        with self._lock:
            record = self.tables[table].pop(record_id)
            self._log(record["projectId"], "deleted", table, record_id)

    def activities_for(self, project_id: int) -> list[dict]:
        with self._lock:
            return [dict(a) for a in reversed(self.activities) if a["projectId"] == project_id]

    def _log(self, project_id: int, action: str, table: str, record_id: int) -> None:
        self.activities.append({
            "id": len(self.activities) + 1,
            "projectId": project_id,
            "action": action,
            "entityType": table,
            "entityId": record_id,
            "createdAt": _now(),
        })


def get_store(request: Request) -> DemoStore:
    """FastAPI dependency returning the app's store."""
    return request.app.state.store

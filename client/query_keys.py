"""QueryKey factory and cache policy presets.

All keys for a project start with ``("/api/projects", <id>)`` so a prefix
invalidation on that pair reaches every project resource. Keys double as URLs:
joining the parts with ``/`` gives the GET path.
"""

from __future__ import annotations

from typing import Any, Optional

from client.cache import CachePolicy, QueryKey, make_key

MINUTE = 60.0

# Resource types that have both a per-project list and a global list
PROJECT_RESOURCES = ("tasks", "guests", "budget", "vendors")


class CachePolicies:
    """Preset staleness/retention windows."""
    REALTIME = CachePolicy(stale_time=30.0, gc_time=2 * MINUTE)
    DASHBOARD = CachePolicy(stale_time=5 * MINUTE, gc_time=10 * MINUTE)
    STATIC = CachePolicy(stale_time=15 * MINUTE, gc_time=30 * MINUTE)
    DYNAMIC = CachePolicy(stale_time=2 * MINUTE, gc_time=5 * MINUTE)
    BUDGET = CachePolicy(stale_time=5 * MINUTE, gc_time=15 * MINUTE)


def project_enabled(project_id: Any) -> bool:
    """A project-scoped query only runs with a real project id."""
    if project_id is None:
        return False
    text = str(project_id).strip()
    return text not in ("", "undefined", "null", "None")


class QueryKeys:
    """Builds every QueryKey the hooks use."""

    @staticmethod
    def auth_me() -> QueryKey:
        return make_key(["/api/auth/me"])

    @staticmethod
    def projects() -> QueryKey:
        return make_key(["/api/projects"])

    @staticmethod
    def project(project_id: Any) -> QueryKey:
        return make_key(["/api/projects", project_id])

    @staticmethod
    def project_resource(project_id: Any, resource: str) -> QueryKey:
        return make_key(["/api/projects", project_id, resource])

    @classmethod
    def tasks(cls, project_id: Any) -> QueryKey:
        return cls.project_resource(project_id, "tasks")

    @classmethod
    def guests(cls, project_id: Any) -> QueryKey:
        return cls.project_resource(project_id, "guests")

    @classmethod
    def budget(cls, project_id: Any) -> QueryKey:
        return cls.project_resource(project_id, "budget")

    @classmethod
    def vendors(cls, project_id: Any) -> QueryKey:
        return cls.project_resource(project_id, "vendors")

    @classmethod
    def activities(cls, project_id: Any) -> QueryKey:
        return cls.project_resource(project_id, "activities")

    @classmethod
    def collaborators(cls, project_id: Any) -> QueryKey:
        return cls.project_resource(project_id, "collaborators")

    @classmethod
    def inspiration(cls, project_id: Any) -> QueryKey:
        return cls.project_resource(project_id, "inspiration")

    @staticmethod
    def global_list(resource: str) -> QueryKey:
        """``/api/<resource>``: the unscoped list, e.g. ``/api/tasks``."""
        return make_key([f"/api/{resource}"])

    @classmethod
    def resource_list(cls, resource: str, project_id: Optional[Any] = None) -> QueryKey:
        """Project list when a project is given, else the global list."""
        if project_enabled(project_id):
            return cls.project_resource(project_id, resource)
        return cls.global_list(resource)

    @staticmethod
    def dashboard_stats() -> QueryKey:
        return make_key(["/api/dashboard/stats"])

    @staticmethod
    def intake() -> QueryKey:
        return make_key(["/api/intake"])

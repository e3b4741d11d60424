"""Typed resource accessors over the query cache.

``ResourceHooks`` is the only layer that builds QueryKeys or calls the HTTP
core for domain resources. Reads return a ``QueryResult`` snapshot; writes
return a ``Mutation`` whose success invalidates every key that could show the
changed data (the project list, the global list and dashboard stats).
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Optional

from pydantic import BaseModel, ValidationError

from client.cache import QueryCache, QueryKey, QueryState, QueryStatus
from client.errors import ApiError, FormValidationError
from client.models import (
    BudgetItem,
    BudgetItemInput,
    BudgetItemUpdate,
    DashboardStats,
    Guest,
    GuestBulkUpdate,
    GuestInput,
    GuestUpdate,
    Project,
    Task,
    TaskInput,
    TaskUpdate,
    Vendor,
    VendorInput,
    VendorUpdate,
)
from client.query_keys import CachePolicies, QueryKeys, project_enabled
from views.budget import BudgetSummary, summarize_budget

logger = logging.getLogger(__name__)

# Mutations of these types change the dashboard totals
DASHBOARD_TYPES = frozenset({"budget", "guests", "tasks", "vendors"})

STALE_DATA_MAX_AGE = 30 * 60.0


@dataclass(frozen=True)
class QueryResult:
    """What a read hook hands back: data plus loading/error flags."""
    key: Optional[QueryKey]
    data: Any = None
    status: QueryStatus = QueryStatus.IDLE
    error: Optional[BaseException] = None
    updated_at: Optional[float] = None

    @classmethod
    def idle(cls, key: Optional[QueryKey] = None) -> "QueryResult":
        return cls(key=key)

    @classmethod
    def from_state(cls, state: Optional[QueryState], key: Optional[QueryKey] = None) -> "QueryResult":
        if state is None:
            return cls.idle(key)
        return cls(key=state.key, data=state.data, status=state.status,
                   error=state.error, updated_at=state.updated_at)

    @property
    def is_loading(self) -> bool:
        """Fetching with nothing cached yet."""
        return self.status == QueryStatus.FETCHING and self.updated_at is None

    @property
    def is_fetching(self) -> bool:
        return self.status == QueryStatus.FETCHING

    @property
    def is_error(self) -> bool:
        return self.status == QueryStatus.ERROR

    @property
    def is_success(self) -> bool:
        return self.status == QueryStatus.SUCCESS

    @property
    def is_idle(self) -> bool:
        return self.status == QueryStatus.IDLE


def validate_input(model: type[BaseModel], payload: Any, partial: bool = False) -> dict[str, Any]:
    """Validate form input and dump it as a camelCase request body.

    Args:
        model: Pydantic input model.
        payload: Dict (either key spelling) or a model instance.
        partial: Only send the fields the caller set (updates).

    Raises:
        FormValidationError: With a message per offending field.
    """
    if isinstance(payload, model):
        instance = payload
    else:
        try:
            instance = model.model_validate(payload or {})
        except ValidationError as e:
            field_errors: dict[str, str] = {}
            for err in e.errors():
                name = ".".join(str(part) for part in err["loc"]) or "__root__"
                field_errors.setdefault(name, err["msg"])
            raise FormValidationError(field_errors) from e
    return instance.model_dump(by_alias=True, mode="json", exclude_unset=partial)


class Mutation:
    """One-shot write with pending/data/error state.

    ``fn`` performs the request; ``on_success`` receives the result and does
    the invalidation. Mutations are never retried.
    """

    def __init__(self, fn: Callable[..., Any], on_success: Optional[Callable[[Any], None]] = None,
                 executor: Optional[ThreadPoolExecutor] = None) -> None:
        self._fn = fn
        self._on_success = on_success
        self._executor = executor
        self._lock = threading.Lock()
        self._pending = 0
        self.data: Any = None
        self.error: Optional[BaseException] = None

    @property
    def is_pending(self) -> bool:
        with self._lock:
            return self._pending > 0

    def mutate(self, *args: Any, **kwargs: Any) -> Any:
        """Run the write in the calling thread.

        Raises:
            ApiError: FormValidationError before dispatch, or any request error.
        """
        with self._lock:
            self._pending += 1
            self.error = None
        try:
            result = self._fn(*args, **kwargs)
        except ApiError as e:
            with self._lock:
                self.error = e
            raise
        finally:
            with self._lock:
                self._pending -= 1
        with self._lock:
            self.data = result
        if self._on_success is not None:
            self._on_success(result)
        return result

    def mutate_async(self, *args: Any, **kwargs: Any) -> Future:
        """Run the write on the worker pool; the future carries its result or error."""
        if self._executor is None:
            raise RuntimeError("Mutation has no executor for async dispatch")
        return self._executor.submit(self.mutate, *args, **kwargs)

    def reset(self) -> None:
        with self._lock:
            self.data = None
            self.error = None


class ResourceHooks:
    """Read and write accessors for PlanHaus resources."""

    def __init__(self, client, cache: QueryCache, executor: Optional[ThreadPoolExecutor] = None) -> None:
        self.client = client
        self.cache = cache
        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(max_workers=4, thread_name_prefix="mutations")

    def close(self) -> None:
        if self._owns_executor:
            self.executor.shutdown(wait=False)

    # ── Internals ─────────────────────────────────────────────────────────────

    def _query(self, key: QueryKey, response_model: Any, policy, *, wait: bool = True,
               enabled: bool = True, cancel=None) -> QueryResult:
        if not enabled:
            return QueryResult.idle(key)
        fetcher = self.client.query_fn(response_model)
        if not wait:
            self.cache.prefetch(key, fetcher, policy)
            return QueryResult.from_state(self.cache.get_state(key), key)
        try:
            self.cache.read(key, fetcher, policy, cancel=cancel)
        except ApiError as e:
            logger.debug("Read of %s ended in error: %s", "/".join(key), e)
        return QueryResult.from_state(self.cache.get_state(key), key)

    def _mutation(self, fn: Callable[..., Any], project_id: Any, data_type: str) -> Mutation:
        def on_success(_result: Any) -> None:
            self.invalidate_project_data(project_id, data_type)

        return Mutation(fn, on_success, self.executor)

    @staticmethod
    def _project_int(project_id: Any) -> Any:
        try:
            return int(project_id)
        except (TypeError, ValueError):
            return project_id

    # ── Invalidation ──────────────────────────────────────────────────────────

    def invalidate_project_data(self, project_id: Any, data_type: Optional[str] = None) -> int:
        """Mark everything a change to ``data_type`` could affect as stale.

        With ``data_type=None`` (or ``"all"``) every key under the project plus
        dashboard stats is invalidated.

        Returns:
            Number of cache entries invalidated.
        """
        count = 0
        if data_type in (None, "all"):
            count += self.cache.invalidate(QueryKeys.project(project_id))
            count += self.cache.invalidate(QueryKeys.dashboard_stats())
            return count
        count += self.cache.invalidate(QueryKeys.project_resource(project_id, data_type))
        count += self.cache.invalidate(QueryKeys.global_list(data_type))
        if data_type in DASHBOARD_TYPES:
            count += self.cache.invalidate(QueryKeys.dashboard_stats())
        return count

    def remove_stale_data(self, max_age: float = STALE_DATA_MAX_AGE) -> int:
        """Drop unobserved entries not refreshed within ``max_age`` seconds."""
        return self.cache.collect_garbage(max_age)

    # ── Projects ──────────────────────────────────────────────────────────────

    def use_projects(self, **kw) -> QueryResult:
        return self._query(QueryKeys.projects(), list[Project], CachePolicies.DASHBOARD, **kw)

    def use_project(self, project_id: Any, **kw) -> QueryResult:
        return self._query(QueryKeys.project(project_id), Project, CachePolicies.STATIC,
                           enabled=project_enabled(project_id), **kw)

    def use_current_project(self, **kw) -> QueryResult:
        """The first project of the signed-in user, as the dashboard shows it."""
        result = self.use_projects(**kw)
        projects = result.data or []
        return QueryResult(key=result.key, data=projects[0] if projects else None,
                           status=result.status, error=result.error,
                           updated_at=result.updated_at)

    # ── Budget ────────────────────────────────────────────────────────────────

    def use_budget(self, project_id: Any, **kw) -> QueryResult:
        return self._query(QueryKeys.budget(project_id), list[BudgetItem], CachePolicies.BUDGET,
                           enabled=project_enabled(project_id), **kw)

    def use_budget_summary(self, project_id: Any, **kw) -> BudgetSummary:
        result = self.use_budget(project_id, **kw)
        return summarize_budget(result.data or [])

    def create_budget_item(self, project_id: Any) -> Mutation:
        def create(payload: Any) -> BudgetItem:
            body = validate_input(BudgetItemInput, payload)
            body["projectId"] = self._project_int(project_id)
            return self.client.request(f"/api/projects/{project_id}/budget", "POST",
                                       json=body, response_model=BudgetItem)

        return self._mutation(create, project_id, "budget")

    def update_budget_item(self, project_id: Any) -> Mutation:
        def update(item_id: int, payload: Any) -> BudgetItem:
            body = validate_input(BudgetItemUpdate, payload, partial=True)
            return self.client.request(f"/api/projects/{project_id}/budget/{item_id}", "PATCH",
                                       json=body, response_model=BudgetItem)

        return self._mutation(update, project_id, "budget")

    def delete_budget_item(self, project_id: Any) -> Mutation:
        def delete(item_id: int) -> Any:
            return self.client.request(f"/api/projects/{project_id}/budget/{item_id}", "DELETE")

        return self._mutation(delete, project_id, "budget")

    # ── Vendors ───────────────────────────────────────────────────────────────

    def use_vendors(self, project_id: Any = None, **kw) -> QueryResult:
        return self._query(QueryKeys.resource_list("vendors", project_id), list[Vendor],
                           CachePolicies.STATIC, **kw)

    def create_vendor(self, project_id: Any) -> Mutation:
        def create(payload: Any) -> Vendor:
            body = validate_input(VendorInput, payload)
            body["projectId"] = self._project_int(project_id)
            return self.client.request(f"/api/projects/{project_id}/vendors", "POST",
                                       json=body, response_model=Vendor)

        return self._mutation(create, project_id, "vendors")

    def update_vendor(self, project_id: Any) -> Mutation:
        def update(vendor_id: int, payload: Any) -> Vendor:
            body = validate_input(VendorUpdate, payload, partial=True)
            return self.client.request(f"/api/vendors/{vendor_id}", "PATCH",
                                       json=body, response_model=Vendor)

        return self._mutation(update, project_id, "vendors")

    def delete_vendor(self, project_id: Any) -> Mutation:
        def delete(vendor_id: int) -> Any:
            return self.client.request(f"/api/vendors/{vendor_id}", "DELETE")

        return self._mutation(delete, project_id, "vendors")

    # ── Guests ────────────────────────────────────────────────────────────────

    def use_guests(self, project_id: Any = None, **kw) -> QueryResult:
        return self._query(QueryKeys.resource_list("guests", project_id), list[Guest],
                           CachePolicies.DYNAMIC, **kw)

    def create_guest(self, project_id: Any) -> Mutation:
        def create(payload: Any) -> Guest:
            body = validate_input(GuestInput, payload)
            body["projectId"] = self._project_int(project_id)
            return self.client.request(f"/api/projects/{project_id}/guests", "POST",
                                       json=body, response_model=Guest)

        return self._mutation(create, project_id, "guests")

    def update_guest(self, project_id: Any) -> Mutation:
        def update(guest_id: int, payload: Any) -> Guest:
            body = validate_input(GuestUpdate, payload, partial=True)
            return self.client.request(f"/api/guests/{guest_id}", "PATCH",
                                       json=body, response_model=Guest)

        return self._mutation(update, project_id, "guests")

    def delete_guest(self, project_id: Any) -> Mutation:
        def delete(guest_id: int) -> Any:
            return self.client.request(f"/api/guests/{guest_id}", "DELETE")

        return self._mutation(delete, project_id, "guests")

    def bulk_update_guests(self, project_id: Any) -> Mutation:
        def bulk(ids: list[int], payload: Any) -> list[Guest]:
            update = validate_input(GuestUpdate, payload, partial=True)
            body = validate_input(GuestBulkUpdate, {"ids": ids, "data": update}, partial=True)
            return self.client.request(f"/api/projects/{project_id}/guests/bulk", "PATCH",
                                       json=body, response_model=list[Guest])

        return self._mutation(bulk, project_id, "guests")

    # ── Tasks ─────────────────────────────────────────────────────────────────

    def use_tasks(self, project_id: Any = None, **kw) -> QueryResult:
        return self._query(QueryKeys.resource_list("tasks", project_id), list[Task],
                           CachePolicies.DYNAMIC, **kw)

    def create_task(self, project_id: Any) -> Mutation:
        def create(payload: Any) -> Task:
            body = validate_input(TaskInput, payload)
            body["projectId"] = self._project_int(project_id)
            return self.client.request(f"/api/projects/{project_id}/tasks", "POST",
                                       json=body, response_model=Task)

        return self._mutation(create, project_id, "tasks")

    def update_task(self, project_id: Any) -> Mutation:
        def update(task_id: int, payload: Any) -> Task:
            body = validate_input(TaskUpdate, payload, partial=True)
            return self.client.request(f"/api/tasks/{task_id}", "PATCH",
                                       json=body, response_model=Task)

        return self._mutation(update, project_id, "tasks")

    def delete_task(self, project_id: Any) -> Mutation:
        def delete(task_id: int) -> Any:
            return self.client.request(f"/api/tasks/{task_id}", "DELETE")

        return self._mutation(delete, project_id, "tasks")

    # ── Dashboard & realtime ──────────────────────────────────────────────────

    def use_dashboard_stats(self, **kw) -> QueryResult:
        return self._query(QueryKeys.dashboard_stats(), DashboardStats,
                           CachePolicies.DASHBOARD, **kw)

    def use_activities(self, project_id: Any, **kw) -> QueryResult:
        return self._query(QueryKeys.activities(project_id), list[dict], CachePolicies.REALTIME,
                           enabled=project_enabled(project_id), **kw)

    def use_collaborators(self, project_id: Any, **kw) -> QueryResult:
        return self._query(QueryKeys.collaborators(project_id), list[dict], CachePolicies.REALTIME,
                           enabled=project_enabled(project_id), **kw)

    def refresh_realtime(self, project_id: Any) -> int:
        """Mark activity and collaborator feeds stale."""
        if not project_enabled(project_id):
            return 0
        return (self.cache.invalidate(QueryKeys.activities(project_id))
                + self.cache.invalidate(QueryKeys.collaborators(project_id)))

    # ── Prefetching ───────────────────────────────────────────────────────────

    def _prefetch(self, key: QueryKey, response_model: Any, policy) -> Future:
        return self.cache.prefetch(key, self.client.query_fn(response_model), policy)

    def prefetch_dashboard_essentials(self, project_id: Any) -> list[Future]:
        """Warm the data the dashboard shows first. Never raises."""
        if not project_enabled(project_id):
            return []
        return [
            self._prefetch(QueryKeys.tasks(project_id), list[Task], CachePolicies.DYNAMIC),
            self._prefetch(QueryKeys.guests(project_id), list[Guest], CachePolicies.DYNAMIC),
            self._prefetch(QueryKeys.dashboard_stats(), DashboardStats, CachePolicies.DASHBOARD),
        ]

    def prefetch_navigation_targets(self, project_id: Any) -> list[Future]:
        """Warm the pages most often opened from the dashboard. Never raises."""
        if not project_enabled(project_id):
            return []
        return [
            self._prefetch(QueryKeys.budget(project_id), list[BudgetItem], CachePolicies.BUDGET),
            self._prefetch(QueryKeys.vendors(project_id), list[Vendor], CachePolicies.STATIC),
            self._prefetch(QueryKeys.activities(project_id), list[dict], CachePolicies.REALTIME),
        ]

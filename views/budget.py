"""Budget aggregation: per-category totals, donut slices and overall progress.

Category names are free text and their casing drifts between the category
list a user defines and the categories stored on items ("Venue" vs "venue").
``items_for_category`` matches exactly first and falls back to a
case-insensitive match only when the exact match finds nothing;
``summarize_budget`` groups case-insensitively and keeps the first-seen
spelling for display.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence

from utils.formatting import progress_percentage, progress_status
from utils.strings import safe_float
from views.records import get_field

CATEGORY_COLORS = (
    "#3B82F6",  # blue-500
    "#10B981",  # emerald-500
    "#F59E0B",  # amber-500
    "#EF4444",  # red-500
    "#8B5CF6",  # violet-500
    "#06B6D4",  # cyan-500
    "#F97316",  # orange-500
    "#EC4899",  # pink-500
)


@dataclass
class CategorySummary:
    name: str
    estimated: float = 0.0
    actual: float = 0.0
    items: list = field(default_factory=list)

    @property
    def remaining(self) -> float:
        return self.estimated - self.actual

    @property
    def progress(self) -> float:
        """Actual spend as a percentage of the estimate, clamped to [0, 100]."""
        return progress_percentage(self.actual, self.estimated)

    @property
    def status(self) -> str:
        return progress_status(self.actual, self.estimated)

    @property
    def item_count(self) -> int:
        return len(self.items)


@dataclass
class BudgetSummary:
    categories: list[CategorySummary] = field(default_factory=list)
    total_estimated: float = 0.0
    total_actual: float = 0.0
    total_remaining: float = 0.0
    item_count: int = 0

    @property
    def progress(self) -> float:
        return progress_percentage(self.total_actual, self.total_estimated)


def items_for_category(items: Iterable[Any], category: str) -> list:
    """Items whose category equals ``category``.

    Exact (case-sensitive) matches win; the case-insensitive match is used
    only when there are no exact matches.
    """
    items = list(items or [])
    exact = [i for i in items if get_field(i, "category") == category]
    if exact:
        return exact
    wanted = (category or "").casefold()
    return [
        i for i in items
        if isinstance(get_field(i, "category"), str)
        and get_field(i, "category").casefold() == wanted
    ]


def summarize_budget(items: Optional[Iterable[Any]]) -> BudgetSummary:
    """Group items by category (case-insensitively) and total them.

    Items without a category are left out of the category groups but still
    counted in ``item_count``. Money fields that are missing or unparseable
    count as zero.
    """
    items = list(items or [])
    groups: dict[str, CategorySummary] = {}
    for item in items:
        category = get_field(item, "category")
        if not category:
            continue
        key = category.lower()
        summary = groups.get(key)
        if summary is None:
            summary = groups[key] = CategorySummary(name=category)
        summary.estimated += safe_float(get_field(item, "estimated_cost"))
        summary.actual += safe_float(get_field(item, "actual_cost"))
        summary.items.append(item)

    categories = list(groups.values())
    total_estimated = sum(c.estimated for c in categories)
    total_actual = sum(c.actual for c in categories)
    return BudgetSummary(
        categories=categories,
        total_estimated=safe_float(total_estimated),
        total_actual=safe_float(total_actual),
        total_remaining=safe_float(total_estimated - total_actual),
        item_count=len(items),
    )


def summarize_categories(names: Sequence[str], items: Iterable[Any]) -> list[CategorySummary]:
    """Totals for each defined category name, in the order given."""
    items = list(items or [])
    result = []
    for name in names:
        matched = items_for_category(items, name)
        result.append(CategorySummary(
            name=name,
            estimated=sum(safe_float(get_field(i, "estimated_cost")) for i in matched),
            actual=sum(safe_float(get_field(i, "actual_cost")) for i in matched),
            items=matched,
        ))
    return result


# ── Dashboard charts ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DonutSlice:
    name: str
    value: float
    color: str


@dataclass(frozen=True)
class BudgetDonut:
    spent: float
    remaining: float
    categories: list[DonutSlice]


def to_donut(total: Any, spent: Any, categories: Iterable[Any]) -> BudgetDonut:
    """Build donut chart data: spent vs remaining plus actual spend per category.

    ``categories`` holds records with a ``name`` and an ``actual_cost`` (or
    ``actual``); repeated names are summed. Colours cycle through
    CATEGORY_COLORS in first-seen order.
    """
    total_f = safe_float(total)
    spent_f = safe_float(spent)
    sums: dict[str, float] = {}
    for cat in categories or []:
        name = get_field(cat, "name") or get_field(cat, "category") or "Other"
        actual = get_field(cat, "actual_cost")
        if actual is None:
            actual = get_field(cat, "actual")
        sums[name] = sums.get(name, 0.0) + safe_float(actual)
    slices = [
        DonutSlice(name=name, value=value, color=CATEGORY_COLORS[i % len(CATEGORY_COLORS)])
        for i, (name, value) in enumerate(sums.items())
    ]
    return BudgetDonut(spent=spent_f, remaining=max(0.0, total_f - spent_f), categories=slices)


def calculate_budget_progress(total: Any, spent: Any) -> dict[str, Any]:
    """Unclamped spend percentage with a coarse status.

    Returns:
        ``{"percentage": float, "status": "under" | "on-track" | "over"}``;
        over 100% is "over", over 90% is "on-track", otherwise "under". A
        zero total is 0% "on-track".
    """
    total_f = safe_float(total)
    spent_f = safe_float(spent)
    if total_f == 0:
        return {"percentage": 0.0, "status": "on-track"}
    percentage = (spent_f / total_f) * 100
    if percentage > 100:
        status = "over"
    elif percentage > 90:
        status = "on-track"
    else:
        status = "under"
    return {"percentage": percentage, "status": status}

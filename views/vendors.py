"""Vendor list views: filtering, multi-key sorting and pipeline statistics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from utils.strings import casefold_contains, safe_float
from views.records import get_field

SORT_FIELDS = ("name", "category", "status", "quote")

# Pipeline stage per vendor status
_STAGE_BY_STATUS = {
    "contacted": "contacted",
    "quoted": "shortlisted",
    "meeting_scheduled": "shortlisted",
    "proposal_received": "shortlisted",
    "shortlisted": "shortlisted",
    "booked": "booked",
    "paid": "booked",
    "cancelled": "declined",
    "declined": "declined",
}

STAGE_COLORS = {
    "contacted": "#3B82F6",
    "shortlisted": "#F59E0B",
    "booked": "#10B981",
    "declined": "#EF4444",
}


def is_booked(vendor: Any) -> bool:
    return bool(get_field(vendor, "is_booked")) or get_field(vendor, "status") in ("booked", "paid")


def vendor_stage(vendor: Any) -> str:
    """Funnel stage for a vendor; anything unknown counts as "researching"."""
    if is_booked(vendor):
        return "booked"
    return _STAGE_BY_STATUS.get(get_field(vendor, "status") or "", "researching")


def filter_vendors(vendors: Iterable[Any], search: str = "", category: str = "",
                   status: str = "") -> list:
    """Vendors matching a free-text search and optional category/status.

    The search is a case-insensitive substring test on name, category and
    email; category and status must match exactly when given.
    """
    search = (search or "").strip()
    result = []
    for vendor in vendors or []:
        if search and not (casefold_contains(get_field(vendor, "name"), search)
                           or casefold_contains(get_field(vendor, "category"), search)
                           or casefold_contains(get_field(vendor, "email"), search)):
            continue
        if category and get_field(vendor, "category") != category:
            continue
        if status and get_field(vendor, "status") != status:
            continue
        result.append(vendor)
    return result


def sort_vendors(vendors: Iterable[Any], sort_by: str = "name", descending: bool = False) -> list:
    """Booked vendors first, then by ``sort_by``; stable for equal keys.

    ``descending`` flips the secondary key only; booked vendors stay on top.
    ``quote`` orders by estimated cost, highest first.

    Raises:
        ValueError: If ``sort_by`` is not one of SORT_FIELDS.
    """
    if sort_by not in SORT_FIELDS:
        raise ValueError(f"Cannot sort vendors by {sort_by!r}; expected one of {SORT_FIELDS}")

    if sort_by == "quote":
        by_field = sorted(vendors or [], key=lambda v: safe_float(get_field(v, "estimated_cost")),
                          reverse=not descending)
    else:
        by_field = sorted(vendors or [],
                          key=lambda v: str(get_field(v, sort_by) or "").casefold(),
                          reverse=descending)
    return sorted(by_field, key=lambda v: not is_booked(v))


# ── Pipeline statistics ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class FunnelStage:
    label: str
    value: int
    color: str


def _stage_counts(vendors: Iterable[Any]) -> dict[str, int]:
    counts = {"researching": 0, "contacted": 0, "shortlisted": 0, "booked": 0, "declined": 0}
    for vendor in vendors or []:
        counts[vendor_stage(vendor)] += 1
    return counts


def vendor_funnel(vendors: Iterable[Any]) -> list[FunnelStage]:
    counts = _stage_counts(vendors)
    return [
        FunnelStage("Contacted", counts["contacted"], STAGE_COLORS["contacted"]),
        FunnelStage("Shortlisted", counts["shortlisted"], STAGE_COLORS["shortlisted"]),
        FunnelStage("Booked", counts["booked"], STAGE_COLORS["booked"]),
    ]


def category_breakdown(vendors: Iterable[Any]) -> dict[str, int]:
    """Vendor count per category; vendors without one count as "Other"."""
    breakdown: dict[str, int] = {}
    for vendor in vendors or []:
        category = get_field(vendor, "category") or "Other"
        breakdown[category] = breakdown.get(category, 0) + 1
    return breakdown


def cost_analysis(vendors: Iterable[Any]) -> dict[str, float]:
    """Estimated vs actual cost across booked vendors."""
    booked = [v for v in vendors or [] if is_booked(v)]
    total_estimated = sum(safe_float(get_field(v, "estimated_cost")) for v in booked)
    total_actual = sum(safe_float(get_field(v, "actual_cost")) for v in booked)
    return {
        "total_estimated": total_estimated,
        "total_actual": total_actual,
        "variance": total_actual - total_estimated,
        "booked_vendors": len(booked),
    }


def conversion_rates(vendors: Iterable[Any]) -> dict[str, float]:
    """Stage-to-stage conversion percentages; 0 when the earlier stage is empty."""
    counts = _stage_counts(vendors)
    contacted = counts["contacted"]
    shortlisted = counts["shortlisted"]
    booked = counts["booked"]
    return {
        "contacted_to_shortlisted": (shortlisted / contacted) * 100 if contacted else 0.0,
        "shortlisted_to_booked": (booked / shortlisted) * 100 if shortlisted else 0.0,
        "overall_conversion": (booked / contacted) * 100 if contacted else 0.0,
    }


@dataclass(frozen=True)
class VendorStats:
    total: int
    booked: int
    booked_percent: int
    total_quotes: float


def vendor_stats(vendors: Iterable[Any]) -> VendorStats:
    """Header numbers for the vendor page."""
    vendors = list(vendors or [])
    booked = sum(1 for v in vendors if is_booked(v))
    total = len(vendors)
    return VendorStats(
        total=total,
        booked=booked,
        booked_percent=round(booked / total * 100) if total else 0,
        total_quotes=sum(safe_float(get_field(v, "estimated_cost")) for v in vendors),
    )

"""Tests for views/budget.py: category matching and chart data."""

import pytest

from client.models import BudgetItem
from views.budget import (
    CATEGORY_COLORS,
    calculate_budget_progress,
    items_for_category,
    summarize_budget,
    summarize_categories,
    to_donut,
)

ITEMS = [
    {"id": 1, "category": "Venue", "item": "Hall", "estimatedCost": "5000.00", "actualCost": "2500.00"},
    {"id": 2, "category": "venue", "item": "Chairs", "estimatedCost": 400, "actualCost": None},
    {"id": 3, "category": "Flowers", "item": "Bouquets", "estimatedCost": "abc", "actualCost": 120},
    {"id": 4, "category": None, "item": "Misc", "estimatedCost": 50},
]


class TestItemsForCategory:
    def test_exact_match_wins(self):
        assert [i["id"] for i in items_for_category(ITEMS, "Venue")] == [1]

    def test_case_insensitive_fallback(self):
        assert [i["id"] for i in items_for_category(ITEMS, "VENUE")] == [1, 2]

    def test_no_match(self):
        assert items_for_category(ITEMS, "Cake") == []

    def test_works_on_models(self):
        models = [BudgetItem.model_validate(i) for i in ITEMS[:2]]
        assert len(items_for_category(models, "VENUE")) == 2


class TestSummarizeBudget:
    def test_groups_case_insensitively_keeping_first_spelling(self):
        summary = summarize_budget(ITEMS)
        assert [c.name for c in summary.categories] == ["Venue", "Flowers"]
        venue = summary.categories[0]
        assert venue.estimated == 5400.0
        assert venue.actual == 2500.0
        assert venue.item_count == 2

    def test_totals_treat_bad_money_as_zero(self):
        summary = summarize_budget(ITEMS)
        assert summary.total_estimated == 5400.0
        assert summary.total_actual == 2620.0
        assert summary.total_remaining == 2780.0
        assert summary.item_count == 4

    def test_empty(self):
        summary = summarize_budget(None)
        assert summary.categories == []
        assert summary.progress == 0.0

    def test_category_status(self):
        summary = summarize_budget([{"category": "Cake", "estimatedCost": 100, "actualCost": 85}])
        assert summary.categories[0].status == "warning"
        assert summary.categories[0].remaining == 15.0

    def test_defined_category_order(self):
        result = summarize_categories(["Flowers", "VENUE", "Music"], ITEMS)
        assert [(c.name, c.estimated, c.actual) for c in result] == [
            ("Flowers", 0.0, 120.0),
            ("VENUE", 5400.0, 2500.0),
            ("Music", 0, 0),
        ]


class TestDonut:
    def test_slices_sum_repeated_names(self):
        donut = to_donut(10000, 2500, [
            {"name": "Venue", "actualCost": "2000"},
            {"name": "Venue", "actual": 500},
            {"name": "Flowers", "actualCost": None},
        ])
        assert donut.remaining == 7500.0
        assert [(s.name, s.value) for s in donut.categories] == [("Venue", 2500.0), ("Flowers", 0.0)]
        assert donut.categories[1].color == CATEGORY_COLORS[1]

    def test_remaining_never_negative(self):
        assert to_donut(100, 150, []).remaining == 0.0


class TestBudgetProgress:
    @pytest.mark.parametrize("total, spent, status", [
        (1000, 500, "under"),
        (1000, 950, "on-track"),
        (1000, 1100, "over"),
        (0, 5, "on-track"),
    ])
    def test_status(self, total, spent, status):
        assert calculate_budget_progress(total, spent)["status"] == status

    def test_percentage_is_not_clamped(self):
        assert calculate_budget_progress("1,000", "1500")["percentage"] == 150.0

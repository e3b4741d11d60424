"""Output formatting utilities for PlanHaus views.

Provides reusable functions for:
- Formatting currency amounts (whole US dollars)
- Progress percentages clamped for progress bars
- Tabular report output for the command line
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, List, Any

from utils.strings import safe_float


def format_currency(value: Any) -> str:
    """Format a dollar amount for display with no decimals.

    Missing, unparseable and NaN values render as ``$0`` instead of
    propagating NaN into the view. Rounding is half-up to whole dollars.

    Args:
        value: Amount in dollars (number, numeric string, or None)

    Returns:
        Formatted string like "$1,235" or "-$40"

    Examples:
        format_currency(1234.99) -> "$1,235"
        format_currency("5000.00") -> "$5,000"
        format_currency(None) -> "$0"
        format_currency(float("nan")) -> "$0"
    """
    amount = safe_float(value)
    whole = int(Decimal(str(abs(amount))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    sign = "-" if amount < 0 and whole else ""
    return f"{sign}${whole:,d}"


def progress_percentage(spent: Any, budget: Any) -> float:
    """Return spent/budget as a percentage clamped to [0, 100].

    Examples:
        progress_percentage(500, 1000) -> 50.0
        progress_percentage(1500, 1000) -> 100.0
        progress_percentage(100, 0) -> 0.0
    """
    safe_spent = safe_float(spent)
    safe_budget = safe_float(budget)
    if safe_budget == 0:
        return 0.0
    return min(max((safe_spent / safe_budget) * 100, 0.0), 100.0)


def progress_status(spent: Any, budget: Any) -> str:
    """Classify spend against a budget for progress-bar colouring.

    Returns:
        "empty" when there is no budget, "over" above 100%, "warning"
        above 80%, otherwise "ok".
    """
    safe_spent = safe_float(spent)
    safe_budget = safe_float(budget)
    if safe_budget == 0:
        return "empty"
    percentage = (safe_spent / safe_budget) * 100
    if percentage > 100:
        return "over"
    if percentage > 80:
        return "warning"
    return "ok"


def format_percent(value: Optional[float], precision: int = 0) -> str:
    """Format a percentage for display.

    Examples:
        format_percent(42.5, 1) -> "42.5%"
        format_percent(None) -> "-"
    """
    if value is None:
        return "-"
    return f"{value:.{precision}f}%"


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """Truncate text to maximum length with ellipsis.

    Examples:
        truncate_text("Long text here", 10) -> "Long te..."
        truncate_text("Short", 10) -> "Short"
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix


class TableFormatter:
    """Formats data as aligned tabular output."""

    def __init__(self, columns: List[str], column_widths: Optional[List[int]] = None):
        """Initialize table formatter.

        Args:
            columns: List of column headers
            column_widths: Optional list of column widths (auto-calculated if None)
        """
        self.columns = columns
        self.column_widths = column_widths or [len(col) for col in columns]
        self.rows: List[List[str]] = []

    def add_row(self, values: List[Any]) -> None:
        """Add a row to the table.

        Raises:
            ValueError: If value count doesn't match column count
        """
        if len(values) != len(self.columns):
            raise ValueError(f"Expected {len(self.columns)} values, got {len(values)}")

        str_values = []
        for i, val in enumerate(values):
            str_val = str(val) if val is not None else "-"
            str_values.append(str_val)
            if len(str_val) > self.column_widths[i]:
                self.column_widths[i] = len(str_val)

        self.rows.append(str_values)

    def _format_row(self, values: List[str], is_header: bool = False) -> str:
        cells = []
        for i, val in enumerate(values):
            width = self.column_widths[i]
            # Right-align money and percentages
            if not is_header and (val.startswith(("$", "-$")) or val.endswith("%")):
                cells.append(val.rjust(width))
            else:
                cells.append(val.ljust(width))
        return "  ".join(cells).rstrip()

    def to_string(self, show_header: bool = True, show_separator: bool = True) -> str:
        """Format table as multi-line string."""
        lines = []

        if show_header:
            lines.append(self._format_row(self.columns, is_header=True))
            if show_separator:
                lines.append("  ".join("-" * w for w in self.column_widths))

        for row in self.rows:
            lines.append(self._format_row(row))

        return "\n".join(lines)

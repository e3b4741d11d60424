"""String processing utilities for PlanHaus tools.

Server responses carry money as decimal strings ("5000.00"), plain numbers,
or nothing at all. safe_float() is the single place those shapes are turned
into numbers for aggregation and display.
"""

import math

from utils.patterns import WHITESPACE, CURRENCY_SYMBOLS


def safe_float(val, default: float = 0.0) -> float:
    """Safely convert value to float with fallback default.

    Handles:
    - None, empty strings -> default
    - NaN and infinities -> default
    - Numeric types -> float
    - Strings with currency symbols, whitespace, commas
    - Invalid input -> default

    Args:
        val: Value to convert (any type)
        default: Value to return on failure (default: 0.0)

    Returns:
        float: Parsed value or default
    """
    if val is None or val == '' or isinstance(val, bool):
        return default
    if isinstance(val, (int, float)):
        result = float(val)
    else:
        try:
            s = str(val).strip()
            # Remove currency symbols and normalize whitespace
            s = CURRENCY_SYMBOLS.sub('', s)
            s = s.replace(',', '').strip()
            result = float(s) if s else default
        except (ValueError, TypeError):
            return default

    if math.isnan(result) or math.isinf(result):
        return default
    return result


def normalize_whitespace(s: str) -> str:
    """Normalize multiple whitespace characters to single spaces.

    Example:
        "Emma   &\\n Jake" -> "Emma & Jake"
    """
    return WHITESPACE.sub(' ', s).strip()


def casefold_contains(haystack, needle: str) -> bool:
    """Case-insensitive substring test that tolerates ``None`` haystacks."""
    if not needle:
        return True
    if haystack is None:
        return False
    return needle.casefold() in str(haystack).casefold()

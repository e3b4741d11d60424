"""Shared utilities for PlanHaus tools.

Pure helpers used by the client sync layer, the derived views and the
development backend: string coercion, display formatting, sanitization,
debouncing, configuration and logging setup.
"""

# Pattern definitions
from utils.patterns import (
    WHITESPACE,
    CURRENCY_SYMBOLS,
    UNSAFE_FILENAME_CHARS,
    PHONE,
    EMAIL,
    HTTP_URL,
)

# String utilities
from utils.strings import safe_float, normalize_whitespace, casefold_contains

# Output formatting
from utils.formatting import (
    format_currency,
    progress_percentage,
    progress_status,
    format_percent,
    truncate_text,
    TableFormatter,
)

# Sanitization
from utils.sanitize import (
    sanitize_html,
    sanitize_text,
    validate_file_type,
    validate_file_size,
    sanitize_file_name,
    escape_regexp,
    validate_url,
)

# Debouncing
from utils.debounce import Debouncer

# Configuration
from utils.config import Config, ClientConfig, ServerConfig

# Logging
from utils.logs import configure_logging

__all__ = [
    # Patterns
    "WHITESPACE",
    "CURRENCY_SYMBOLS",
    "UNSAFE_FILENAME_CHARS",
    "PHONE",
    "EMAIL",
    "HTTP_URL",
    # Strings
    "safe_float",
    "normalize_whitespace",
    "casefold_contains",
    # Formatting
    "format_currency",
    "progress_percentage",
    "progress_status",
    "format_percent",
    "truncate_text",
    "TableFormatter",
    # Sanitization
    "sanitize_html",
    "sanitize_text",
    "validate_file_type",
    "validate_file_size",
    "sanitize_file_name",
    "escape_regexp",
    "validate_url",
    # Debounce
    "Debouncer",
    # Config
    "Config",
    "ClientConfig",
    "ServerConfig",
    # Logging
    "configure_logging",
]

"""Pre-compiled regex patterns for PlanHaus tools.

All patterns are compiled once at module import so that form validation and
sanitization loops do not recompile them for each call.

Usage:
    from utils.patterns import UNSAFE_FILENAME_CHARS, PHONE

    if PHONE.match(text):
        ...
"""

import re

# Whitespace normalization: multiple spaces/tabs/newlines
WHITESPACE = re.compile(r'\s+')

# Currency symbols for stripping during numeric conversion
CURRENCY_SYMBOLS = re.compile(r'[\$€£¥₹₽]')

# Characters that are unsafe in file names (plus ASCII control characters)
UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

# Phone numbers: optional +, optional parenthesis, 10+ digits/spaces/dashes
PHONE = re.compile(r'^\+?\(?[\d\s\-()]{10,}$')

# Loose email shape check (no DNS, no quoting rules)
EMAIL = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')

# http(s) URLs only
HTTP_URL = re.compile(r'^https?://.+', re.IGNORECASE)


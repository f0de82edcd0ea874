"""Input cleaning helpers with XSS protection"""

import html
import re
import bleach

# Catalog text is rendered as plain text, so no markup survives cleaning
ALLOWED_TAGS: list[str] = []

DANGEROUS_PATTERNS = [
    r'<script[^>]*>',
    r'javascript:',
    r'on\w+\s*=',
    r'<iframe',
]


class SafeStringMixin:
    """Mixin for XSS-safe string validation"""

    @staticmethod
    def sanitize_html(value: str) -> str:
        """Remove dangerous HTML/JavaScript"""
        if not value:
            return value
        return bleach.clean(value, tags=ALLOWED_TAGS, strip=True)

    @staticmethod
    def validate_no_script(value: str) -> str:
        """Block common XSS patterns"""
        if not value:
            return value

        for pattern in DANGEROUS_PATTERNS:
            if re.search(pattern, value, re.IGNORECASE):
                raise ValueError("Invalid characters detected")

        return value


def clean_text(value) -> str:
    """
    Normalize an optional form value: None -> '', trimmed, script-free, tag-free.

    Stored values are plain text (entities decoded); templates escape on output.
    """
    if value is None:
        return ""
    value = SafeStringMixin.validate_no_script(str(value).strip())
    value = html.unescape(SafeStringMixin.sanitize_html(value))
    return SafeStringMixin.validate_no_script(value).strip()

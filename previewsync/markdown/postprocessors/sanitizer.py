# previewsync/markdown/postprocessors/sanitizer.py

import logging
from functools import lru_cache

import bleach
from bleach.css_sanitizer import CSSSanitizer

from ..context import LINE_ID_ATTR

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _get_bleach_config():
    """Cache bleach configuration for better performance."""
    allowed_tags = set(bleach.sanitizer.ALLOWED_TAGS).union(
        {
            # text
            "p",
            "br",
            "span",
            "div",
            "del",
            "s",
            "mark",
            # headings
            "h1",
            "h2",
            "h3",
            "h4",
            "h5",
            "h6",
            # lists
            "ul",
            "ol",
            "li",
            "hr",
            "blockquote",
            # code
            "pre",
            "code",
            # tables
            "table",
            "thead",
            "tbody",
            "tr",
            "th",
            "td",
            # media
            "img",
            # directives and admonitions
            "aside",
            "header",
        }
    )

    allowed_attrs = {
        "*": ["class", "id", "title", LINE_ID_ATTR],
        "a": ["href", "title"],
        "img": ["src", "alt", "title"],
        "ol": ["start"],
        # Column alignment of markdown tables
        "th": ["style"],
        "td": ["style"],
    }

    allowed_protocols = ["http", "https", "mailto", "tel"]

    return allowed_tags, allowed_attrs, allowed_protocols


@lru_cache(maxsize=1)
def _get_css_sanitizer():
    """Only table alignment is allowed in inline styles."""
    return CSSSanitizer(allowed_css_properties=["text-align"])


def sanitize_html(html, context):
    """
    Sanitize HTML output using bleach.

    Only runs when raw HTML is enabled in the parser options; without it the
    renderer escapes everything itself. Line identifier attributes are kept.
    """
    if not context.get("allow_html"):
        return html

    allowed_tags, allowed_attrs, allowed_protocols = _get_bleach_config()

    try:
        return bleach.clean(
            html,
            tags=allowed_tags,
            attributes=allowed_attrs,
            protocols=allowed_protocols,
            css_sanitizer=_get_css_sanitizer(),
            strip=False,  # Escape disallowed tags instead of dropping their text
        )
    except Exception as e:
        logger.error(f"Bleach sanitization failed: {e}", exc_info=True)
        return html

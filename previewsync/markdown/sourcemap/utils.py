"""Helpers shared by the source-map render stages."""

from __future__ import annotations

import re
from typing import Mapping

from bs4 import BeautifulSoup
from markdown_it.common.utils import escapeHtml

from ..context import LINE_ID_ATTR

_LINE_ID_RE = re.compile(r'\s' + re.escape(LINE_ID_ATTR) + r'="[^"]*"')


def render_attrs(attrs: Mapping[str, object]) -> str:
    """Serialise attributes the same way markdown-it's renderer does."""
    result = ""
    for key, value in attrs.items():
        result += " " + escapeHtml(key) + '="' + escapeHtml(str(value)) + '"'
    return result


def wrap_element(tag: str, attrs: Mapping[str, object], inner_html: str) -> str:
    return f"<{tag}{render_attrs(attrs)}>{inner_html}</{tag}>"


def set_first_element_attrs(html: str, attrs: Mapping[str, object]) -> str:
    """
    Set ``attrs`` on the first element of an already rendered fragment.

    The fragment is parsed and the attributes are assigned on the element node
    before it is serialised again. The fragment is always re-serialised, even
    with no attributes, so annotated and plain renders differ only by the
    attributes themselves.
    """
    soup = BeautifulSoup(html, "html.parser")
    element = soup.find(True)
    if element is None:
        return html
    for key, value in attrs.items():
        element[key] = str(value)
    return str(soup)


def strip_line_ids(html: str) -> str:
    """Remove every line identifier attribute from rendered HTML."""
    return _LINE_ID_RE.sub("", html)

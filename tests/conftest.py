"""Shared fixtures for previewsync tests."""

from __future__ import annotations

import re

import pytest

from previewsync.markdown.renderer import MarkdownPipeline

LINE_ID_RE = re.compile(r'data-line-id="([^"]*)"')


def line_ids(html: str) -> list[str]:
    """All line identifiers in ``html``, in document order."""
    return LINE_ID_RE.findall(html)


@pytest.fixture
def pipeline() -> MarkdownPipeline:
    return MarkdownPipeline()

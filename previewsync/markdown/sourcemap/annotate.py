# previewsync/markdown/sourcemap/annotate.py
"""
Line annotation stage.

Runs ahead of every other stage for the token types it is bound to. It never
produces output itself: it records an identifier for the token's first source
line in the pass's ``LineMap`` and stores the same identifier in the token's
attributes, where the inner stages and base rules render it.

Paragraphs and headings are handled differently. Their inline content can
span several source lines, so instead of claiming the container's line the
stage gives the first renderable child of every visual line a one-line span.
Those children are rendered later in the same pass and claim their line then.
"""

from __future__ import annotations

from typing import Sequence

from markdown_it.token import Token

from ..context import LINE_ID_ATTR, RenderPass, validate_span

# Block containers whose lines are claimed by their inline children
INLINE_CONTAINERS = frozenset(("paragraph_open", "heading_open"))

# Explicit line breaks inside inline content
LINE_BREAKS = frozenset(("softbreak", "hardbreak"))

# Raw HTML is emitted verbatim and cannot carry the attribute
RAW_HTML = frozenset(("html_block", "html_inline"))


def prepare_visual_lines(container: Token, inline: Token) -> None:
    """Give the first child on each visual line a one-line span."""
    start, _ = validate_span(container.map)
    line_in_container = 0
    line_claimed = False
    for child in inline.children or []:
        if child.type in LINE_BREAKS:
            line_in_container += 1
            line_claimed = False
            continue
        if child.type in RAW_HTML:
            continue
        if not line_claimed:
            line = start + line_in_container
            child.map = [line, line + 1]
            line_claimed = True


def annotate(
    tokens: Sequence[Token], idx, options, env, render_pass: RenderPass, inner
) -> str:
    token = tokens[idx]
    if token.type in INLINE_CONTAINERS:
        following = tokens[idx + 1] if idx + 1 < len(tokens) else None
        if token.map and following is not None and following.type == "inline":
            prepare_visual_lines(token, following)
    elif token.map:
        identifier = render_pass.claim(token.map)
        if identifier is not None:
            token.attrSet(LINE_ID_ATTR, identifier)
    return inner(tokens, idx, options, env, render_pass)

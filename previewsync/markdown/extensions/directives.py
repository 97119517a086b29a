# previewsync/markdown/extensions/directives.py
"""
markdown-it plugin for fenced directive blocks.

Syntax:
    ```{note}
    :class: wide
    Body text, parsed as Markdown.
    ```

    ```{admonition} Custom title
    Body text.
    ```

Behavior:
- Fences whose info string is ``{name} argument`` are rewritten after block
  parsing and before inline parsing.
- Leading ``:key: value`` lines of the body are directive options.
- Admonition directives expand into ``admonition_open`` / ``admonition_close``
  around a title header and the block-parsed body. Body tokens keep document
  line numbers, and nested directives are expanded as well.
- Unknown directives become a ``directive`` token, rendered as an
  "unhandled" aside showing the raw body.
- Invalid input (bad option line, unknown option, missing required argument)
  becomes a ``directive_error`` token, rendered as an error aside.

Neither fallback renderer outputs the token's attributes.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml
from markdown_it.rules_core import StateCore
from markdown_it.token import Token

logger = logging.getLogger(__name__)

ADMONITIONS = (
    "attention",
    "caution",
    "danger",
    "error",
    "hint",
    "important",
    "note",
    "seealso",
    "tip",
    "warning",
)

# Generic admonition: the title is the directive argument
GENERIC_ADMONITION = "admonition"

ADMONITION_OPTIONS = ("class", "name")

_DIRECTIVE_INFO_RE = re.compile(r"^\{(?P<name>[A-Za-z][\w:-]*)\}\s*(?P<argument>.*)$")
_OPTION_RE = re.compile(r"^:(?P<key>[\w-]+):(?:\s+(?P<value>.*))?$")


class DirectiveError(ValueError):
    """Raised while expanding a directive whose input is invalid."""


def parse_options(content: str) -> tuple[dict, str, int]:
    """
    Split leading ``:key: value`` lines off a directive body.

    Returns:
        (options, remaining body, number of option lines consumed)
    """
    lines = content.splitlines(keepends=True)
    options = {}
    consumed = 0
    for line in lines:
        stripped = line.strip()
        if not stripped.startswith(":"):
            break
        match = _OPTION_RE.match(stripped)
        if match is None:
            raise DirectiveError(f"Invalid option line: {stripped!r}")
        options[match.group("key")] = (match.group("value") or "").strip()
        consumed += 1
    return options, "".join(lines[consumed:]), consumed


def _shift(tokens: List[Token], line_offset: int, level_offset: int) -> None:
    for token in tokens:
        if token.map:
            token.map = [token.map[0] + line_offset, token.map[1] + line_offset]
        token.level += level_offset


def _admonition_tokens(
    fence: Token, name: str, argument: str, md: MarkdownIt, env
) -> List[Token]:
    options, body, option_lines = parse_options(fence.content)

    unknown = sorted(set(options) - set(ADMONITION_OPTIONS))
    if unknown:
        raise DirectiveError(f"Unknown option(s) for {name}: {', '.join(unknown)}")

    if name == GENERIC_ADMONITION:
        if not argument:
            raise DirectiveError("The admonition directive requires a title argument")
        title = argument
        classes = [GENERIC_ADMONITION]
    else:
        title = argument or name.capitalize()
        classes = [GENERIC_ADMONITION, name]
    classes.extend(options.get("class", "").split())

    opening = Token(
        "admonition_open",
        "aside",
        1,
        attrs={"class": " ".join(classes)},
        map=list(fence.map) if fence.map else None,
        level=fence.level,
        markup=fence.markup,
        info=name,
        block=True,
    )
    if options.get("name"):
        opening.attrSet("id", options["name"])

    title_open = Token(
        "admonition_title_open",
        "header",
        1,
        attrs={"class": "admonition-title"},
        level=fence.level + 1,
        block=True,
    )
    title_inline = Token(
        "inline", "", 0, content=title, level=fence.level + 2, children=[]
    )
    title_close = Token("admonition_title_close", "header", -1, level=fence.level + 1, block=True)

    body_tokens: List[Token] = []
    md.block.parse(body, md, env, body_tokens)
    if fence.map:
        # Body starts on the line after the opening fence and its options
        _shift(body_tokens, fence.map[0] + 1 + option_lines, fence.level + 1)
    body_tokens = expand_directives(body_tokens, md, env)

    closing = Token(
        "admonition_close", "aside", -1, level=fence.level, markup=fence.markup, block=True
    )
    return [opening, title_open, title_inline, title_close, *body_tokens, closing]


def _fallback_token(
    token_type: str, fence: Token, name: str, argument: str, content: str
) -> Token:
    return Token(
        token_type,
        "aside",
        0,
        map=list(fence.map) if fence.map else None,
        level=fence.level,
        content=content,
        markup=fence.markup,
        info=name,
        meta={"argument": argument},
        block=True,
    )


def _directive_name(token: Token) -> Optional[re.Match]:
    if token.type != "fence" or not token.info:
        return None
    return _DIRECTIVE_INFO_RE.match(token.info.strip())


def expand_directives(tokens: List[Token], md: MarkdownIt, env) -> List[Token]:
    """Return ``tokens`` with every directive fence rewritten."""
    expanded: List[Token] = []
    for token in tokens:
        match = _directive_name(token)
        if match is None:
            expanded.append(token)
            continue

        name = match.group("name")
        argument = match.group("argument").strip()
        if name not in ADMONITIONS and name != GENERIC_ADMONITION:
            logger.debug("No handler for directive %r, rendering as unhandled", name)
            expanded.append(_fallback_token("directive", token, name, argument, token.content))
            continue

        try:
            expanded.extend(_admonition_tokens(token, name, argument, md, env))
        except DirectiveError as exc:
            logger.debug("Directive %r failed: %s", name, exc)
            expanded.append(_fallback_token("directive_error", token, name, argument, str(exc)))
    return expanded


def _directives_rule(state: StateCore) -> None:
    state.tokens = expand_directives(state.tokens, state.md, state.env)


def _render_aside(css_class: str, token: Token) -> str:
    argument = token.meta.get("argument", "")
    return (
        f'<aside class="{css_class}">'
        f"<header><mark>{escapeHtml(token.info)}</mark>"
        f"<code> {escapeHtml(argument)}</code></header>"
        f"<pre>{escapeHtml(token.content)}</pre>"
        "</aside>\n"
    )


def render_directive(self, tokens, idx, options, env) -> str:
    return _render_aside("directive-unhandled", tokens[idx])


def render_directive_error(self, tokens, idx, options, env) -> str:
    return _render_aside("directive-error", tokens[idx])


def directives_plugin(md: MarkdownIt) -> None:
    # Must run before the inline rule so expanded tokens get inline children
    md.core.ruler.after("block", "directives", _directives_rule)
    md.add_render_rule("directive", render_directive)
    md.add_render_rule("directive_error", render_directive_error)

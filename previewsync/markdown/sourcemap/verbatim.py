# previewsync/markdown/sourcemap/verbatim.py
"""
Splits verbatim blocks into one addressable ``<span>`` per physical line.

markdown-it hands the whole body of a code block to the renderer as a single
string. This stage re-renders the body line by line so every line gets its
own identifier:

    ```python          <- line 5, identifier on <code>
    a = 1              <- line 6
    b = 2              <- line 7
    ```

renders as:

    <pre><code data-line-id="…-1" class="language-python"><span data-line-id="…-2">a = 1</span>
    <span data-line-id="…-3">b = 2</span></code></pre>

Extensions sometimes reuse the fence renderer for output that is not a code
block (diagrams, for instance). Those are detected from the inner rule's
output: anything that does not start with ``<pre`` only receives the token's
attributes on its first element.

If syntax highlighting is ever enabled, the highlighted markup would have to
be split per line instead of the raw content.
"""

from markdown_it.common.utils import escapeHtml, unescapeAll
from markdown_it.token import Token

from ..context import LINE_ID_ATTR
from .utils import render_attrs, set_first_element_attrs

# Offset of the first content line from the token's span start
CONTENT_OFFSETS = {
    "fence": 1,  # content starts after the opening fence
    "code_block": 0,  # indented code has no delimiter line
}


def _code_attrs(token: Token, options) -> dict:
    """Attributes markdown-it puts on ``<code>`` for a fence."""
    attrs = dict(token.attrs)
    info = unescapeAll(token.info).strip() if token.info else ""
    if info:
        lang_name = info.split(maxsplit=1)[0]
        lang_class = options.langPrefix + lang_name
        attrs["class"] = f"{attrs['class']} {lang_class}" if attrs.get("class") else lang_class
    return attrs


def _wrap_lines(token: Token, render_pass) -> str:
    lines = escapeHtml(token.content).split("\n")
    # The block's final newline leaves an empty trailing segment. A fence left
    # open at the end of the document has no final newline.
    if lines and lines[-1] == "":
        lines.pop()
    offset = CONTENT_OFFSETS.get(token.type, 0)
    if token.map:
        identifiers = render_pass.claim_lines(token.map, len(lines), offset=offset)
    else:
        identifiers = [None] * len(lines)

    wrapped = []
    for line, identifier in zip(lines, identifiers):
        attrs = {LINE_ID_ATTR: identifier} if identifier else {}
        wrapped.append(f"<span{render_attrs(attrs)}>{line}</span>")
    return "\n".join(wrapped)


def wrap_verbatim(tokens, idx, options, env, render_pass, inner) -> str:
    token = tokens[idx]
    default_output = inner(tokens, idx, options, env, render_pass)

    if not default_output.startswith("<pre"):
        return set_first_element_attrs(default_output, token.attrs)

    content = _wrap_lines(token, render_pass)
    if token.type == "code_block":
        return f"<pre{render_attrs(token.attrs)}><code>{content}</code></pre>\n"
    return f"<pre><code{render_attrs(_code_attrs(token, options))}>{content}</code></pre>\n"

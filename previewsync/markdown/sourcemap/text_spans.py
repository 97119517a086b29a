# previewsync/markdown/sourcemap/text_spans.py
"""
Wraps every text run in a ``<span>`` carrying the token's attributes.

markdown-it renders text tokens as bare escaped strings, leaving nothing to
hang a line identifier on.

Input token ``text`` ("Line1") with a line identifier:
    <span data-line-id="3f2a91c0-1">Line1</span>
"""

from .utils import wrap_element


def wrap_text(tokens, idx, options, env, render_pass, inner) -> str:
    token = tokens[idx]
    return wrap_element("span", token.attrs, inner(tokens, idx, options, env, render_pass))

# previewsync/markdown/sourcemap/directive_patch.py
"""
Restores token attributes on directive blocks.

The fallback renderers for unhandled and failed directives build their
``<aside>`` markup by hand and never render the token's attributes, so the
line identifier would be lost. This stage renders the block as usual and sets
the attributes on its outermost element.
"""

from .utils import set_first_element_attrs

DIRECTIVE_TYPES = ("directive", "directive_error")


def patch_directive(tokens, idx, options, env, render_pass, inner) -> str:
    token = tokens[idx]
    html = inner(tokens, idx, options, env, render_pass)
    return set_first_element_attrs(html, token.attrs)

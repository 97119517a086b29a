# previewsync/markdown/sourcemap/__init__.py
"""
Render bindings that attach source-line identifiers to markdown-it output.

Each token type is bound to a chain of stages ending in the renderer's own
rule (or ``renderToken`` when there is none). A stage is called as::

    stage(tokens, idx, options, env, render_pass, inner) -> str

and decides whether and how to call ``inner``, the rest of the chain.

The bindings are built once from a snapshot of the renderer's rules, after
every extension has been installed, and are never modified afterwards.
"""

import logging
from dataclasses import dataclass
from functools import partial
from types import MappingProxyType
from typing import Callable, Mapping, Optional

from markdown_it import MarkdownIt

from .annotate import LINE_BREAKS, RAW_HTML, annotate
from .directive_patch import DIRECTIVE_TYPES, patch_directive
from .text_spans import wrap_text
from .utils import strip_line_ids
from .verbatim import CONTENT_OFFSETS, wrap_verbatim

logger = logging.getLogger(__name__)

BoundRule = Callable[..., str]

# Container types annotated even though markdown-it has no rule for them.
# The inline ones can be the leading child of a visual line. Table cells
# carry no span, so each row claims its line.
CONTAINER_TYPES = (
    "paragraph_open",
    "heading_open",
    "admonition_open",
    "tr_open",
    "link_open",
    "em_open",
    "strong_open",
    "s_open",
)

# Never annotated. List items and indented code start on the same line as
# their first child or first content line, which is annotated instead.
UNANNOTATED_TYPES = LINE_BREAKS | RAW_HTML | {"list_item_open", "code_block"}


@dataclass(frozen=True)
class Stage:
    name: str
    function: Callable[..., str]
    # None applies the stage to every annotated type
    token_types: Optional[tuple] = None


# Outermost first. Annotation must run before the stages that render the
# token's attributes, so it wraps them.
STAGES = (
    Stage("annotate", annotate),
    Stage("patch_directive", patch_directive, DIRECTIVE_TYPES),
    Stage("wrap_verbatim", wrap_verbatim, tuple(CONTENT_OFFSETS)),
    Stage("wrap_text", wrap_text, ("text",)),
)


def _base_rule(md: MarkdownIt, token_type: str) -> BoundRule:
    rule = md.renderer.rules.get(token_type)
    if rule is None:
        render_token = md.renderer.renderToken

        def rule(tokens, idx, options, env):
            return render_token(tokens, idx, options, env)

    def call(tokens, idx, options, env, render_pass):
        return rule(tokens, idx, options, env)

    return call


def _applies(stage: Stage, token_type: str, annotated: frozenset) -> bool:
    if stage.token_types is None:
        return token_type in annotated
    return token_type in stage.token_types


def build_bindings(md: MarkdownIt, stages=STAGES) -> Mapping[str, BoundRule]:
    """
    Build the token type -> rule chain mapping for a configured parser.

    Call this after all extensions are installed: rules registered later are
    not part of the snapshot.
    """
    registered = set(md.renderer.rules)
    annotated = frozenset((registered | set(CONTAINER_TYPES)) - UNANNOTATED_TYPES)

    bindings = {}
    for token_type in sorted(registered | annotated):
        chain = _base_rule(md, token_type)
        applied = []
        for stage in reversed(stages):
            if _applies(stage, token_type, annotated):
                chain = partial(stage.function, inner=chain)
                applied.append(stage.name)
        bindings[token_type] = chain
        if applied:
            logger.debug("Bound %s through %s", token_type, ", ".join(reversed(applied)))

    logger.debug("Built render bindings for %d token types", len(bindings))
    return MappingProxyType(bindings)


__all__ = [
    "CONTAINER_TYPES",
    "STAGES",
    "Stage",
    "UNANNOTATED_TYPES",
    "build_bindings",
    "strip_line_ids",
]

# previewsync/markdown/renderer.py

import logging
from dataclasses import dataclass
from functools import lru_cache

from markdown_it import MarkdownIt

from .config import get_markdown_config
from .context import LineMap, RenderPass
from .extensions import apply_extensions
from .postprocessors import apply_postprocessors
from .sourcemap import build_bindings

logger = logging.getLogger(__name__)


@dataclass
class RenderResult:
    html: str
    line_map: LineMap
    start_line: int = 0
    chunk_id: int = 0


class MarkdownPipeline:
    """
    A configured parser together with its source-map render bindings.

    The bindings are built last, once every extension has registered its
    rules, and are shared read-only by all render calls. Per-call state lives
    in the ``RenderPass`` handed to each call.
    """

    def __init__(self, config=None):
        self.config = config or get_markdown_config()
        self.md = MarkdownIt(self.config["preset"], self.config["options"])
        if self.config.get("enable"):
            self.md.enable(self.config["enable"])
        apply_extensions(self.md)
        self.bindings = build_bindings(self.md)

    @property
    def allow_html(self):
        return bool(self.md.options.get("html"))

    def parse(self, text, env=None):
        return self.md.parse(text, {} if env is None else env)

    def render_tokens(self, tokens, render_pass, env=None):
        """Render a token stream, filling ``render_pass.line_map``."""
        env = {} if env is None else env
        return self._render(tokens, self.md.options, env, render_pass)

    def _render(self, tokens, options, env, render_pass):
        fallback = self.md.renderer.renderToken
        result = ""
        for idx, token in enumerate(tokens):
            if token.type == "inline":
                if token.children:
                    result += self._render(token.children, options, env, render_pass)
                continue
            rule = self.bindings.get(token.type)
            if rule is None:
                result += fallback(tokens, idx, options, env)
            else:
                result += rule(tokens, idx, options, env, render_pass)
        return result

    def render(self, text, render_pass, env=None):
        env = {} if env is None else env
        return self.render_tokens(self.parse(text, env), render_pass, env)

    def collect_references(self, text):
        """Link reference definitions of a whole document, keyed by label."""
        env = {}
        self.md.block.parse(text, self.md, env, [])
        return env.get("references", {})


@lru_cache(maxsize=1)
def get_pipeline():
    """Default pipeline, built once per process."""
    return MarkdownPipeline()


def render_markdown(text, render_pass=None, context=None, pipeline=None, env=None):
    """
    Main rendering function with source-map annotation and postprocessing

    Args:
        text: Raw markdown text
        render_pass: RenderPass whose line map receives the identifiers
            (a fresh single-chunk pass when omitted)
        context: Optional dict for postprocessors that need additional data
        pipeline: MarkdownPipeline to use instead of the default one
        env: markdown-it environment, e.g. link references shared by chunks
    """
    context = dict(context or {})
    pipeline = pipeline or get_pipeline()
    render_pass = render_pass if render_pass is not None else RenderPass()
    context.setdefault("allow_html", pipeline.allow_html)

    html = pipeline.render(text, render_pass, env)

    # Post-processing: After markdown conversion
    html = apply_postprocessors(html, context)

    logger.debug(
        "Rendered chunk %d from line %d: %d lines mapped",
        render_pass.chunk_id,
        render_pass.start_line,
        len(render_pass.line_map),
    )
    return html


def render_with_line_map(
    text, start_line=0, chunk_id=0, context=None, pipeline=None, env=None
):
    """Render ``text`` with a fresh pass and return markup and line map together."""
    render_pass = RenderPass(start_line=start_line, chunk_id=chunk_id)
    html = render_markdown(text, render_pass, context=context, pipeline=pipeline, env=env)
    return RenderResult(
        html=html,
        line_map=render_pass.line_map,
        start_line=start_line,
        chunk_id=chunk_id,
    )

# Expose the rendering entry points to keep import paths short
from .markdown.context import LINE_ID_ATTR, LineMap, MalformedSpanError, RenderPass
from .markdown.renderer import render_markdown, render_with_line_map

__all__ = (
    "LINE_ID_ATTR",
    "LineMap",
    "MalformedSpanError",
    "RenderPass",
    "render_markdown",
    "render_with_line_map",
)

# previewsync/markdown/chunking.py
"""
Chunked rendering of large documents.

A document is cut into chunks at block boundaries and each chunk is rendered
with its own ``RenderPass``. Every chunk after the first starts with one line
of context from the previous chunk (the blank line the cut was made after),
which is the line the pass's chunk correction subtracts again:

    line 0   First paragraph          chunk 0: lines 0-1
    line 1                            chunk 1: lines 1-3, start_line=2
    line 2   Second paragraph
    line 3

Cuts are only made after a blank line that is outside a fenced block and is
followed by an unindented line, so lists, indented code and fences are never
split across chunks.
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional

from .config import get_markdown_config
from .context import LineMap, merge_line_maps
from .renderer import RenderResult, get_pipeline, render_with_line_map

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^ {0,3}(?P<marker>`{3,}|~{3,})(?P<rest>.*)$")


@dataclass(frozen=True)
class Chunk:
    chunk_id: int
    start_line: int
    text: str


class _FenceTracker:
    """Tracks whether a line lies inside a fenced block."""

    def __init__(self):
        self.open_marker = None

    def feed(self, line):
        match = _FENCE_RE.match(line.rstrip("\r\n"))
        if match is None:
            return
        marker = match.group("marker")
        if self.open_marker is None:
            if marker[0] == "`" and "`" in match.group("rest"):
                return  # not a fence: backtick info strings can't hold backticks
            self.open_marker = marker
        elif (
            marker[0] == self.open_marker[0]
            and len(marker) >= len(self.open_marker)
            and not match.group("rest").strip()
        ):
            self.open_marker = None

    @property
    def inside(self):
        return self.open_marker is not None


def split_into_chunks(text: str, max_lines: int) -> List[Chunk]:
    """
    Split ``text`` into chunks of at least ``max_lines`` source lines.

    Returns:
        Chunks in document order. Chunk 0 starts at line 0; chunk k > 0 has
        ``start_line`` set to the first line it owns, and its text begins one
        line earlier.
    """
    if max_lines < 1:
        raise ValueError(f"max_lines must be >= 1, got {max_lines}")

    lines = text.splitlines(keepends=True)
    fences = _FenceTracker()
    starts = [0]
    for index, line in enumerate(lines):
        fences.feed(line)
        if fences.inside or line.strip():
            continue
        next_index = index + 1
        if next_index >= len(lines) or next_index - starts[-1] < max_lines:
            continue
        following = lines[next_index]
        if following.strip() and not following[0].isspace():
            starts.append(next_index)

    chunks = []
    for chunk_id, start in enumerate(starts):
        end = starts[chunk_id + 1] if chunk_id + 1 < len(starts) else len(lines)
        first = start - 1 if chunk_id else start
        chunks.append(Chunk(chunk_id, start, "".join(lines[first:end])))
    return chunks


def render_chunks(
    text: str,
    max_lines: Optional[int] = None,
    max_workers: Optional[int] = None,
    pipeline=None,
    context=None,
) -> List[RenderResult]:
    """
    Render ``text`` chunk by chunk, each chunk with its own line map.

    Args:
        text: Raw markdown text of the whole document
        max_lines: Minimum chunk size (default from config)
        max_workers: Threads to render with; 1 renders sequentially
        pipeline: MarkdownPipeline to use instead of the default one
        context: Optional dict passed to postprocessors
    """
    config = get_markdown_config()
    max_lines = max_lines or config["chunk_lines"]
    max_workers = max_workers or config["max_workers"]
    pipeline = pipeline or get_pipeline()

    chunks = split_into_chunks(text, max_lines)
    logger.debug("Split document into %d chunks of >= %d lines", len(chunks), max_lines)

    # Reference definitions apply to the whole document, not just their chunk
    references = pipeline.collect_references(text) if len(chunks) > 1 else {}

    def render(chunk):
        return render_with_line_map(
            chunk.text,
            start_line=chunk.start_line,
            chunk_id=chunk.chunk_id,
            context=context,
            pipeline=pipeline,
            env={"references": dict(references)},
        )

    if max_workers > 1 and len(chunks) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(render, chunks))
    return [render(chunk) for chunk in chunks]


def merge_results(results: List[RenderResult]) -> LineMap:
    """Combine the line maps of chunk results into one document line map."""
    return merge_line_maps(result.line_map for result in results)

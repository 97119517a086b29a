# previewsync/markdown/context.py
"""
Per-pass rendering state: the line map, identifier minting and chunk offsets.

A ``RenderPass`` is created by the caller for every render and owned by it
exclusively, so independent chunks of one document can be rendered at the
same time as long as each gets its own pass.

Line numbers stored in the ``LineMap`` are absolute document lines. A chunk
other than the first is rendered with one line of context taken from the end
of the previous chunk, so its relative line 0 sits at ``start_line - 1``.
"""

from __future__ import annotations

import bisect
import itertools
import logging
import uuid
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

logger = logging.getLogger(__name__)

# Attribute read by the editor-side sync code. Changing it breaks consumers.
LINE_ID_ATTR = "data-line-id"


class MalformedSpanError(ValueError):
    """A token carried an empty or inverted ``[start, end)`` line span."""


def validate_span(span: Sequence[int]) -> tuple[int, int]:
    start, end = span[0], span[1]
    if start < 0 or end <= start:
        raise MalformedSpanError(f"Invalid line span {list(span)!r}")
    return start, end


class IdentifierFactory:
    """Mints identifiers that are unique within one render pass.

    Identifiers combine a random per-pass prefix with a counter, so two passes
    over the same input never produce the same values.
    """

    def __init__(self, prefix: Optional[str] = None):
        self.prefix = prefix or uuid.uuid4().hex[:8]
        self._counter = itertools.count(1)

    def __call__(self) -> str:
        return f"{self.prefix}-{next(self._counter)}"


class LineMap(dict):
    """Absolute source line -> identifier of the element rendered for it.

    A line holds a single identifier. When two tokens claim the same line the
    later write wins, so a line has at most one sync target.
    """

    def record(self, line: int, identifier: str) -> None:
        previous = self.get(line)
        if previous is not None:
            logger.debug(
                "Line %d reassigned from %s to %s", line, previous, identifier
            )
        self[line] = identifier

    def line_for(self, identifier: str) -> Optional[int]:
        """Reverse lookup used for click-to-source."""
        for line, value in self.items():
            if value == identifier:
                return line
        return None

    def nearest(self, line: int) -> Optional[tuple[int, str]]:
        """Return the closest claimed line at or before ``line``.

        Blank lines and lines inside unannotated blocks have no entry of
        their own; scroll-sync falls back to the preceding one.
        """
        lines = sorted(self)
        position = bisect.bisect_right(lines, line)
        if position == 0:
            return None
        found = lines[position - 1]
        return found, self[found]

    def merge(self, other: "LineMap") -> "LineMap":
        for line, identifier in other.items():
            self.record(line, identifier)
        return self


@dataclass
class RenderPass:
    """
    Context of one render call.

    Args:
        start_line: Absolute line at which this chunk begins in the document
        chunk_id: Ordinal of the chunk; 0 is the first (or only) chunk
        line_map: Output mapping filled while rendering
        annotate: When False, markup keeps its shape but no identifiers
            are minted or recorded
    """

    start_line: int = 0
    chunk_id: int = 0
    line_map: LineMap = field(default_factory=LineMap)
    annotate: bool = True
    new_identifier: IdentifierFactory = field(default_factory=IdentifierFactory)

    def __post_init__(self) -> None:
        if self.start_line < 0:
            raise ValueError(f"start_line must be >= 0, got {self.start_line}")
        if self.chunk_id < 0:
            raise ValueError(f"chunk_id must be >= 0, got {self.chunk_id}")

    @property
    def chunk_correction(self) -> int:
        return 1 if self.chunk_id != 0 else 0

    def absolute_line(self, relative_line: int) -> int:
        return relative_line + self.start_line - self.chunk_correction

    def claim(self, span: Sequence[int], offset: int = 0) -> Optional[str]:
        """
        Mint an identifier for the line at ``span`` start plus ``offset``.

        Returns the identifier, or None when the pass is not annotating.
        Raises MalformedSpanError for empty or inverted spans.
        """
        start, _ = validate_span(span)
        if not self.annotate:
            return None
        identifier = self.new_identifier()
        self.line_map.record(self.absolute_line(start) + offset, identifier)
        return identifier

    def claim_lines(self, span: Sequence[int], count: int, offset: int = 0) -> list[Optional[str]]:
        """Claim ``count`` consecutive lines starting at span start + ``offset``."""
        return [self.claim(span, offset + index) for index in range(count)]


def merge_line_maps(line_maps: Iterable[LineMap]) -> LineMap:
    merged = LineMap()
    for line_map in line_maps:
        merged.merge(line_map)
    return merged

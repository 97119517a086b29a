"""Tests for splitting documents into chunks and merging their line maps."""

from __future__ import annotations

import pytest

from conftest import line_ids
from previewsync.markdown.chunking import merge_results, render_chunks, split_into_chunks
from previewsync.markdown.renderer import render_with_line_map

DOCUMENT = """\
# Heading

Para one
para two

- a
- b

```
code
```

Tail
"""


class TestSplitIntoChunks:
    def test_cuts_at_block_boundaries(self) -> None:
        chunks = split_into_chunks(DOCUMENT, max_lines=3)
        assert [chunk.start_line for chunk in chunks] == [0, 5, 8, 12]
        assert [chunk.chunk_id for chunk in chunks] == [0, 1, 2, 3]

    def test_later_chunks_start_with_one_context_line(self) -> None:
        chunks = split_into_chunks(DOCUMENT, max_lines=3)
        assert chunks[0].text.startswith("# Heading\n")
        assert chunks[1].text == "\n- a\n- b\n\n"
        assert chunks[3].text == "\nTail\n"

    def test_short_document_is_a_single_chunk(self) -> None:
        chunks = split_into_chunks(DOCUMENT, max_lines=200)
        assert len(chunks) == 1
        assert chunks[0].text == DOCUMENT
        assert chunks[0].start_line == 0

    def test_never_cuts_inside_a_fence(self) -> None:
        text = "```\nfirst\n\nsecond\n\nthird\n```\n\nAfter\n"
        chunks = split_into_chunks(text, max_lines=1)
        assert [chunk.start_line for chunk in chunks] == [0, 8]

    def test_never_cuts_before_indented_continuation(self) -> None:
        text = "- item\n\n  continued\n\nNext\n"
        chunks = split_into_chunks(text, max_lines=1)
        assert [chunk.start_line for chunk in chunks] == [0, 4]

    def test_longer_closing_fence_closes(self) -> None:
        text = "~~~\ncode\n~~~~\n\nAfter\n"
        chunks = split_into_chunks(text, max_lines=1)
        assert [chunk.start_line for chunk in chunks] == [0, 4]

    def test_empty_document(self) -> None:
        chunks = split_into_chunks("", max_lines=5)
        assert len(chunks) == 1
        assert chunks[0].text == ""

    @pytest.mark.parametrize("max_lines", [0, -3])
    def test_rejects_non_positive_size(self, max_lines) -> None:
        with pytest.raises(ValueError):
            split_into_chunks(DOCUMENT, max_lines=max_lines)


class TestRenderChunks:
    """Chunked rendering produces the same lines as a single pass."""

    def test_merged_lines_match_single_pass(self, pipeline) -> None:
        single = render_with_line_map(DOCUMENT, pipeline=pipeline)
        results = render_chunks(DOCUMENT, max_lines=3, max_workers=1, pipeline=pipeline)
        merged = merge_results(results)

        assert sorted(single.line_map) == [0, 2, 3, 5, 6, 8, 9, 12]
        assert sorted(merged) == sorted(single.line_map)

    def test_each_chunk_maps_only_its_own_lines(self, pipeline) -> None:
        results = render_chunks(DOCUMENT, max_lines=3, max_workers=1, pipeline=pipeline)
        assert [sorted(result.line_map) for result in results] == [
            [0, 2, 3],
            [5, 6],
            [8, 9],
            [12],
        ]
        assert [result.start_line for result in results] == [0, 5, 8, 12]

    def test_identifiers_are_unique_across_chunks(self, pipeline) -> None:
        results = render_chunks(DOCUMENT, max_lines=3, max_workers=1, pipeline=pipeline)
        all_ids = [identifier for result in results for identifier in line_ids(result.html)]
        assert len(all_ids) == len(set(all_ids))
        assert set(all_ids) == set(merge_results(results).values())

    def test_threaded_rendering(self, pipeline) -> None:
        results = render_chunks(DOCUMENT, max_lines=3, max_workers=2, pipeline=pipeline)
        assert [result.chunk_id for result in results] == [0, 1, 2, 3]
        assert sorted(merge_results(results)) == [0, 2, 3, 5, 6, 8, 9, 12]

    @pytest.mark.parametrize("max_workers", [1, 2])
    def test_reference_links_resolve_across_chunks(self, pipeline, max_workers) -> None:
        text = "[x]: https://example.com\n\npara\n\n[link][x]\n"
        results = render_chunks(text, max_lines=2, max_workers=max_workers, pipeline=pipeline)
        single = render_with_line_map(text, pipeline=pipeline)

        assert len(results) == 3
        last = results[-1]
        assert f'<a href="https://example.com" data-line-id="{last.line_map[4]}">' in last.html
        assert sorted(merge_results(results)) == sorted(single.line_map) == [2, 4]

    def test_first_reference_definition_wins(self, pipeline) -> None:
        text = "[x]: https://first.example\n\n[x]: https://second.example\n\n[link][x]\n"
        results = render_chunks(text, max_lines=2, pipeline=pipeline)
        assert 'href="https://first.example"' in results[-1].html

    def test_defaults_come_from_config(self, pipeline, monkeypatch) -> None:
        monkeypatch.setenv("PREVIEWSYNC_CHUNK_LINES", "3")
        monkeypatch.setenv("PREVIEWSYNC_MAX_WORKERS", "1")
        results = render_chunks(DOCUMENT, pipeline=pipeline)
        assert len(results) == 4

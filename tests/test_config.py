"""Tests for the rendering configuration."""

import pytest

from previewsync.markdown.config import get_markdown_config
from previewsync.markdown.renderer import MarkdownPipeline


class TestMarkdownConfig:
    def test_defaults(self, monkeypatch) -> None:
        monkeypatch.delenv("PREVIEWSYNC_CHUNK_LINES", raising=False)
        monkeypatch.delenv("PREVIEWSYNC_MAX_WORKERS", raising=False)
        config = get_markdown_config()

        assert config["preset"] == "commonmark"
        assert config["options"]["html"] is False
        assert config["chunk_lines"] == 200
        assert config["max_workers"] == 1

    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("PREVIEWSYNC_CHUNK_LINES", "50")
        monkeypatch.setenv("PREVIEWSYNC_MAX_WORKERS", " 4 ")
        config = get_markdown_config()

        assert config["chunk_lines"] == 50
        assert config["max_workers"] == 4

    def test_blank_value_uses_default(self, monkeypatch) -> None:
        monkeypatch.setenv("PREVIEWSYNC_CHUNK_LINES", "  ")
        assert get_markdown_config()["chunk_lines"] == 200

    def test_invalid_value(self, monkeypatch) -> None:
        monkeypatch.setenv("PREVIEWSYNC_MAX_WORKERS", "many")
        with pytest.raises(ValueError, match="PREVIEWSYNC_MAX_WORKERS"):
            get_markdown_config()


class TestPipelineConfig:
    def test_enabled_rules(self, pipeline) -> None:
        html = pipeline.md.render("~~gone~~")
        assert "<s>gone</s>" in html

    def test_raw_html_is_escaped_by_default(self, pipeline) -> None:
        assert not pipeline.allow_html
        assert "&lt;b&gt;" in pipeline.md.render("<b>x</b>")

    def test_custom_config(self) -> None:
        config = get_markdown_config()
        config["options"]["html"] = True
        pipeline = MarkdownPipeline(config)
        assert pipeline.allow_html

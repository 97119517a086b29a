# previewsync/markdown/config.py
import os


def _env_int(name, default):
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def get_markdown_config():
    """
    Configuration for the markdown-it rendering pipeline.

    Raw HTML stays disabled by default: a preview renders user text, and the
    sanitizer postprocessor only runs when it is enabled.

    Chunking settings can be overridden with environment variables:
    - PREVIEWSYNC_CHUNK_LINES: minimum number of source lines per chunk
    - PREVIEWSYNC_MAX_WORKERS: threads used to render chunks (1 = sequential)
    """
    return {
        "preset": "commonmark",
        "options": {
            "html": False,
            "linkify": False,
            "typographer": False,
        },
        # Rules enabled on top of the preset
        "enable": ["table", "strikethrough"],
        "chunk_lines": _env_int("PREVIEWSYNC_CHUNK_LINES", 200),
        "max_workers": _env_int("PREVIEWSYNC_MAX_WORKERS", 1),
    }

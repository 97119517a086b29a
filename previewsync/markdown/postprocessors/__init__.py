# previewsync/markdown/postprocessors/__init__.py

from .sanitizer import sanitize_html

POSTPROCESSORS = [
    sanitize_html,
    # Order matters - they run sequentially
]


def apply_postprocessors(html, context):
    """Apply all postprocessors in order"""
    for processor in POSTPROCESSORS:
        html = processor(html, context)
    return html

# previewsync/markdown/extensions/diagrams.py
"""
markdown-it plugin that renders diagram fences as client-side diagram
containers instead of code blocks.

    ```mermaid
    graph TD; A-->B
    ```

renders as:

    <div class="mermaid">graph TD; A--&gt;B
    </div>

The container carries no token attributes; the source-map stage for verbatim
blocks adds them.
"""

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml, unescapeAll

DIAGRAM_LANGUAGES = ("mermaid",)


def diagrams_plugin(md: MarkdownIt, languages=DIAGRAM_LANGUAGES) -> None:
    default_fence = md.renderer.rules["fence"]

    def render_fence(self, tokens, idx, options, env):
        token = tokens[idx]
        info = unescapeAll(token.info).strip() if token.info else ""
        language = info.split(maxsplit=1)[0] if info else ""
        if language in languages:
            return f'<div class="{language}">{escapeHtml(token.content)}</div>\n'
        return default_fence(tokens, idx, options, env)

    md.add_render_rule("fence", render_fence)

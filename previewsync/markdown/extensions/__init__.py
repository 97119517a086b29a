# previewsync/markdown/extensions/__init__.py

from .diagrams import diagrams_plugin
from .directives import directives_plugin

EXTENSIONS = [
    directives_plugin,  # Rewrites {name} fences before the fence renderer sees them
    diagrams_plugin,  # Wraps the fence rule, so it must come after anything replacing it
    # Order matters - they are installed sequentially
]


def apply_extensions(md):
    """Install all extensions in order"""
    for extension in EXTENSIONS:
        md.use(extension)
    return md

# previewsync/markdown/__init__.py

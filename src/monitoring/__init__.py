# path: src/monitoring/__init__.py

"""In-process event bus, turn events and file-based logs."""

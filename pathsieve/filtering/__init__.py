"""Recursive file filtering."""

from pathsieve.filtering.engine import FileFilterEngine, filter_files

__all__ = ["FileFilterEngine", "filter_files"]

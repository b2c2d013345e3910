"""Zip archives of filtered files."""

from pathsieve.archive.builder import (
    ArchiveBuilder,
    ArchiveCollisionError,
    ArchiveState,
    ArchiveWriteError,
    ZipFileEntry,
    compress_filtered_files,
    resolve_collisions,
)
from pathsieve.archive.writer import ZipArchiveWriter

__all__ = [
    "ArchiveBuilder",
    "ArchiveCollisionError",
    "ArchiveState",
    "ArchiveWriteError",
    "ZipArchiveWriter",
    "ZipFileEntry",
    "compress_filtered_files",
    "resolve_collisions",
]

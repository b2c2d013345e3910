"""
PathSieve Core: Path Normalization.

Include/exclude patterns are matched against root-relative paths that always
use forward slashes, whatever the host platform. This module owns that
canonical form and the archive-internal names derived from it.

Example:
    >>> relative_to("/data/photos", "/data/photos/2024/a.jpg")
    '2024/a.jpg'
    >>> archive_entry_name("/data/photos", "/data/photos/2024/a.jpg")
    'photos/2024/a.jpg'
"""
import os
from typing import Optional, Union

PathLike = Union[str, "os.PathLike[str]"]


def normalize_separators(path: PathLike) -> str:
    """Replace every backslash with a forward slash.

    Args:
        path: Path to normalize

    Returns:
        Path using '/' as separator
    """
    return os.fspath(path).replace("\\", "/")


def resolve_path(path: PathLike) -> str:
    """Expand '~' and make a path absolute.

    Symlinks are not resolved; they are treated as regular entries.
    """
    return os.path.abspath(os.path.expanduser(os.fspath(path)))


def _strip_root(root: str, full_path: str) -> Optional[str]:
    """Strip root plus one separator from full_path, or None if no prefix match."""
    for candidate, target in ((root, full_path), (root.casefold(), full_path.casefold())):
        if target == candidate:
            return ""
        if target.startswith(candidate):
            remainder = full_path[len(root):]
            if not remainder:
                return ""
            # Root given with a trailing separator
            if candidate.endswith("/"):
                return remainder
            if remainder[0] == "/":
                return remainder[1:]
    return None


def relative_to(root: PathLike, full_path: PathLike) -> str:
    """Compute the normalized path of full_path relative to root.

    Never raises: when full_path is not under root (case differences,
    junctions, different drives) the best available suffix is returned.

    Args:
        root: Absolute root directory
        full_path: Absolute path of a file under root

    Returns:
        Relative path with '/' separators
    """
    root_str = normalize_separators(root)
    full_str = normalize_separators(full_path)

    stripped = _strip_root(root_str, full_str)
    if stripped is not None:
        return stripped

    try:
        return normalize_separators(os.path.relpath(os.fspath(full_path), os.fspath(root)))
    except ValueError:
        # Different drives on Windows
        drive, tail = os.path.splitdrive(os.fspath(full_path))
        return normalize_separators(tail).lstrip("/")


def leaf_name(root: PathLike) -> str:
    """Return the last component of a directory path, ignoring trailing separators."""
    root_str = normalize_separators(root).rstrip("/")
    _, tail = os.path.splitdrive(root_str)
    return tail.rsplit("/", 1)[-1]


def archive_entry_name(root: PathLike, full_path: PathLike) -> str:
    """Name a file is stored under inside an archive.

    Format: <leaf folder name of root>/<path relative to root>. A root
    without a leaf name (a filesystem root) contributes no prefix.
    """
    relative = relative_to(root, full_path)
    leaf = leaf_name(root)
    if not leaf:
        return relative
    return f"{leaf}/{relative}"


def has_extension(path: PathLike, extension: str) -> bool:
    """Case-insensitive suffix check; extension includes the dot."""
    return normalize_separators(path).lower().endswith(extension.lower())

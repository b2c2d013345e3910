"""
PathSieve Core: File Operations.

Filesystem primitives used by the filter engine, the processors and the
archive builder:
- FileHandle, the immutable record of one discovered file
- recursive enumeration with per-subtree error recovery
- whole-file reads, deletes and renames with ErrorCode mapping
"""
import errno
import os
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Set, Tuple

from pathsieve.core.constants import ErrorCode
from pathsieve.core.path_utils import relative_to
from pathsieve.core.validators import PathSieveError


class FileOperationError(PathSieveError):
    """Failure of a filesystem primitive."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INTERNAL_ERROR):
        super().__init__(message, error_code)


class EnumerationError(PathSieveError):
    """A directory could not be listed during traversal.

    Raised into the ``on_error`` callback of :func:`enumerate_files`, never
    out of the traversal itself.
    """

    def __init__(self, path: str, reason: str, error_code: ErrorCode = ErrorCode.INTERNAL_ERROR):
        super().__init__(f"Cannot list directory {path}: {reason}", error_code)
        self.path = path


def _error_code_for(error: OSError) -> ErrorCode:
    if isinstance(error, FileNotFoundError):
        return ErrorCode.NOT_FOUND
    if isinstance(error, PermissionError):
        return ErrorCode.PERMISSION_DENIED
    if isinstance(error, FileExistsError):
        return ErrorCode.CONFLICT
    return ErrorCode.INTERNAL_ERROR


@dataclass(frozen=True)
class FileHandle:
    """One discovered file.

    Attributes:
        path: Absolute path to the file
        relative_path: Path relative to the traversal root, '/' separated
        size: File size in bytes
        mtime: Modification timestamp (seconds since epoch)
    """

    path: str
    relative_path: str
    size: int
    mtime: float

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    @classmethod
    def from_path(cls, path: str, root: Optional[str] = None) -> "FileHandle":
        """
        Create a FileHandle from a filesystem path.

        Args:
            path: Absolute path to the file
            root: Root directory the relative path is computed from.
                  If None, the relative path is the file name.

        Returns:
            FileHandle with size and mtime from stat()

        Raises:
            FileNotFoundError: If the path doesn't exist
            OSError: If stat() fails for other reasons
        """
        file_stat = os.stat(path)
        if root is not None:
            relative = relative_to(root, path)
        else:
            relative = os.path.basename(path)

        return cls(
            path=path,
            relative_path=relative,
            size=file_stat.st_size,
            mtime=file_stat.st_mtime,
        )


def enumerate_files(
    root: str,
    on_error: Optional[Callable[[EnumerationError], None]] = None,
    follow_symlinks: bool = False,
    prune: Optional[Callable[[str], bool]] = None,
) -> Iterator[str]:
    """Recursively yield the absolute path of every file under root.

    Directories are never yielded. Entries are visited top-down with
    directory and file names sorted, so repeated calls over an unchanged
    tree produce the same order.

    Args:
        root: Absolute directory to walk
        on_error: Called with an EnumerationError for each directory that
            cannot be listed; that subtree is skipped and the walk goes on
        follow_symlinks: Descend into symlinked directories
        prune: Called with each subdirectory's absolute path; returning
            True skips the subtree

    Yields:
        Absolute file paths
    """

    def _onerror(error: OSError) -> None:
        if on_error is not None:
            path = error.filename or root
            on_error(EnumerationError(path, error.strerror or str(error), _error_code_for(error)))

    # Guards symlink cycles when following links
    visited: Set[Tuple[int, int]] = set()

    walk = os.walk(root, onerror=_onerror, followlinks=follow_symlinks)
    for dirpath, dirnames, filenames in walk:
        if follow_symlinks:
            try:
                dir_stat = os.stat(dirpath)
            except OSError as e:
                _onerror(e)
                dirnames[:] = []
                continue
            key = (dir_stat.st_dev, dir_stat.st_ino)
            if key in visited:
                dirnames[:] = []
                continue
            visited.add(key)

        kept = sorted(dirnames)
        if prune is not None:
            kept = [d for d in kept if not prune(os.path.join(dirpath, d))]
        dirnames[:] = kept

        for filename in sorted(filenames):
            yield os.path.join(dirpath, filename)


def file_exists(path: str) -> bool:
    """Check whether anything exists at path."""
    return os.path.exists(path)


def read_all_bytes(path: str) -> bytes:
    """Read a whole file.

    Args:
        path: File to read

    Returns:
        File content

    Raises:
        FileOperationError: If the file cannot be read
    """
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise FileOperationError(f"Cannot read file {path}: {e.strerror or e}", _error_code_for(e))


def delete_file(path: str) -> None:
    """Delete a single file.

    Raises:
        FileOperationError: If the file cannot be deleted
    """
    try:
        os.remove(path)
    except OSError as e:
        raise FileOperationError(
            f"Cannot delete file {path}: {e.strerror or e}", _error_code_for(e)
        )


def rename_file(source: str, target: str) -> None:
    """Rename a file without replacing an existing target.

    Raises:
        FileOperationError: CONFLICT if target exists, otherwise the mapped
            code of the underlying OSError
    """
    if os.path.lexists(target):
        raise FileOperationError(f"Rename target already exists: {target}", ErrorCode.CONFLICT)

    try:
        os.rename(source, target)
    except OSError as e:
        if e.errno == errno.EXDEV:
            raise FileOperationError(
                f"Cannot rename across devices: {source} -> {target}", ErrorCode.INVALID_INPUT
            )
        raise FileOperationError(
            f"Cannot rename {source} -> {target}: {e.strerror or e}", _error_code_for(e)
        )

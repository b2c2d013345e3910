#!/usr/bin/env python3
r"""Recursive include/exclude file filtering.

This module provides the traversal every PathSieve command is built on:
- Recursive enumeration of regular files under a root
- Root-relative, '/'-normalized paths handed to the pattern rules
- Lazy, single-pass results (a fresh walk per call)
- Unlistable subdirectories skipped with a warning
- Optional pruning of excluded directories

Example:
    >>> engine = FileFilterEngine(include=[r"\.py$"], exclude=[r"^tests/"])
    >>> for handle in engine.filter("/src/project"):
    ...     print(handle.relative_path)
"""

from typing import Callable, Iterable, Iterator, List, Optional

from pathsieve.core.file_ops import EnumerationError, FileHandle, enumerate_files
from pathsieve.core.logging import get_logger
from pathsieve.core.path_utils import relative_to
from pathsieve.core.validators import validate_root
from pathsieve.rules.patterns import PatternSet

ErrorCallback = Callable[[EnumerationError], None]


class FileFilterEngine:
    """Applies one compiled PatternSet to any number of root directories.

    Patterns are compiled in the constructor, so an invalid pattern is
    reported before a single directory is listed.
    """

    def __init__(
        self,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
        case_sensitive: bool = False,
        prune_directories: bool = False,
        follow_symlinks: bool = False,
        on_error: Optional[ErrorCallback] = None,
    ):
        """Initialize the filter engine.

        Args:
            include: Include regexes; empty selects every file
            exclude: Exclude regexes; a match always removes the file
            case_sensitive: Match case-sensitively
            prune_directories: Also test directory paths (with a trailing
                '/') against the exclude patterns and skip matching subtrees
            follow_symlinks: Descend into symlinked directories
            on_error: Receives every EnumerationError; defaults to logging
                a warning

        Raises:
            InvalidPatternError: If any pattern does not compile
        """
        self.patterns = PatternSet(include, exclude, case_sensitive)
        self.prune_directories = prune_directories
        self.follow_symlinks = follow_symlinks
        self._on_error = on_error
        self._logger = get_logger("pathsieve.filtering")
        self.errors: List[EnumerationError] = []

    def _handle_error(self, error: EnumerationError) -> None:
        self.errors.append(error)
        if self._on_error is not None:
            self._on_error(error)
        else:
            self._logger.warning(f"Skipping unreadable directory: {error.message}", path=error.path)

    def filter(self, root: str) -> Iterator[FileHandle]:
        """Yield the files under root selected by the patterns.

        The root is validated immediately; enumeration happens lazily as
        the returned iterator is consumed.

        Args:
            root: Directory to traverse

        Returns:
            Iterator of matching FileHandles

        Raises:
            RootNotFoundError: If root does not exist
            RootNotDirectoryError: If root is not a directory
        """
        resolved = validate_root(root)
        return self._iter_matches(resolved)

    def _iter_matches(self, root: str) -> Iterator[FileHandle]:
        prune = None
        if self.prune_directories and self.patterns.exclude:

            def prune(directory: str) -> bool:
                if self.patterns.is_excluded(relative_to(root, directory) + "/"):
                    self._logger.debug("Pruned directory", path=directory)
                    return True
                return False

        matched = 0
        for path in enumerate_files(
            root, on_error=self._handle_error, follow_symlinks=self.follow_symlinks, prune=prune
        ):
            relative = relative_to(root, path)
            if not self.patterns.is_selected(relative):
                continue

            try:
                handle = FileHandle.from_path(path, root)
            except OSError as e:
                # Removed or unreadable between listing and stat
                self._logger.warning(
                    f"Skipping unreadable file: {path}", reason=e.strerror or str(e)
                )
                continue

            matched += 1
            self._logger.debug("Matched file", path=relative)
            yield handle

        self._logger.debug("Traversal finished", root=root, matched=matched)


def filter_files(
    root: str,
    include: Optional[Iterable[str]] = None,
    exclude: Optional[Iterable[str]] = None,
    *,
    case_sensitive: bool = False,
    prune_directories: bool = False,
    follow_symlinks: bool = False,
    on_error: Optional[ErrorCallback] = None,
) -> Iterator[FileHandle]:
    """Filter the files under one root.

    Patterns are compiled and the root validated before this returns; the
    walk itself runs as the iterator is consumed.

    Args:
        root: Directory to traverse
        include: Include regexes (empty selects everything)
        exclude: Exclude regexes
        case_sensitive: Match case-sensitively
        prune_directories: Skip subtrees whose directory path is excluded
        follow_symlinks: Descend into symlinked directories
        on_error: EnumerationError callback (default: log a warning)

    Returns:
        Lazy iterator of FileHandles

    Raises:
        InvalidPatternError: If any pattern does not compile
        RootNotFoundError: If root does not exist
        RootNotDirectoryError: If root is not a directory
    """
    engine = FileFilterEngine(
        include,
        exclude,
        case_sensitive=case_sensitive,
        prune_directories=prune_directories,
        follow_symlinks=follow_symlinks,
        on_error=on_error,
    )
    return engine.filter(root)
